"""Properties: the typed configuration schema of a Context type."""
from __future__ import annotations

from . import validators
from .property import Property, PropertyBag, describe_schema, is_empty

__all__ = ["Property", "PropertyBag", "describe_schema", "is_empty", "validators"]
