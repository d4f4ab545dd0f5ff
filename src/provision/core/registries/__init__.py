"""Registries: capabilities and Context variants."""
from __future__ import annotations

from .capabilities import DEFAULT_SCOPE, CapabilityRegistry
from .context_types import create_context, get_context_type, list_context_types, register_context_type

__all__ = [
    "CapabilityRegistry",
    "DEFAULT_SCOPE",
    "create_context",
    "get_context_type",
    "list_context_types",
    "register_context_type",
]
