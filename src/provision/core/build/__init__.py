"""Build-tool collaborator (drush make)."""
from __future__ import annotations

from .make import make_build, make_command

__all__ = ["make_build", "make_command"]
