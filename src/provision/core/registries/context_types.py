"""Registry of Context variants keyed by type tag.

Variants register themselves with the ``register_context_type`` decorator:

    @register_context_type("server")
    class ServerContext(Context):
        ...
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar

from provision.core.exceptions import UnknownContextTypeError

if TYPE_CHECKING:
    from provision.core.context.base import Context

C = TypeVar("C", bound="Type[Context]")

_CONTEXT_TYPES: Dict[str, "Type[Context]"] = {}


def register_context_type(tag: str) -> Callable[[C], C]:
    def decorator(cls: C) -> C:
        existing = _CONTEXT_TYPES.get(tag)
        if existing is not None and existing is not cls:
            raise ValueError(f"context type {tag!r} already registered by {existing.__name__}")
        cls.type_tag = tag
        _CONTEXT_TYPES[tag] = cls
        return cls

    return decorator


def _ensure_builtin_types() -> None:
    # Importing the package registers server, platform and site.
    import provision.core.context  # noqa: F401


def get_context_type(tag: str) -> "Type[Context]":
    _ensure_builtin_types()
    try:
        return _CONTEXT_TYPES[tag]
    except KeyError:
        raise UnknownContextTypeError(
            f"Unknown context type {tag!r} (known: {', '.join(sorted(_CONTEXT_TYPES))})",
            context={"type": tag},
        ) from None


def list_context_types() -> List[str]:
    _ensure_builtin_types()
    return sorted(_CONTEXT_TYPES)


def create_context(name: str, type_tag: str, options: Optional[Mapping[str, Any]] = None) -> "Context":
    """Build an unconfigured Context of ``type_tag``.

    Raises:
        UnknownContextTypeError: The tag has no registered variant.
    """
    cls = get_context_type(type_tag)
    return cls(name, options or {})


__all__ = ["create_context", "get_context_type", "list_context_types", "register_context_type"]
