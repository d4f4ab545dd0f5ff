"""Typed, validated configuration values.

A Context type declares an ordered schema of ``Property`` descriptors; each
Context instance binds that schema to a ``PropertyBag`` holding validated
values.
"""
from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from provision.core.exceptions import (
    MissingRequiredPropertyError,
    UnknownPropertyError,
    ValidationError,
)

if TYPE_CHECKING:
    from provision.core.tasks.runtime import Runtime

logger = logging.getLogger(__name__)

Validator = Callable[[Any, Optional["Runtime"]], Any]
DefaultFactory = Callable[["PropertyBag", Optional["Runtime"]], Any]


def is_empty(value: Any) -> bool:
    """None and blank strings count as "not set"."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


@dataclass(frozen=True)
class Property:
    """Schema entry for one configuration value.

    ``default_factory(bag, runtime)`` computes a default from the values
    already present in the bag; it wins over ``default`` when both are given.
    """

    name: str
    description: str = ""
    default: Any = None
    default_factory: Optional[DefaultFactory] = None
    required: bool = False
    validator: Optional[Validator] = None

    def validate(self, raw: Any, runtime: Optional["Runtime"] = None) -> Any:
        """Return the validated form of ``raw``.

        Raises:
            ValidationError: When the validator rejects the value.
        """
        if self.validator is None:
            return raw
        try:
            return self.validator(raw, runtime)
        except ValidationError as exc:
            if exc.property_name:
                raise
            raise ValidationError(
                f"{self.name}: {exc}", property_name=self.name, context={"value": _display(raw)}
            ) from exc
        except (TypeError, ValueError) as exc:
            raise ValidationError(
                f"{self.name}: {exc}", property_name=self.name, context={"value": _display(raw)}
            ) from exc


def _display(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return value


class PropertyBag:
    """Validated values of one Context instance."""

    def __init__(self, schema: Sequence[Property], owner: str = "") -> None:
        self.owner = owner
        self._schema: Dict[str, Property] = {}
        for prop in schema:
            if prop.name in self._schema:
                raise ValueError(f"duplicate property {prop.name!r} in schema")
            self._schema[prop.name] = prop
        self._values: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------
    @property
    def schema(self) -> List[Property]:
        return list(self._schema.values())

    def definition(self, name: str) -> Property:
        try:
            return self._schema[name]
        except KeyError:
            raise UnknownPropertyError(
                f"Unknown option {name!r} for {self.owner or 'context'}",
                property_name=name,
                context={"known": sorted(self._schema)},
            ) from None

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------
    def set(self, name: str, raw: Any, runtime: Optional["Runtime"] = None) -> Any:
        """Validate and store ``raw``. An empty value unsets the Property.

        On rejection the previous value (if any) is kept and the
        ``ValidationError`` propagates to the caller.
        """
        prop = self.definition(name)
        if is_empty(raw):
            self._values.pop(name, None)
            return None
        value = prop.validate(raw, runtime)
        self._values[name] = value
        return value

    def peek(self, name: str, fallback: Any = None) -> Any:
        """Return the stored value without default or required handling."""
        return self._values.get(name, fallback)

    def get(self, name: str) -> Any:
        """Return the validated value, else the static default.

        Raises:
            MissingRequiredPropertyError: Required Property with neither.
        """
        prop = self.definition(name)
        if name in self._values:
            return self._values[name]
        if prop.default is not None:
            return prop.default
        if prop.required:
            raise MissingRequiredPropertyError(
                f"Missing required option {name!r} for {self.owner or 'context'}",
                property_name=name,
            )
        return None

    def apply_defaults(self, runtime: Optional["Runtime"] = None) -> List[ValidationError]:
        """Fill unset Properties from their defaults, in declaration order.

        Returns every error found instead of stopping at the first one.
        """
        errors: List[ValidationError] = []
        for prop in self._schema.values():
            if prop.name in self._values:
                continue
            raw: Any = None
            if prop.default_factory is not None:
                try:
                    raw = prop.default_factory(self, runtime)
                except (TypeError, ValueError) as exc:
                    errors.append(ValidationError(f"{prop.name}: {exc}", property_name=prop.name))
                    continue
            elif prop.default is not None:
                raw = prop.default
            if is_empty(raw):
                if prop.required:
                    errors.append(
                        MissingRequiredPropertyError(
                            f"Missing required option {prop.name!r} for {self.owner or 'context'}",
                            property_name=prop.name,
                        )
                    )
                continue
            try:
                self._values[prop.name] = prop.validate(raw, runtime)
            except ValidationError as exc:
                errors.append(exc)
        return errors

    def store(self, name: str, value: Any) -> None:
        """Record a value derived from other validated values (no validator run)."""
        self.definition(name)
        self._values[name] = value

    def missing(self) -> List[str]:
        return [p.name for p in self._schema.values() if p.required and p.name not in self._values]

    def clear(self) -> None:
        self._values.clear()

    def values(self) -> Dict[str, Any]:
        return dict(self._values)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly copy of the validated values."""
        return {k: _jsonable(v) for k, v in self._values.items()}

    def fingerprint(self) -> str:
        payload = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def update(self, options: Mapping[str, Any], runtime: Optional["Runtime"] = None) -> List[ValidationError]:
        """Set several options, collecting every error."""
        errors: List[ValidationError] = []
        for name, raw in options.items():
            try:
                self.set(name, raw, runtime)
            except ValidationError as exc:
                errors.append(exc)
        return errors


def describe_schema(schema: Iterable[Property]) -> List[Dict[str, Any]]:
    return [
        {
            "name": p.name,
            "description": p.description,
            "required": p.required,
            "default": _jsonable(p.default),
        }
        for p in schema
    ]


__all__ = ["Property", "PropertyBag", "Validator", "describe_schema", "is_empty"]
