"""PropertyBag: set/get, rejection, defaults and required values."""
from __future__ import annotations

import pytest

from provision.core.exceptions import (
    MissingRequiredPropertyError,
    UnknownPropertyError,
    ValidationError,
)
from provision.core.properties import Property, PropertyBag
from provision.core.properties import validators as v


def _bag() -> PropertyBag:
    return PropertyBag(
        [
            Property("uri", "host name", required=True, validator=v.hostname),
            Property("port", "listen port", default=80, validator=v.port),
            Property("db_name", default_factory=lambda bag, rt: (bag.peek("uri") or "").replace(".", "")),
            Property("notes"),
        ],
        owner="site1",
    )


class TestPropertyBag:
    def test_set_then_get_returns_validated_value(self) -> None:
        bag = _bag()
        bag.set("uri", "Example.COM")
        assert bag.get("uri") == "example.com"

    def test_rejected_value_keeps_previous_and_raises(self) -> None:
        bag = _bag()
        bag.set("port", "8080")
        with pytest.raises(ValidationError) as excinfo:
            bag.set("port", "99999")
        assert excinfo.value.property_name == "port"
        assert bag.get("port") == 8080

    def test_get_required_without_value_raises(self) -> None:
        with pytest.raises(MissingRequiredPropertyError):
            _bag().get("uri")

    def test_get_falls_back_to_static_default(self) -> None:
        assert _bag().get("port") == 80

    def test_unknown_property_is_rejected(self) -> None:
        with pytest.raises(UnknownPropertyError):
            _bag().set("nope", "x")

    def test_blank_value_unsets(self) -> None:
        bag = _bag()
        bag.set("notes", "hello")
        bag.set("notes", "   ")
        assert "notes" not in bag
        assert bag.get("notes") is None

    def test_apply_defaults_collects_every_error(self) -> None:
        bag = _bag()
        errors = bag.apply_defaults()
        assert [type(e) for e in errors] == [MissingRequiredPropertyError]
        assert errors[0].property_name == "uri"
        assert bag.peek("port") == 80

    def test_default_factory_reads_other_values(self) -> None:
        bag = _bag()
        bag.set("uri", "example.com")
        assert bag.apply_defaults() == []
        assert bag.get("db_name") == "examplecom"

    def test_update_reports_all_rejections(self) -> None:
        errors = _bag().update({"uri": "bad host!", "port": "zero", "notes": "ok"})
        assert sorted(e.property_name for e in errors) == ["port", "uri"]

    def test_fingerprint_tracks_values(self) -> None:
        a, b = _bag(), _bag()
        a.set("uri", "example.com")
        b.set("uri", "example.com")
        assert a.fingerprint() == b.fingerprint()
        b.set("port", "81")
        assert a.fingerprint() != b.fingerprint()

    def test_duplicate_schema_entries_are_rejected(self) -> None:
        with pytest.raises(ValueError):
            PropertyBag([Property("a"), Property("a")])
