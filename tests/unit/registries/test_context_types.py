from __future__ import annotations

import pytest

from provision.core.context import PlatformContext, ServerContext, SiteContext
from provision.core.exceptions import UnknownContextTypeError, ValidationError
from provision.core.registries import create_context, get_context_type, list_context_types


def test_builtin_types_are_registered() -> None:
    assert {"server", "platform", "site"} <= set(list_context_types())
    assert get_context_type("server") is ServerContext
    assert get_context_type("platform") is PlatformContext
    assert get_context_type("site") is SiteContext


def test_unknown_type_raises() -> None:
    with pytest.raises(UnknownContextTypeError):
        get_context_type("mailserver")


def test_create_context_keeps_raw_options() -> None:
    ctx = create_context("site1", "site", {"uri": "example.com"})
    assert isinstance(ctx, SiteContext)
    assert ctx.options == {"uri": "example.com"}
    assert ctx.type_tag == "site"


def test_context_names_are_validated() -> None:
    with pytest.raises(ValidationError):
        create_context("bad name", "server")
