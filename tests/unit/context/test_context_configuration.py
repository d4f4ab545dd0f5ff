"""Context configuration: error collection, selectors and derived values."""
from __future__ import annotations

from pathlib import Path

from provision.core.context import PlatformContext, ServerContext, SiteContext
from provision.core.exceptions import ConfigurationError, MissingRequiredPropertyError
from provision.core.state import ContextState

from helpers.builders import platform, server, site


def test_configure_success_moves_to_configured(runtime) -> None:
    ctx = server()
    assert ctx.state is ContextState.UNCONFIGURED
    assert ctx.configure(runtime) == []
    assert ctx.state is ContextState.CONFIGURED
    assert ctx.get("http_port") == 80
    assert ctx.get("remote_host") == "localhost"


def test_server_config_path_defaults_under_config_root(runtime) -> None:
    ctx = ServerContext("web1", {"http_service": "nginx"})
    ctx.configure(runtime)
    assert ctx.config_path == runtime.config_root / "web1"
    assert ctx.vhost_dir == runtime.config_root / "web1" / "vhost.d"


def test_every_configuration_error_is_reported(runtime) -> None:
    ctx = SiteContext("site1", {"uri": "not a host", "redirection": "perhaps"})
    errors = ctx.configure(runtime)
    names = sorted(e.property_name for e in errors)
    assert names == ["platform", "redirection", "uri"]
    assert ctx.state is ContextState.FAILED
    assert ctx.failure.kind == ConfigurationError.kind


def test_single_error_is_reported_as_itself(runtime) -> None:
    ctx = SiteContext("site1", {"uri": "example.com"})
    ctx.configure(runtime)
    assert isinstance(ctx.configuration_error(), MissingRequiredPropertyError)
    assert ctx.failure.kind == "MissingRequiredProperty"


def test_set_rejection_fails_context_and_keeps_old_value(runtime) -> None:
    ctx = server()
    ctx.configure(runtime)
    assert ctx.set("http_port", "8080", runtime) is True
    assert ctx.get("http_port") == 8080

    assert ctx.set("http_port", "not-a-port", runtime) is False
    assert ctx.state is ContextState.FAILED
    assert ctx.get("http_port") == 8080
    assert ctx.failure.kind == "ValidationError"

    assert ctx.set("http_port", "8081", runtime) is True
    assert ctx.state is ContextState.CONFIGURED
    assert ctx.failure is None


def test_server_capabilities_follow_services() -> None:
    assert server().provided_capabilities() == ("http", "db")
    assert ServerContext("db1", {"db_service": "pgsql"}).provided_capabilities() == ("db",)
    assert ServerContext("bare", {}).provided_capabilities() == ()


def test_platform_document_root_is_derived(runtime, tmp_path: Path) -> None:
    ctx = platform(root=tmp_path / "p1", document_root="web")
    ctx.configure(runtime)
    assert ctx.document_root == tmp_path / "p1" / "web"

    plain = PlatformContext("p2", {"root": str(tmp_path / "p2")})
    plain.configure(runtime)
    assert plain.document_root == tmp_path / "p2"


def test_platform_root_defaults_to_runtime_cwd(runtime) -> None:
    ctx = PlatformContext("here", {})
    ctx.configure(runtime)
    assert ctx.root == Path(runtime.cwd)


def test_site_database_defaults_derive_from_uri(runtime) -> None:
    ctx = site(uri="www.my-shop.example.com")
    ctx.configure(runtime)
    assert ctx.get("db_name") == "myshopexamplecom"[:16]
    assert ctx.get("db_user") == ctx.get("db_name")
    assert ctx.get("language") == "en"


def test_selectors_name_explicit_providers() -> None:
    ctx = site(db_server="db1")
    assert ctx.selected_provider("db") == "db1"
    assert ctx.selected_provider("platform") == "platform1"
    assert server().selected_provider("http") is None


def test_record_holds_raw_options() -> None:
    record = server(http_port="8080").to_record()
    assert record["type"] == "server"
    assert record["options"]["http_port"] == "8080"
    assert record["state"] == "unconfigured"
