from __future__ import annotations

from pathlib import Path

import pytest

from provision.core.emit import VhostRenderer, nginx_path, nginx_token, nginx_value, urlencode
from provision.core.exceptions import DependencyFailedError, ValidationError
from provision.core.inventory import Inventory
from provision.core.pipeline import VerificationPipeline

from helpers.builders import hosting_inventory, platform, server, site


class TestFilters:
    def test_bare_words_stay_unquoted(self) -> None:
        assert nginx_value(80) == "80"
        assert nginx_value("/var/www/app") == "/var/www/app"

    def test_other_values_are_quoted_and_escaped(self) -> None:
        assert nginx_value('a "b" c') == '"a \\"b\\" c"'
        assert nginx_value("x;y") == '"x;y"'

    def test_dollar_is_rejected(self) -> None:
        with pytest.raises(ValueError, match=r"'\$' is not allowed"):
            nginx_value("$document_root")

    def test_control_characters_are_rejected(self) -> None:
        with pytest.raises(ValueError, match="control character"):
            nginx_value("a\nb")

    def test_booleans_render_as_on_off(self) -> None:
        assert nginx_value(True) == "on"
        assert nginx_value(False) == "off"

    def test_tokens_never_carry_separators(self) -> None:
        assert nginx_token("www.example.com") == "www.example.com"
        with pytest.raises(ValueError):
            nginx_token("example.com; return 200")

    def test_paths_must_be_absolute(self) -> None:
        with pytest.raises(ValueError, match="absolute"):
            nginx_path("relative/dir")

    def test_urlencode(self) -> None:
        assert urlencode("p@ss word&x") == "p%40ss+word%26x"
        assert urlencode(None) == ""


def _prepared(tmp_path: Path, runtime, **site_options):
    inventory = hosting_inventory(tmp_path, with_site=False)
    inventory.add(site(**site_options))
    pipeline = VerificationPipeline(inventory, runtime)
    context = pipeline.prepare("site1")
    return pipeline, context, pipeline.dependencies(context)


def _render(runtime, context, deps) -> str:
    provider = deps["platform"]
    return runtime.get_renderer().render_site(context, provider, deps.of(provider)["http"], deps["db"])


def test_vhost_lists_aliases_and_database(tmp_path: Path, runtime) -> None:
    _, context, deps = _prepared(tmp_path, runtime, aliases="www.example.com alt.example.com", db_password="s3cr&t")

    text = _render(runtime, context, deps)

    assert "server_name   example.com www.example.com alt.example.com;" in text
    assert "return        301" not in text
    assert f"root          {tmp_path / 'platforms' / 'platform1'};" in text
    assert "fastcgi_param db_name   examplecom;" in text
    assert "fastcgi_param db_passwd s3cr%26t;" in text
    assert "fastcgi_param db_type   mysql;" in text


def test_redirection_adds_a_redirect_server(tmp_path: Path, runtime) -> None:
    _, context, deps = _prepared(tmp_path, runtime, aliases="www.example.com", redirection="yes")

    text = _render(runtime, context, deps)

    assert "server_name   www.example.com;" in text
    assert "return        301 $scheme://example.com$request_uri;" in text
    assert "server_name   example.com;" in text


def test_subdir_site_renders_a_location(tmp_path: Path, runtime) -> None:
    _, context, deps = _prepared(tmp_path, runtime, subdir="shop")

    text = _render(runtime, context, deps)

    assert "location ^~ /shop/ {" in text
    assert context.vhost_path(deps.of(deps["platform"])["http"]) == (
        tmp_path / "config" / "web1" / "vhost.d" / "example.com.d" / "shop.conf"
    )


def test_render_for_site_requires_verified_providers(tmp_path: Path, runtime) -> None:
    _, context, deps = _prepared(tmp_path, runtime)

    with pytest.raises(DependencyFailedError, match="not verified"):
        VhostRenderer().render_for_site(context, deps)


def test_render_for_site_after_verification(tmp_path: Path, runtime) -> None:
    pipeline, _, _ = _prepared(tmp_path, runtime)
    assert pipeline.verify().ok

    context = pipeline.prepare("site1")
    text = VhostRenderer().render_for_site(context, pipeline.dependencies(context))

    written = (tmp_path / "config" / "web1" / "vhost.d" / "example.com.conf").read_text(encoding="utf-8")
    assert text == written


def test_unsafe_value_is_reported_as_validation_error(tmp_path: Path, runtime) -> None:
    inventory = Inventory()
    inventory.add(server(config_path=str(tmp_path / "config" / "web1")))
    inventory.add(platform(root=tmp_path / "cost$dir"))
    inventory.add(site())
    pipeline = VerificationPipeline(inventory, runtime)
    context = pipeline.prepare("site1")

    with pytest.raises(ValidationError, match=r"'\$' is not allowed") as excinfo:
        _render(runtime, context, pipeline.dependencies(context))
    assert excinfo.value.context == {"context": "site1"}
