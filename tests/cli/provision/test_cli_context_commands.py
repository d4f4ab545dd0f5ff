from __future__ import annotations

from pathlib import Path

from provision.core.store import ContextStore

from helpers.cli import run_cli, run_cli_json


def test_save_new_context_reports_configured_state(project: Path, capsys) -> None:
    code, data = run_cli_json(
        capsys, "context", "save", "web1", "--type", "server", "-o", "http_service=nginx", "--offline"
    )

    assert code == 0
    assert data["status"] == "success"
    assert data["state"] == "configured"
    assert data["options"] == {"http_service": "nginx"}
    assert ContextStore(project).exists("web1")


def test_save_merges_and_unsets_options(project: Path, capsys) -> None:
    run_cli(capsys, "context", "save", "web1", "-t", "server", "-o", "http_service=nginx", "-o", "http_port=8080")

    code, data = run_cli_json(capsys, "context", "save", "web1", "-o", "db_service=mysql", "-o", "http_port=")

    assert code == 0
    assert data["options"] == {"http_service": "nginx", "db_service": "mysql"}


def test_save_rejects_invalid_options_and_writes_nothing(project: Path, capsys) -> None:
    code, data = run_cli_json(
        capsys, "context", "save", "web1", "--type", "server", "-o", "http_port=eighty", "-o", "db_service=oracle"
    )

    assert code == 1
    assert data["error"] == "ConfigurationError"
    assert len(data["errors"]) == 2
    assert not ContextStore(project).exists("web1")


def test_save_unknown_option_is_rejected(project: Path, capsys) -> None:
    code, data = run_cli_json(capsys, "context", "save", "web1", "--type", "server", "-o", "colour=blue")
    assert code == 1
    assert data["error"] == "UnknownProperty"


def test_save_usage_errors(project: Path, capsys) -> None:
    code, _, err = run_cli(capsys, "context", "save", "web1", "-o", "http_service=nginx")
    assert code == 2
    assert "--type is required" in err

    code, _, err = run_cli(capsys, "context", "save", "web1", "--type", "server", "-o", "novalue")
    assert code == 2
    assert "Expected key=value" in err


def test_save_refuses_type_change(project: Path, capsys) -> None:
    run_cli(capsys, "context", "save", "web1", "--type", "server", "-o", "http_service=nginx")
    code, _, err = run_cli(capsys, "context", "save", "web1", "--type", "site", "-o", "uri=example.com")
    assert code == 2
    assert "server Context" in err


def test_save_warns_about_unresolved_capabilities(project: Path, capsys) -> None:
    code, out, err = run_cli(
        capsys, "context", "save", "site1", "--type", "site", "-o", "uri=example.com", "-o", "platform=platform1"
    )

    assert code == 0
    assert "Saved site site1" in out
    assert "Warning:" in err and "platform1" in err


def test_list_and_show(hosting: Path, capsys) -> None:
    code, out, _ = run_cli(capsys, "context", "list")
    assert code == 0
    assert [line.split()[0] for line in out.splitlines()] == ["platform1", "site1", "web1"]

    code, data = run_cli_json(capsys, "context", "list", "--type", "site")
    assert data["contexts"] == [{"name": "site1", "type": "site", "state": "configured", "scope": "default"}]

    code, record = run_cli_json(capsys, "context", "show", "site1")
    assert code == 0
    assert record["options"] == {"uri": "example.com", "platform": "platform1"}


def test_list_empty_project(project: Path, capsys) -> None:
    code, out, _ = run_cli(capsys, "context", "list")
    assert code == 0
    assert out.strip() == "No contexts"


def test_show_missing_context(project: Path, capsys) -> None:
    code, data = run_cli_json(capsys, "context", "show", "nope")
    assert code == 1
    assert data["error"] == "ContextNotFound"


def test_remove_refuses_while_dependents_exist(hosting: Path, capsys) -> None:
    code, data = run_cli_json(capsys, "context", "remove", "web1")
    assert code == 1
    assert data["error"] == "has_dependents"
    assert "platform1" in data["message"] and "site1" in data["message"]
    assert ContextStore(hosting).exists("web1")


def test_force_remove_leaves_dependents(hosting: Path, capsys) -> None:
    code, data = run_cli_json(capsys, "context", "remove", "web1", "--force")
    assert code == 0
    assert data["dependents"] == ["platform1", "site1"]
    assert ContextStore(hosting).list_names() == ["platform1", "site1"]
