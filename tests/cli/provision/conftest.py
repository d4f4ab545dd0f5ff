from __future__ import annotations

from pathlib import Path

import pytest

from helpers.cli import run_cli


@pytest.fixture
def project(isolated_project_env: Path) -> Path:
    return isolated_project_env


@pytest.fixture
def hosting(project: Path, capsys) -> Path:
    """Saved web1 -> platform1 -> site1 chain whose platform root already exists."""
    root = project / "platforms" / "platform1"
    root.mkdir(parents=True)
    for argv in (
        ("context", "save", "web1", "--type", "server", "-o", "http_service=nginx", "-o", "db_service=mysql"),
        ("context", "save", "platform1", "--type", "platform", "-o", f"root={root}"),
        ("context", "save", "site1", "--type", "site", "-o", "uri=example.com", "-o", "platform=platform1"),
    ):
        code, _, err = run_cli(capsys, *argv, "--offline")
        assert code == 0, err
    return project
