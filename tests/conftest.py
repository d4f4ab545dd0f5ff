import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'provision' and tests/helpers as 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from provision.core.audit import reset_logging
from provision.core.config import clear_config_cache
from provision.core.tasks import Runtime
from helpers.fakes import FakeRunner


@pytest.fixture(autouse=True)
def _reset_provision_state():
    """Fresh config cache and logging handlers for each test."""
    clear_config_cache()
    yield
    clear_config_cache()
    reset_logging()


@pytest.fixture
def isolated_project_env(tmp_path, monkeypatch):
    """
    Isolated project environment for tests.

    Every test touching configuration or persisted records MUST use this
    fixture so nothing is written outside tmp_path.
    """
    for key in list(os.environ):
        if key.startswith("PROVISION_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("PROVISION_PROJECT_ROOT", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".provision" / "config").mkdir(parents=True, exist_ok=True)
    return tmp_path


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def runtime(tmp_path, fake_runner):
    """Runtime with the fake runner and remote checks off."""
    return Runtime(
        runner=fake_runner,
        cwd=tmp_path,
        check_remotes=False,
        config_root=tmp_path / "config-output",
    )
