from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from create_processcube_app.config import FRAMEWORK_VERSION_ENV_VAR, TEMPLATES_ENV_VAR, templates_root
from create_processcube_app.store import TemplateStore


class RecordingInstaller:
    def __init__(self) -> None:
        self.calls: list[tuple[Path, list[str], object]] = []

    def install(self, root, dependencies, flags) -> None:
        self.calls.append((root, list(dependencies), flags))


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(FRAMEWORK_VERSION_ENV_VAR, raising=False)
    monkeypatch.delenv(TEMPLATES_ENV_VAR, raising=False)


@pytest.fixture
def installer() -> RecordingInstaller:
    return RecordingInstaller()


@pytest.fixture
def store_copy(tmp_path: Path) -> TemplateStore:
    """A writable copy of the packaged templates."""
    root = tmp_path / "store"
    shutil.copytree(templates_root(), root)
    return TemplateStore(root=root)
