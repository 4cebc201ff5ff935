from __future__ import annotations

from pathlib import Path

import pytest

from linksync.capabilities import PythonCopier
from linksync.models import ShortcutAttributes


@pytest.fixture
def fake_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return home


class RecordingCopier:
    """Delegates to the portable copier unless ``code`` is forced, recording every call."""

    def __init__(self, code: int | None = None) -> None:
        self.code = code
        self.calls: list[tuple[Path, Path, bool]] = []

    def mirror(self, source: Path, destination: Path, *, exclude_older: bool) -> int:
        self.calls.append((source, destination, exclude_older))
        if self.code is not None:
            return self.code
        return PythonCopier().mirror(source, destination, exclude_older=exclude_older)


class FakeShortcuts:
    """Shortcut capability storing the target as the file's only line."""

    extension = ".lnk"

    def __init__(self) -> None:
        self.created: list[tuple[Path, Path, ShortcutAttributes]] = []

    def create(self, path: Path, target: Path, attributes: ShortcutAttributes) -> None:
        self.created.append((path, target, attributes))
        path.write_text(f"{target}\n")

    def read_target(self, path: Path) -> Path | None:
        text = path.read_text().strip()
        return Path(text) if text else None


@pytest.fixture
def copier() -> RecordingCopier:
    return RecordingCopier()


@pytest.fixture
def failing_copier() -> RecordingCopier:
    return RecordingCopier(code=16)


@pytest.fixture
def shortcuts() -> FakeShortcuts:
    return FakeShortcuts()
