from __future__ import annotations

import errno
import os
from pathlib import Path

import pytest

from linksync.capabilities import COPY_COPIED, DesktopEntryShortcuts, PythonCopier
from linksync.drivers import (
    CopyDriver,
    CopyOnceDriver,
    HardlinkDriver,
    JunctionDriver,
    ShortcutDriver,
    SymlinkDriver,
)
from linksync.errors import CopyFailedError, CrossVolumeError, UnsupportedTargetTypeError
from linksync.models import (
    CopyEntry,
    CopyOnceEntry,
    HardlinkEntry,
    ItemAction,
    JunctionEntry,
    ShortcutAttributes,
    ShortcutEntry,
    SymlinkEntry,
)


def _file(path: Path, text: str = "payload\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def test_symlink_driver_creates_parent_and_link(tmp_path: Path) -> None:
    source = _file(tmp_path / "src" / "file.txt")
    destination = tmp_path / "deep" / "nested" / "file.txt"
    driver = SymlinkDriver()

    driver.create(SymlinkEntry("g", source, destination))

    assert destination.is_symlink()
    assert driver.matches(source, destination)


def test_junction_requires_directory(tmp_path: Path) -> None:
    source = _file(tmp_path / "file.txt")

    with pytest.raises(UnsupportedTargetTypeError):
        JunctionDriver().create(JunctionEntry("g", source, tmp_path / "junction"))


def test_junction_redirects_directory(tmp_path: Path) -> None:
    source = tmp_path / "dir"
    source.mkdir()
    destination = tmp_path / "junction"
    driver = JunctionDriver()

    driver.create(JunctionEntry("g", source, destination))

    assert driver.matches(source, destination)
    assert destination.resolve() == source


def test_hardlink_rejects_directories(tmp_path: Path) -> None:
    source = tmp_path / "dir"
    source.mkdir()

    with pytest.raises(UnsupportedTargetTypeError):
        HardlinkDriver().create(HardlinkEntry("g", source, tmp_path / "link"))


def test_hardlink_cross_volume_detected_up_front(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    source = _file(tmp_path / "file.txt")
    destination = tmp_path / "other" / "file.txt"
    devices = {source: 1}
    monkeypatch.setattr("linksync.drivers.device_of", lambda path: devices.get(path, 2))

    with pytest.raises(CrossVolumeError):
        HardlinkDriver().create(HardlinkEntry("g", source, destination))
    assert not destination.exists()


def test_hardlink_exdev_becomes_cross_volume(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    source = _file(tmp_path / "file.txt")

    def refuse(*_args, **_kwargs):
        raise OSError(errno.EXDEV, "Invalid cross-device link")

    monkeypatch.setattr("linksync.drivers.os.link", refuse)

    with pytest.raises(CrossVolumeError):
        HardlinkDriver().create(HardlinkEntry("g", source, tmp_path / "link.txt"))


def test_hardlink_shares_data(tmp_path: Path) -> None:
    source = _file(tmp_path / "file.txt")
    destination = tmp_path / "sub" / "file.txt"
    driver = HardlinkDriver()

    driver.create(HardlinkEntry("g", source, destination))

    assert driver.matches(source, destination)
    assert os.stat(destination).st_nlink == 2


def test_shortcut_driver_requires_extension(tmp_path: Path, shortcuts) -> None:
    source = _file(tmp_path / "tool.exe")
    driver = ShortcutDriver(shortcuts)

    with pytest.raises(UnsupportedTargetTypeError):
        driver.create(ShortcutEntry("g", source, tmp_path / "Tool.url"))

    attributes = ShortcutAttributes(arguments="--fast", window=7)
    driver.create(ShortcutEntry("g", source, tmp_path / "Desktop" / "Tool.LNK", attributes))

    assert shortcuts.created == [(tmp_path / "Desktop" / "Tool.LNK", source, attributes)]
    assert driver.matches(source, tmp_path / "Desktop" / "Tool.LNK")


def test_desktop_entry_shortcuts_round_trip(tmp_path: Path) -> None:
    capability = DesktopEntryShortcuts()
    target = _file(tmp_path / "notes.txt")
    shortcut = tmp_path / "Notes.desktop"

    capability.create(shortcut, target, ShortcutAttributes(description="My notes", window=3))

    assert "Type=Link" in shortcut.read_text()
    assert capability.read_target(shortcut) == target
    assert capability.read_target(_file(tmp_path / "junk.desktop", "not an ini file")) is None


def test_copy_driver_raises_on_failure_code(tmp_path: Path, failing_copier) -> None:
    source = _file(tmp_path / "src" / "file.txt")

    with pytest.raises(CopyFailedError) as excinfo:
        CopyDriver(failing_copier).sync(CopyEntry("g", source, tmp_path / "dst" / "file.txt"))

    assert excinfo.value.code == 16
    assert failing_copier.calls == [(source, tmp_path / "dst" / "file.txt", True)]


def test_copy_once_skips_existing_destination(tmp_path: Path, copier) -> None:
    source = _file(tmp_path / "src" / "file.txt", "new\n")
    destination = _file(tmp_path / "dst" / "file.txt", "old\n")

    action = CopyOnceDriver(copier).sync(CopyOnceEntry("g", source, destination))

    assert action is ItemAction.SKIPPED
    assert copier.calls == []
    assert destination.read_text() == "old\n"


def test_copy_once_copies_when_absent(tmp_path: Path, copier) -> None:
    source = tmp_path / "src"
    _file(source / "a" / "b.txt")
    destination = tmp_path / "dst"

    action = CopyOnceDriver(copier).sync(CopyOnceEntry("g", source, destination))

    assert action is ItemAction.COPIED
    assert copier.calls == [(source, destination, False)]
    assert (destination / "a" / "b.txt").read_text() == "payload\n"


def test_python_copier_respects_newer_destination(tmp_path: Path) -> None:
    source = _file(tmp_path / "src" / "file.txt", "source\n")
    destination = _file(tmp_path / "dst" / "file.txt", "edited\n")
    os.utime(source, ns=(1_000_000_000, 1_000_000_000))
    os.utime(destination, ns=(2_000_000_000, 2_000_000_000))

    code = PythonCopier().mirror(tmp_path / "src", tmp_path / "dst", exclude_older=True)

    assert code == 0
    assert destination.read_text() == "edited\n"


def test_python_copier_refreshes_older_destination_and_purges_extras(tmp_path: Path) -> None:
    source = _file(tmp_path / "src" / "file.txt", "source\n")
    destination = _file(tmp_path / "dst" / "file.txt", "stale\n")
    extra = _file(tmp_path / "dst" / "extra.txt")
    os.utime(destination, ns=(1_000_000_000, 1_000_000_000))
    os.utime(source, ns=(2_000_000_000, 2_000_000_000))

    code = PythonCopier().mirror(tmp_path / "src", tmp_path / "dst", exclude_older=True)

    assert code & COPY_COPIED
    assert destination.read_text() == "source\n"
    assert not extra.exists()
    assert PythonCopier().mirror(tmp_path / "src", tmp_path / "dst", exclude_older=True) == 0


def test_python_copier_does_not_write_through_destination_links(tmp_path: Path) -> None:
    _file(tmp_path / "src" / "file.txt", "source\n")
    outside = _file(tmp_path / "outside.txt", "keep me\n")
    (tmp_path / "dst").mkdir()
    link = tmp_path / "dst" / "file.txt"
    link.symlink_to(outside)

    code = PythonCopier().mirror(tmp_path / "src", tmp_path / "dst", exclude_older=False)

    assert code & COPY_COPIED
    assert not link.is_symlink()
    assert link.read_text() == "source\n"
    assert outside.read_text() == "keep me\n"
