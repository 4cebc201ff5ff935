from __future__ import annotations

from pathlib import Path

from linksync.filesystem import path_exists
from linksync.trash import TrashService


def test_displace_moves_into_trash(tmp_path: Path) -> None:
    victim = tmp_path / "work" / "notes.txt"
    victim.parent.mkdir()
    victim.write_text("keep me\n")
    trash = TrashService(tmp_path / "trash", enabled=True)

    location = trash.displace(victim)

    assert not victim.exists()
    assert location is not None
    assert location.is_relative_to(tmp_path / "trash")
    assert location.read_text() == "keep me\n"


def test_displace_keeps_links_as_links(tmp_path: Path) -> None:
    target = tmp_path / "target"
    target.mkdir()
    (target / "data").write_text("x")
    link = tmp_path / "link"
    link.symlink_to(target, target_is_directory=True)
    trash = TrashService(tmp_path / "trash", enabled=True)

    location = trash.displace(link)

    assert not path_exists(link)
    assert location is not None and location.is_symlink()
    assert (target / "data").read_text() == "x"


def test_displace_avoids_collisions(tmp_path: Path) -> None:
    trash = TrashService(tmp_path / "trash", enabled=True)
    victim = tmp_path / "file.txt"

    victim.write_text("one")
    first = trash.displace(victim)
    victim.write_text("two")
    second = trash.displace(victim)

    assert first != second
    assert first.read_text() == "one"
    assert second.read_text() == "two"


def test_displace_deletes_when_disabled(tmp_path: Path) -> None:
    victim = tmp_path / "dir"
    (victim / "child").mkdir(parents=True)
    trash = TrashService(tmp_path / "trash", enabled=False)

    assert trash.displace(victim) is None
    assert not victim.exists()
    assert not (tmp_path / "trash").exists()


def test_displace_missing_path(tmp_path: Path) -> None:
    assert TrashService(tmp_path / "trash", enabled=True).displace(tmp_path / "missing") is None
