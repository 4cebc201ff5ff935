from __future__ import annotations

import os
from pathlib import Path

import pytest

from linksync.filesystem import (
    canonicalize,
    ensure_parent,
    is_redirect,
    path_exists,
    redirect_target,
    remove_path,
    same_path,
)


def test_canonicalize_expands_and_anchors(tmp_path: Path, fake_home: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LINKSYNC_TEST_DIR", str(tmp_path / "env"))

    assert canonicalize("~/notes.txt") == fake_home / "notes.txt"
    assert canonicalize("$LINKSYNC_TEST_DIR/a/../b") == tmp_path / "env" / "b"
    assert canonicalize("rel/file", base_dir=tmp_path) == tmp_path / "rel" / "file"


def test_canonicalize_does_not_follow_final_link(tmp_path: Path) -> None:
    target = tmp_path / "target"
    target.mkdir()
    link = tmp_path / "link"
    link.symlink_to(target)

    assert canonicalize(link) == link
    assert canonicalize(link / "child") == target / "child"


def test_redirect_target_resolves_relative_links(tmp_path: Path) -> None:
    target = tmp_path / "data" / "file.txt"
    target.parent.mkdir()
    target.write_text("x")
    link = tmp_path / "links" / "file.txt"
    link.parent.mkdir()
    link.symlink_to(Path("..") / "data" / "file.txt")

    assert is_redirect(link)
    assert same_path(redirect_target(link), target)
    assert redirect_target(target) is None


def test_path_exists_sees_dangling_links(tmp_path: Path) -> None:
    link = tmp_path / "dangling"
    link.symlink_to(tmp_path / "missing")

    assert not link.exists()
    assert path_exists(link)


def test_remove_path_keeps_link_target(tmp_path: Path) -> None:
    target = tmp_path / "dir"
    (target / "child").mkdir(parents=True)
    (target / "child" / "data").write_text("x")
    link = tmp_path / "link"
    link.symlink_to(target, target_is_directory=True)

    remove_path(link)

    assert not path_exists(link)
    assert (target / "child" / "data").read_text() == "x"


def test_remove_path_directory(tmp_path: Path) -> None:
    directory = tmp_path / "dir"
    (directory / "child").mkdir(parents=True)
    readonly = directory / "child" / "data"
    readonly.write_text("x")
    os.chmod(readonly, 0o444)

    remove_path(directory)
    assert not directory.exists()


def test_remove_path_missing_noop(tmp_path: Path) -> None:
    remove_path(tmp_path / "missing")


def test_ensure_parent(tmp_path: Path) -> None:
    target = tmp_path / "deep" / "file.txt"
    ensure_parent(target)
    assert target.parent.exists()
