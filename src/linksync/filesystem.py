"""Filesystem helpers for linksync."""

from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path

logger = logging.getLogger(__name__)


def canonicalize(raw: str | os.PathLike[str] | Path, *, base_dir: Path | None = None) -> Path:
    """Return an absolute, comparison-stable ``Path``.

    Environment variables and ``~`` are expanded, relative paths are anchored at
    ``base_dir`` (or the working directory), ``.``/``..`` segments are collapsed
    and symlinks in the *parent* directories are resolved. The final component
    is never followed, so a destination that is itself a link keeps its own
    identity.
    """

    expanded = Path(os.path.expandvars(str(raw))).expanduser()
    if not expanded.is_absolute():
        expanded = (base_dir or Path.cwd()) / expanded
    normalized = Path(os.path.normpath(expanded))
    if normalized.parent == normalized:
        return normalized
    return normalized.parent.resolve(strict=False) / normalized.name


def path_key(path: Path) -> str:
    """Return the string used to compare canonical paths on this host."""

    return os.path.normcase(str(path))


def same_path(first: Path, second: Path) -> bool:
    return path_key(first) == path_key(second)


def path_exists(path: Path) -> bool:
    """Return ``True`` if anything, including a dangling link, occupies ``path``."""

    return path.exists() or path.is_symlink() or is_junction(path)


def is_junction(path: Path) -> bool:
    return os.path.isjunction(path)


def is_redirect(path: Path) -> bool:
    """Return ``True`` if ``path`` is a symbolic link or a junction."""

    return path.is_symlink() or is_junction(path)


def redirect_target(path: Path) -> Path | None:
    """Return the canonical target of a redirect, or ``None`` if ``path`` is not one."""

    if not is_redirect(path):
        return None
    raw = os.readlink(path)
    # Windows reports junction targets with the NT "\\?\" prefix.
    if raw.startswith("\\\\?\\"):
        raw = raw[4:]
    return canonicalize(raw, base_dir=path.parent)


def ensure_parent(path: Path) -> None:
    """Ensure the parent directory exists."""

    path.parent.mkdir(parents=True, exist_ok=True)


def remove_path(path: Path) -> None:
    """Delete ``path`` whether it is a file, directory, symlink or junction.

    Redirects are removed without touching what they point to.
    """

    if not path_exists(path):
        return
    if is_junction(path):
        os.rmdir(path)
    elif path.is_symlink() or not path.is_dir():
        path.unlink()
    else:
        shutil.rmtree(path, onexc=_clear_readonly)
    logger.debug("Removed '%s'", path)


def device_of(path: Path) -> int:
    """Return the device id of ``path`` or of its closest existing ancestor."""

    candidate = path
    while not candidate.exists() and candidate != candidate.parent:
        candidate = candidate.parent
    return candidate.stat().st_dev


def _clear_readonly(function, path, _excinfo) -> None:
    os.chmod(path, stat.S_IWRITE)
    function(path)
