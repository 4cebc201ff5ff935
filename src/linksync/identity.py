"""Predicates deciding whether a destination is the artifact linksync would create."""

from __future__ import annotations

import os
from pathlib import Path

from .capabilities import ShortcutCapability
from .filesystem import canonicalize, is_redirect, redirect_target, same_path


def redirect_points_to(destination: Path, source: Path) -> bool:
    """Return ``True`` if ``destination`` is a symlink or junction targeting ``source``."""

    target = redirect_target(destination)
    if target is None:
        return False
    return same_path(target, source)


def hardlink_shares_data(destination: Path, source: Path) -> bool:
    """Return ``True`` if ``destination`` is a plain file sharing its data with ``source``."""

    if is_redirect(destination) or not destination.is_file() or not source.is_file():
        return False
    try:
        return os.path.samefile(destination, source)
    except OSError:
        return False


def shortcut_targets(destination: Path, source: Path, shortcuts: ShortcutCapability) -> bool:
    """Return ``True`` if the shortcut at ``destination`` stores ``source`` as its target."""

    if is_redirect(destination) or not destination.is_file():
        return False
    target = shortcuts.read_target(destination)
    if target is None:
        return False
    return same_path(canonicalize(target, base_dir=destination.parent), source)

