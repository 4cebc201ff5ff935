"""Displacement of destinations into a trash directory."""

from __future__ import annotations

import logging
import os
import shutil
from datetime import datetime
from pathlib import Path

from .filesystem import is_junction, path_exists, remove_path

logger = logging.getLogger(__name__)


class TrashService:
    """Moves displaced destinations aside, or deletes them when trash is disabled.

    Trashed paths land under ``<trash_dir>/<timestamp>/<drive>/<path>`` so the
    original location can be reconstructed by hand.
    """

    def __init__(self, trash_dir: Path, *, enabled: bool) -> None:
        self.trash_dir = trash_dir
        self.enabled = enabled
        self._stamp: str | None = None

    def displace(self, path: Path) -> Path | None:
        """Remove ``path`` from its location.

        Returns the trash location, or ``None`` if the path was deleted or
        did not exist.
        """

        if not path_exists(path):
            return None
        if not self.enabled:
            remove_path(path)
            return None

        target = self._trash_location(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        if is_junction(path):
            # Moving a junction across volumes would copy its target's contents.
            os.rename(path, target)
        else:
            # shutil.move recreates symlinks rather than following them.
            shutil.move(str(path), str(target))
        logger.debug("Moved '%s' to trash at '%s'", path, target)
        return target

    def _trash_location(self, path: Path) -> Path:
        if self._stamp is None:
            self._stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        partition = path.anchor.replace(os.sep, "").replace(":", "") or "root"
        relative = Path(*path.parts[1:]) if len(path.parts) > 1 else Path(path.name)

        target = self.trash_dir / self._stamp / partition / relative
        counter = 1
        candidate = target
        while path_exists(candidate):
            counter += 1
            candidate = target.with_name(f"{target.name}_{counter}")
        return candidate

