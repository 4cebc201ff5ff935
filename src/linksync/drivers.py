"""Resource drivers: one per mode, each knowing how to create its artifact."""

from __future__ import annotations

import errno
import logging
import os
from pathlib import Path

from .capabilities import COPY_COPIED, COPY_EXTRAS, COPY_FAILURE_THRESHOLD, CopyCapability, ShortcutCapability
from .errors import CopyFailedError, CrossVolumeError, UnsupportedTargetTypeError
from .filesystem import device_of, ensure_parent, path_exists
from .identity import hardlink_shares_data, redirect_points_to, shortcut_targets
from .models import DesiredEntry, ItemAction, Mode, ShortcutAttributes

logger = logging.getLogger(__name__)


class LinkDriver:
    """Base for modes whose artifacts can be identified and are tracked in state."""

    mode: Mode

    def check(self, entry: DesiredEntry) -> None:
        """Raise if ``entry`` can never be created; runs before anything on disk changes."""

    def create(self, entry: DesiredEntry) -> None:
        self.check(entry)
        ensure_parent(entry.destination)
        self._create(entry)
        logger.debug("Created %s '%s' -> '%s'", self.mode.value, entry.destination, entry.source)

    def matches(self, source: Path, destination: Path) -> bool:
        raise NotImplementedError

    def _create(self, entry: DesiredEntry) -> None:
        raise NotImplementedError


class SymlinkDriver(LinkDriver):
    mode = Mode.SYMLINK

    def matches(self, source: Path, destination: Path) -> bool:
        return redirect_points_to(destination, source)

    def _create(self, entry: DesiredEntry) -> None:
        os.symlink(entry.source, entry.destination, target_is_directory=entry.source.is_dir())


class JunctionDriver(LinkDriver):
    """Directory redirect that needs no elevated privilege.

    Hosts without junctions get a directory symlink, their closest primitive.
    """

    mode = Mode.JUNCTION

    def matches(self, source: Path, destination: Path) -> bool:
        return redirect_points_to(destination, source)

    def check(self, entry: DesiredEntry) -> None:
        if not entry.source.is_dir():
            raise UnsupportedTargetTypeError(f"Junction source '{entry.source}' must be a directory")

    def _create(self, entry: DesiredEntry) -> None:
        if os.name == "nt":
            import _winapi

            _winapi.CreateJunction(str(entry.source), str(entry.destination))
        else:
            os.symlink(entry.source, entry.destination, target_is_directory=True)


class HardlinkDriver(LinkDriver):
    mode = Mode.HARDLINK

    def matches(self, source: Path, destination: Path) -> bool:
        return hardlink_shares_data(destination, source)

    def check(self, entry: DesiredEntry) -> None:
        if entry.source.is_dir():
            raise UnsupportedTargetTypeError(f"Hard link source '{entry.source}' must be a file, not a directory")
        if device_of(entry.source) != device_of(entry.destination.parent):
            raise CrossVolumeError(
                f"Cannot hard link '{entry.destination}' to '{entry.source}': they are on different volumes"
            )

    def _create(self, entry: DesiredEntry) -> None:
        try:
            os.link(entry.source, entry.destination)
        except OSError as exc:
            if exc.errno == errno.EXDEV:
                raise CrossVolumeError(
                    f"Cannot hard link '{entry.destination}' to '{entry.source}': they are on different volumes"
                ) from exc
            raise


class ShortcutDriver(LinkDriver):
    mode = Mode.SHORTCUT

    def __init__(self, shortcuts: ShortcutCapability) -> None:
        self.shortcuts = shortcuts

    def matches(self, source: Path, destination: Path) -> bool:
        return shortcut_targets(destination, source, self.shortcuts)

    def check(self, entry: DesiredEntry) -> None:
        if entry.destination.suffix.lower() != self.shortcuts.extension:
            raise UnsupportedTargetTypeError(
                f"Shortcut destination '{entry.destination}' must end in '{self.shortcuts.extension}'"
            )

    def _create(self, entry: DesiredEntry) -> None:
        attributes = getattr(entry, "attributes", None) or ShortcutAttributes()
        self.shortcuts.create(entry.destination, entry.source, attributes)


class CopyDriver:
    """Non-clobbering one-way mirror; destinations newer than the source are kept."""

    mode = Mode.COPY
    exclude_older = True

    def __init__(self, copier: CopyCapability) -> None:
        self.copier = copier

    def sync(self, entry: DesiredEntry) -> ItemAction:
        ensure_parent(entry.destination)
        code = self.copier.mirror(entry.source, entry.destination, exclude_older=self.exclude_older)
        if code >= COPY_FAILURE_THRESHOLD:
            raise CopyFailedError(entry.source, entry.destination, code)
        if code & (COPY_COPIED | COPY_EXTRAS):
            logger.debug("Synced '%s' -> '%s' (code %d)", entry.source, entry.destination, code)
            return ItemAction.COPIED
        return ItemAction.SKIPPED


class CopyOnceDriver(CopyDriver):
    """Copies only while the destination is absent; an existing destination is never touched."""

    mode = Mode.COPY_ONCE
    exclude_older = False

    def sync(self, entry: DesiredEntry) -> ItemAction:
        if path_exists(entry.destination):
            return ItemAction.SKIPPED
        return super().sync(entry)


def build_drivers(copier: CopyCapability, shortcuts: ShortcutCapability) -> dict[Mode, LinkDriver | CopyDriver]:
    return {
        Mode.SYMLINK: SymlinkDriver(),
        Mode.JUNCTION: JunctionDriver(),
        Mode.HARDLINK: HardlinkDriver(),
        Mode.COPY: CopyDriver(copier),
        Mode.COPY_ONCE: CopyOnceDriver(copier),
        Mode.SHORTCUT: ShortcutDriver(shortcuts),
    }
