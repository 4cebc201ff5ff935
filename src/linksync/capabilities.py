"""Host capabilities the drivers delegate to: bulk copy and shortcuts.

Both are injected into the reconciler so decision logic can be exercised
against fakes. ``default_copier`` and ``default_shortcuts`` pick the host
implementation.
"""

from __future__ import annotations

import configparser
import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Protocol

from .filesystem import ensure_parent, remove_path
from .models import ShortcutAttributes

logger = logging.getLogger(__name__)

# robocopy-style return codes; anything at or above the threshold is a failure.
COPY_NOTHING = 0
COPY_COPIED = 1
COPY_EXTRAS = 2
COPY_FAILED = 8
COPY_FATAL = 16
COPY_FAILURE_THRESHOLD = COPY_FAILED


class CopyCapability(Protocol):
    def mirror(self, source: Path, destination: Path, *, exclude_older: bool) -> int:
        """Mirror ``source`` into ``destination`` and return a robocopy-style code."""


class ShortcutCapability(Protocol):
    extension: str

    def create(self, path: Path, target: Path, attributes: ShortcutAttributes) -> None:
        """Create or overwrite the shortcut at ``path``."""

    def read_target(self, path: Path) -> Path | None:
        """Return the stored target of the shortcut at ``path``, or ``None`` if unreadable."""


class RobocopyCopier:
    """Bulk copy through ``robocopy /MIR``."""

    def mirror(self, source: Path, destination: Path, *, exclude_older: bool) -> int:
        if source.is_dir():
            args = ["robocopy", str(source), str(destination), "/MIR"]
        elif source.name != destination.name:
            # robocopy cannot rename single files.
            return PythonCopier().mirror(source, destination, exclude_older=exclude_older)
        else:
            args = ["robocopy", str(source.parent), str(destination.parent), source.name]
        if exclude_older:
            args.append("/XO")
        args.extend(["/NFL", "/NDL", "/NJH", "/NJS", "/NP"])
        logger.debug("Running %s", " ".join(args))
        completed = subprocess.run(args, capture_output=True, text=True, check=False)
        return completed.returncode


class PythonCopier:
    """Portable mirror with the same return code semantics as robocopy.

    Files whose destination is strictly newer are skipped when
    ``exclude_older`` is set; files with matching size and mtime are treated
    as current. Destination entries missing from the source are removed.
    """

    def mirror(self, source: Path, destination: Path, *, exclude_older: bool) -> int:
        code = COPY_NOTHING
        try:
            if source.is_dir():
                code |= self._mirror_tree(source, destination, exclude_older=exclude_older)
            else:
                code |= self._copy_file(source, destination, exclude_older=exclude_older)
        except OSError as exc:
            logger.debug("Copy of '%s' failed: %s", source, exc)
            code |= COPY_FAILED
        return code

    def _mirror_tree(self, source: Path, destination: Path, *, exclude_older: bool) -> int:
        code = COPY_NOTHING
        if destination.is_symlink() or (destination.exists() and not destination.is_dir()):
            remove_path(destination)
            code |= COPY_EXTRAS
        destination.mkdir(parents=True, exist_ok=True)

        wanted = {child.name for child in source.iterdir()}
        for extra in destination.iterdir():
            if extra.name not in wanted:
                remove_path(extra)
                code |= COPY_EXTRAS

        for child in sorted(source.iterdir()):
            target = destination / child.name
            if child.is_dir():
                code |= self._mirror_tree(child, target, exclude_older=exclude_older)
            else:
                code |= self._copy_file(child, target, exclude_older=exclude_older)
        return code

    def _copy_file(self, source: Path, destination: Path, *, exclude_older: bool) -> int:
        replaced = COPY_NOTHING
        if destination.is_symlink() or destination.is_dir():
            # Never write through a link into a path outside the mirror.
            remove_path(destination)
            replaced = COPY_EXTRAS
        if destination.exists():
            source_stat = source.stat()
            destination_stat = destination.stat()
            if exclude_older and destination_stat.st_mtime_ns > source_stat.st_mtime_ns:
                return COPY_NOTHING
            if (
                destination_stat.st_mtime_ns == source_stat.st_mtime_ns
                and destination_stat.st_size == source_stat.st_size
            ):
                return COPY_NOTHING
        ensure_parent(destination)
        shutil.copy2(source, destination)
        logger.debug("Copied '%s' -> '%s'", source, destination)
        return COPY_COPIED | replaced


class WindowsShortcuts:
    """``.lnk`` shortcuts through the ``WScript.Shell`` automation object."""

    extension = ".lnk"

    def __init__(self) -> None:
        import win32com.client

        self._shell = win32com.client.Dispatch("WScript.Shell")

    def create(self, path: Path, target: Path, attributes: ShortcutAttributes) -> None:
        shortcut = self._shell.CreateShortcut(str(path))
        shortcut.TargetPath = str(target)
        if attributes.working_dir is not None:
            shortcut.WorkingDirectory = attributes.working_dir
        if attributes.arguments is not None:
            shortcut.Arguments = attributes.arguments
        if attributes.description is not None:
            shortcut.Description = attributes.description
        if attributes.icon is not None:
            shortcut.IconLocation = attributes.icon
        if attributes.window is not None:
            shortcut.WindowStyle = attributes.window
        shortcut.Save()

    def read_target(self, path: Path) -> Path | None:
        try:
            target = self._shell.CreateShortcut(str(path)).TargetPath
        except Exception:  # noqa: BLE001 - COM raises pywintypes.com_error
            return None
        return Path(target) if target else None


class DesktopEntryShortcuts:
    """freedesktop.org ``Type=Link`` desktop entries."""

    extension = ".desktop"
    _SECTION = "Desktop Entry"

    def create(self, path: Path, target: Path, attributes: ShortcutAttributes) -> None:
        parser = configparser.ConfigParser(interpolation=None)
        parser.optionxform = str  # type: ignore[assignment]
        body = {
            "Type": "Link",
            "Name": path.stem,
            "URL": str(target),
        }
        if attributes.description is not None:
            body["Comment"] = attributes.description
        if attributes.icon is not None:
            body["Icon"] = attributes.icon
        if attributes.working_dir is not None:
            body["Path"] = attributes.working_dir
        if attributes.arguments is not None:
            body["X-Linksync-Arguments"] = attributes.arguments
        if attributes.window is not None:
            body["X-Linksync-Window"] = str(attributes.window)
        parser[self._SECTION] = body
        with path.open("w", encoding="utf-8") as handle:
            parser.write(handle, space_around_delimiters=False)

    def read_target(self, path: Path) -> Path | None:
        parser = configparser.ConfigParser(interpolation=None)
        parser.optionxform = str  # type: ignore[assignment]
        try:
            parser.read(path, encoding="utf-8")
        except (configparser.Error, OSError, UnicodeDecodeError):
            return None
        if not parser.has_section(self._SECTION) or parser.get(self._SECTION, "Type", fallback=None) != "Link":
            return None
        url = parser.get(self._SECTION, "URL", fallback=None)
        return Path(url) if url else None


def default_copier() -> CopyCapability:
    if sys.platform == "win32" and shutil.which("robocopy"):
        return RobocopyCopier()
    return PythonCopier()


def default_shortcuts() -> ShortcutCapability:
    if os.name == "nt":
        return WindowsShortcuts()
    return DesktopEntryShortcuts()
