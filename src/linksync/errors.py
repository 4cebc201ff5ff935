"""Exception hierarchy for linksync."""

from __future__ import annotations

from pathlib import Path


class LinkSyncError(RuntimeError):
    """Base class for every error raised by linksync.

    ``item_scoped`` errors only affect the item being processed; everything
    else aborts the whole run.
    """

    item_scoped = False


class ConfigError(LinkSyncError):
    """Raised when a configuration file cannot be parsed or validated."""


class UnknownModeError(ConfigError):
    """Raised when an item's mode cannot be resolved to a known mode."""


class SourceMissingError(LinkSyncError):
    """Raised when the source of an item does not exist."""

    item_scoped = True

    def __init__(self, source: Path) -> None:
        super().__init__(f"Source path '{source}' does not exist")
        self.source = source


class UnsupportedTargetTypeError(LinkSyncError):
    """Raised when a mode cannot be applied to the kind of source given."""


class CrossVolumeError(LinkSyncError):
    """Raised when a hard link would span two volumes."""


class CopyFailedError(LinkSyncError):
    """Raised when the bulk-copy capability reports a failure."""

    def __init__(self, source: Path, destination: Path, code: int) -> None:
        super().__init__(f"Copying '{source}' to '{destination}' failed with code {code}")
        self.code = code


class StateCorruptError(LinkSyncError):
    """Raised when the persisted state cannot be read."""
