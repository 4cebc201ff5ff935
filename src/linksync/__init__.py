"""Core package for the linksync project."""

from .cli import app, run
from .config import Config, Defaults, GroupConfig, ItemConfig, load_config
from .errors import (
    ConfigError,
    CopyFailedError,
    CrossVolumeError,
    LinkSyncError,
    SourceMissingError,
    StateCorruptError,
    UnknownModeError,
    UnsupportedTargetTypeError,
)
from .models import (
    ItemAction,
    ItemResult,
    Mode,
    RunReport,
    ShortcutAttributes,
    StatusEntry,
    StatusReport,
    TrackedEntry,
)
from .reconciler import Reconciler, RunAbortedError
from .state import StateStore

__all__ = [
    "Config",
    "Defaults",
    "GroupConfig",
    "ItemConfig",
    "load_config",
    "ConfigError",
    "CopyFailedError",
    "CrossVolumeError",
    "LinkSyncError",
    "SourceMissingError",
    "StateCorruptError",
    "UnknownModeError",
    "UnsupportedTargetTypeError",
    "ItemAction",
    "ItemResult",
    "Mode",
    "RunReport",
    "ShortcutAttributes",
    "StatusEntry",
    "StatusReport",
    "TrackedEntry",
    "Reconciler",
    "RunAbortedError",
    "StateStore",
    "app",
    "run",
]
