"""Shared models and enums for linksync."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import ClassVar, Union

WINDOW_MODES = {"normal": 1, "maximized": 3, "minimized": 7}


class Mode(str, Enum):
    """Kinds of artifacts linksync can manage."""

    SYMLINK = "symlink"
    JUNCTION = "junction"
    HARDLINK = "hardlink"
    COPY = "copy"
    COPY_ONCE = "copyOnce"
    SHORTCUT = "shortcut"

    @classmethod
    def parse(cls, value: str) -> "Mode":
        """Return the mode named by ``value``, ignoring case."""

        lowered = value.strip().lower()
        for mode in cls:
            if mode.value.lower() == lowered:
                return mode
        raise ValueError(value)

    @property
    def is_link(self) -> bool:
        """``True`` for modes whose artifacts are tracked in state."""

        return self not in (Mode.COPY, Mode.COPY_ONCE)


@dataclass(frozen=True, slots=True)
class ShortcutAttributes:
    """Launch attributes stored in a shortcut."""

    working_dir: str | None = None
    arguments: str | None = None
    description: str | None = None
    icon: str | None = None
    window: int | None = None


@dataclass(frozen=True, slots=True)
class _DesiredEntry:
    group: str
    source: Path
    destination: Path

    mode: ClassVar[Mode]


@dataclass(frozen=True, slots=True)
class SymlinkEntry(_DesiredEntry):
    mode: ClassVar[Mode] = Mode.SYMLINK


@dataclass(frozen=True, slots=True)
class JunctionEntry(_DesiredEntry):
    mode: ClassVar[Mode] = Mode.JUNCTION


@dataclass(frozen=True, slots=True)
class HardlinkEntry(_DesiredEntry):
    mode: ClassVar[Mode] = Mode.HARDLINK


@dataclass(frozen=True, slots=True)
class CopyEntry(_DesiredEntry):
    mode: ClassVar[Mode] = Mode.COPY


@dataclass(frozen=True, slots=True)
class CopyOnceEntry(_DesiredEntry):
    mode: ClassVar[Mode] = Mode.COPY_ONCE


@dataclass(frozen=True, slots=True)
class ShortcutEntry(_DesiredEntry):
    attributes: ShortcutAttributes = field(default_factory=ShortcutAttributes)

    mode: ClassVar[Mode] = Mode.SHORTCUT


DesiredEntry = Union[SymlinkEntry, JunctionEntry, HardlinkEntry, CopyEntry, CopyOnceEntry, ShortcutEntry]

ENTRY_TYPES: dict[Mode, type] = {
    Mode.SYMLINK: SymlinkEntry,
    Mode.JUNCTION: JunctionEntry,
    Mode.HARDLINK: HardlinkEntry,
    Mode.COPY: CopyEntry,
    Mode.COPY_ONCE: CopyOnceEntry,
    Mode.SHORTCUT: ShortcutEntry,
}


@dataclass(frozen=True, slots=True)
class TrackedEntry:
    """Recorded metadata about an artifact linksync created or confirmed."""

    destination: Path
    source: Path
    mode: Mode
    updated_at: str
    shortcut: ShortcutAttributes | None = None


class ItemAction(str, Enum):
    """Outcome of processing a single destination."""

    CREATED = "created"
    REPLACED = "replaced"
    SKIPPED = "skipped"
    COPIED = "copied"
    REMOVED = "removed"
    FORGOTTEN = "forgotten"
    WARNED = "warned"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ItemResult:
    """Result emitted for a destination during apply or unlink."""

    group: str
    destination: Path
    mode: Mode | None
    action: ItemAction
    details: str | None = None


@dataclass(slots=True)
class RunReport:
    """Ordered collection of item results for one run."""

    results: list[ItemResult] = field(default_factory=list)

    def add(self, result: ItemResult) -> ItemResult:
        self.results.append(result)
        return result

    def by_action(self, action: ItemAction) -> list[ItemResult]:
        return [result for result in self.results if result.action is action]

    @property
    def mutated(self) -> bool:
        """``True`` when any result changed the filesystem."""

        return any(
            result.action in (ItemAction.CREATED, ItemAction.REPLACED, ItemAction.COPIED, ItemAction.REMOVED)
            for result in self.results
        )


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """Presence information for a tracked destination."""

    group: str
    entry: TrackedEntry
    exists: bool
    orphaned: bool = False


@dataclass(frozen=True, slots=True)
class StatusReport:
    """Collection of status results; ``available`` is ``False`` when state could not be read."""

    entries: tuple[StatusEntry, ...]
    available: bool = True
    details: str | None = None
