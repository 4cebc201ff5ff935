"""Reconciliation of desired artifacts against disk and persisted state."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from .capabilities import CopyCapability, ShortcutCapability, default_copier, default_shortcuts
from .config import Config, GroupConfig, ItemConfig
from .drivers import CopyDriver, LinkDriver, build_drivers
from .errors import ConfigError, LinkSyncError, SourceMissingError, StateCorruptError
from .filesystem import is_redirect, path_exists, path_key
from .models import (
    ENTRY_TYPES,
    DesiredEntry,
    ItemAction,
    ItemResult,
    Mode,
    RunReport,
    ShortcutAttributes,
    StatusEntry,
    StatusReport,
    TrackedEntry,
)
from .state import GroupState, StateStore, utc_now
from .trash import TrashService

logger = logging.getLogger(__name__)


class RunAbortedError(LinkSyncError):
    """Raised when a fatal error stops a run; ``report`` holds what happened before it."""

    def __init__(self, report: RunReport, cause: Exception) -> None:
        super().__init__(str(cause))
        self.report = report
        self.cause = cause


class Reconciler:
    """Coordinates cleanup, apply, unlink and status using the persisted state.

    Within a group, cleanup of destinations that are no longer desired runs
    before any desired entry is applied. State is written once, after every
    selected group succeeded; a fatal error leaves the state file untouched.
    """

    def __init__(
        self,
        config: Config,
        *,
        copier: CopyCapability | None = None,
        shortcuts: ShortcutCapability | None = None,
    ) -> None:
        self.config = config
        self._warnings: list[str] = []
        self._state_error: str | None = None
        self.state = self._load_state()
        self.trash = TrashService(config.defaults.trash_dir, enabled=config.defaults.trash_enabled)
        self.drivers = build_drivers(copier or default_copier(), shortcuts or default_shortcuts())

    def apply(self, groups: Iterable[str] | None = None) -> RunReport:
        """Converge the selected groups (all enabled groups by default)."""

        if not self.config.items_resolved:
            raise ConfigError("Configuration was loaded without its items; cannot apply")
        selected = self._select_groups(groups)
        report = RunReport()

        try:
            for group in selected:
                self._apply_group(group, report)
        except (LinkSyncError, OSError) as exc:
            raise RunAbortedError(report, exc) from exc

        self.state.save()
        return report

    def unlink(self, groups: Iterable[str] | None = None) -> RunReport:
        """Remove every tracked artifact of the selected groups and forget them.

        Without ``groups`` every tracked group is torn down, including groups
        that are no longer present in the configuration.
        """

        names = list(groups) if groups else self.state.group_names()
        report = RunReport()

        try:
            for name in names:
                if not self.state.has_group(name):
                    self._warn(f"Group '{name}' has no tracked entries")
                    continue
                tracked = self.state.group(name)
                for entry in tracked.entries():
                    self._cleanup(name, tracked, entry, report)
                self.state.drop_group(name)
        except (LinkSyncError, OSError) as exc:
            raise RunAbortedError(report, exc) from exc

        self.state.save()
        return report

    def status(self) -> StatusReport:
        """Report whether each tracked destination is present on disk."""

        if self._state_error is not None:
            return StatusReport(entries=(), available=False, details=self._state_error)

        entries = [
            StatusEntry(
                group=name,
                entry=entry,
                exists=path_exists(entry.destination),
                orphaned=name not in self.config.groups,
            )
            for name, entry in self.state.items()
        ]
        entries.sort(key=lambda item: (item.group, path_key(item.entry.destination)))
        return StatusReport(entries=tuple(entries))

    def pull_warnings(self) -> list[str]:
        messages = list(self._warnings)
        self._warnings.clear()
        return messages

    # ------------------------------------------------------------------
    # Internal helpers

    def _load_state(self) -> StateStore:
        path = self.config.defaults.state_path
        try:
            return StateStore.load(path, self.config.config_path)
        except StateCorruptError as exc:
            self._state_error = str(exc)
            self._warn(f"{exc}; continuing with empty state")
            return StateStore(path, self.config.config_path)

    def _select_groups(self, groups: Iterable[str] | None) -> Sequence[GroupConfig]:
        if groups is None:
            return [group for group in self.config.groups.values() if group.enabled]
        return [self.config.group(name) for name in groups]

    def _apply_group(self, group: GroupConfig, report: RunReport) -> None:
        tracked = self.state.group(group.name)

        desired: dict[str, DesiredEntry] = {}
        for item in group.items:
            with self._recording_failure(report, group.name, item.destination, item.mode):
                desired[path_key(item.destination)] = self._desired_entry(group.name, item)

        for tracked_entry in tracked.entries():
            if path_key(tracked_entry.destination) not in desired:
                self._cleanup(group.name, tracked, tracked_entry, report)

        for entry in desired.values():
            self._apply_entry(entry, tracked, report)

        if len(tracked):
            tracked.touch()
        else:
            self.state.drop_group(group.name)

    def _desired_entry(self, group: str, item: ItemConfig) -> DesiredEntry:
        if not path_exists(item.source):
            raise SourceMissingError(item.source)
        extra = {"attributes": item.shortcut or ShortcutAttributes()} if item.mode is Mode.SHORTCUT else {}
        return ENTRY_TYPES[item.mode](group=group, source=item.source, destination=item.destination, **extra)

    def _cleanup(self, group: str, tracked: GroupState, entry: TrackedEntry, report: RunReport) -> None:
        destination = entry.destination

        with self._recording_failure(report, group, destination, entry.mode):
            if not path_exists(destination):
                tracked.remove(destination)
                report.add(ItemResult(group, destination, entry.mode, ItemAction.FORGOTTEN, "Destination already gone"))
                return

            driver = self.drivers[entry.mode]
            if isinstance(driver, LinkDriver) and driver.matches(entry.source, destination):
                location = self.trash.displace(destination)
                tracked.remove(destination)
                details = f"Moved to '{location}'" if location is not None else None
                report.add(ItemResult(group, destination, entry.mode, ItemAction.REMOVED, details))
                return

            self._warn(
                f"[{group}] '{destination}' is no longer the {entry.mode.value} to '{entry.source}' "
                "recorded in state; leaving it in place"
            )
            tracked.remove(destination)
            report.add(ItemResult(group, destination, entry.mode, ItemAction.FORGOTTEN, "Left in place: changed on disk"))

    def _apply_entry(self, entry: DesiredEntry, tracked: GroupState, report: RunReport) -> None:
        destination = entry.destination
        driver = self.drivers[entry.mode]

        with self._recording_failure(report, entry.group, destination, entry.mode):
            if isinstance(driver, CopyDriver):
                if entry.mode is Mode.COPY and is_redirect(destination):
                    self.trash.displace(destination)
                action = driver.sync(entry)
                tracked.remove(destination)
                report.add(ItemResult(entry.group, destination, entry.mode, action))
                return

            if not path_exists(destination):
                driver.create(entry)
                action = ItemAction.CREATED
            elif driver.matches(entry.source, destination):
                action = ItemAction.SKIPPED
            else:
                driver.check(entry)
                self.trash.displace(destination)
                driver.create(entry)
                action = ItemAction.REPLACED

            tracked.upsert(
                TrackedEntry(
                    destination=destination,
                    source=entry.source,
                    mode=entry.mode,
                    updated_at=utc_now(),
                    shortcut=getattr(entry, "attributes", None),
                )
            )
            report.add(ItemResult(entry.group, destination, entry.mode, action))

    @contextmanager
    def _recording_failure(
        self, report: RunReport, group: str, destination: Path, mode: Mode
    ) -> Iterator[None]:
        try:
            yield
        except (LinkSyncError, OSError) as exc:
            if isinstance(exc, LinkSyncError) and exc.item_scoped:
                self._warn(f"[{group}] {exc}; skipping '{destination}'")
                report.add(ItemResult(group, destination, mode, ItemAction.WARNED, str(exc)))
                return
            report.add(ItemResult(group, destination, mode, ItemAction.FAILED, str(exc)))
            raise

    def _warn(self, message: str) -> None:
        logger.debug("warning: %s", message)
        self._warnings.append(message)
