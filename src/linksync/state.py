"""Persisted record of the artifacts linksync owns."""

from __future__ import annotations

import tomllib
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from pydantic.alias_generators import to_camel
from tomli_w import dump as toml_dump

from .errors import StateCorruptError
from .filesystem import path_key
from .models import Mode, ShortcutAttributes, TrackedEntry

_SHORTCUT_FIELDS = ("working_dir", "arguments", "description", "icon", "window")


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class GroupState:
    """Tracked entries of a single group, keyed by canonical destination."""

    def __init__(self, name: str, updated_at: str | None = None) -> None:
        self.name = name
        self.updated_at = updated_at or utc_now()
        self._entries: dict[str, TrackedEntry] = {}

    def get(self, destination: Path) -> TrackedEntry | None:
        return self._entries.get(path_key(destination))

    def upsert(self, entry: TrackedEntry) -> None:
        if not entry.mode.is_link:
            raise ValueError(f"Mode '{entry.mode.value}' is never tracked")
        self._entries[path_key(entry.destination)] = entry

    def remove(self, destination: Path) -> None:
        self._entries.pop(path_key(destination), None)

    def entries(self) -> list[TrackedEntry]:
        return list(self._entries.values())

    def touch(self) -> None:
        self.updated_at = utc_now()

    def __len__(self) -> int:
        return len(self._entries)


class StateStore:
    """Tracks every artifact linksync believes it owns, grouped by config group."""

    def __init__(self, path: Path, config_path: Path | None = None) -> None:
        self.path = path
        self.config_path = config_path
        self.updated_at: str | None = None
        self._groups: dict[str, GroupState] = {}

    @classmethod
    def load(cls, path: Path, config_path: Path | None = None) -> "StateStore":
        """Read the state file, returning an empty store if it does not exist.

        Raises:
            StateCorruptError: the file exists but cannot be decoded.
        """

        store = cls(path, config_path)
        if not path.exists():
            return store

        try:
            with path.open("rb") as handle:
                data = tomllib.load(handle)
            store.updated_at = data.get("updatedAt")
            for name, body in data.get("groups", {}).items():
                group = store.group(name)
                group.updated_at = body.get("updatedAt", group.updated_at)
                for item in body.get("entries", {}).values():
                    group.upsert(cls._entry_from_dict(item))
        except (OSError, tomllib.TOMLDecodeError, KeyError, TypeError, ValueError, AttributeError) as exc:
            raise StateCorruptError(f"State file '{path}' is unreadable: {exc}") from exc

        return store

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.updated_at = utc_now()
        payload: dict[str, object] = {"updatedAt": self.updated_at}
        if self.config_path is not None:
            payload["configPath"] = str(self.config_path)
        payload["groups"] = {
            name: {
                "updatedAt": group.updated_at,
                "entries": {
                    str(entry.destination): self._entry_to_dict(entry)
                    for entry in sorted(group.entries(), key=lambda e: path_key(e.destination))
                },
            }
            for name, group in sorted(self._groups.items())
        }
        with self.path.open("wb") as handle:
            toml_dump(payload, handle)

    def group(self, name: str) -> GroupState:
        """Return the state of ``name``, creating an empty one if needed."""

        if name not in self._groups:
            self._groups[name] = GroupState(name)
        return self._groups[name]

    def has_group(self, name: str) -> bool:
        return name in self._groups

    def drop_group(self, name: str) -> None:
        self._groups.pop(name, None)

    def group_names(self) -> list[str]:
        return list(self._groups)

    def items(self) -> Iterable[tuple[str, TrackedEntry]]:
        for name, group in self._groups.items():
            for entry in group.entries():
                yield name, entry

    @staticmethod
    def _entry_from_dict(item: dict[str, object]) -> TrackedEntry:
        shortcut_raw = item.get("shortcutAttributes")
        shortcut = None
        if isinstance(shortcut_raw, dict):
            shortcut = ShortcutAttributes(**{key: shortcut_raw.get(to_camel(key)) for key in _SHORTCUT_FIELDS})
        return TrackedEntry(
            destination=Path(str(item["destination"])),
            source=Path(str(item["source"])),
            mode=Mode.parse(str(item["mode"])),
            updated_at=str(item["updatedAt"]),
            shortcut=shortcut,
        )

    @staticmethod
    def _entry_to_dict(entry: TrackedEntry) -> dict[str, object]:
        payload: dict[str, object] = {
            "destination": str(entry.destination),
            "source": str(entry.source),
            "mode": entry.mode.value,
            "updatedAt": entry.updated_at,
        }
        if entry.shortcut is not None:
            shortcut = {
                to_camel(key): getattr(entry.shortcut, key)
                for key in _SHORTCUT_FIELDS
                if getattr(entry.shortcut, key) is not None
            }
            payload["shortcutAttributes"] = shortcut
        return payload
