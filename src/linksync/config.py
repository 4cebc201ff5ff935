"""Configuration loading for linksync."""

from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .errors import ConfigError, UnknownModeError
from .filesystem import canonicalize, path_key
from .models import WINDOW_MODES, Mode, ShortcutAttributes

DEFAULT_CONFIG_FILENAME = "linksync.toml"
DEFAULT_TRASH_DIRNAME = ".linksync-trash"

_RAW_MODEL_CONFIG = ConfigDict(frozen=True, extra="forbid", alias_generator=to_camel, populate_by_name=True)


class _RawShortcut(BaseModel):
    model_config = _RAW_MODEL_CONFIG

    working_dir: str | None = Field(
        default=None,
        validation_alias=AliasChoices("working_dir", "workingDir", "working_directory", "workingDirectory"),
    )
    arguments: str | None = None
    description: str | None = None
    icon: str | None = None
    window: str | int | None = None


class _RawItem(BaseModel):
    model_config = _RAW_MODEL_CONFIG

    source: str
    destination: str
    mode: str | None = None
    shortcut_attributes: _RawShortcut | None = Field(
        default=None,
        validation_alias=AliasChoices("shortcut_attributes", "shortcutAttributes", "shortcut"),
    )


class _RawGroup(BaseModel):
    model_config = _RAW_MODEL_CONFIG

    enabled: bool = True
    mode: str | None = None
    items: list[_RawItem] = []


class _RawDefaults(BaseModel):
    model_config = _RAW_MODEL_CONFIG

    mode: str | None = None
    trash_enabled: bool = False
    trash_directory: str | None = Field(
        default=None,
        validation_alias=AliasChoices("trash_directory", "trashDirectory", "trash_dir", "trashDir"),
    )
    state_path: str | None = None


class Defaults(BaseModel):
    """Global configuration options."""

    model_config = ConfigDict(frozen=True)

    mode: Mode | None = None
    trash_enabled: bool = False
    trash_dir: Path
    state_path: Path


class ItemConfig(BaseModel):
    """A single desired mapping with its mode already resolved."""

    model_config = ConfigDict(frozen=True)

    source: Path
    destination: Path
    mode: Mode
    shortcut: ShortcutAttributes | None = None


class GroupConfig(BaseModel):
    """A named, ordered collection of items."""

    model_config = ConfigDict(frozen=True)

    name: str
    enabled: bool = True
    mode: Mode | None = None
    items: tuple[ItemConfig, ...] = ()


class Config(BaseModel):
    """Fully parsed configuration file."""

    model_config = ConfigDict(frozen=True)

    config_path: Path
    defaults: Defaults
    groups: Dict[str, GroupConfig]
    items_resolved: bool = True

    def group(self, name: str) -> GroupConfig:
        try:
            return self.groups[name]
        except KeyError as exc:
            raise ConfigError(f"Unknown group '{name}'") from exc


def resolve_mode(
    item_mode: str | None,
    group_mode: str | None,
    default_mode: str | None,
    *,
    where: str,
) -> Mode:
    """Resolve a mode with item > group > global default precedence."""

    for candidate in (item_mode, group_mode, default_mode):
        if candidate is None:
            continue
        try:
            return Mode.parse(candidate)
        except ValueError:
            raise UnknownModeError(f"{where}: unknown mode '{candidate}'") from None
    raise UnknownModeError(f"{where}: no mode set on the item, its group, or the defaults")


def normalize_window(value: str | int | None) -> int | None:
    """Return the numeric show code for a symbolic or numeric window mode."""

    if value is None or isinstance(value, int):
        return value
    text = value.strip().lower()
    if text.isdigit():
        return int(text)
    try:
        return WINDOW_MODES[text]
    except KeyError:
        raise ConfigError(f"Unknown window mode '{value}'; expected one of {', '.join(WINDOW_MODES)}") from None


def load_config(path: Path | None = None, *, resolve_items: bool = True) -> Config:
    """Load and validate a configuration file.

    Args:
        path: Optional path to a TOML or JSON file, or a directory containing
            ``linksync.toml``. Defaults to ``linksync.toml`` in the current
            working directory.
        resolve_items: When false, group items are left empty so that item
            modes and destinations are not validated. Enough for commands
            that only work from the persisted state.
    """

    config_path = _resolve_config_path(path)
    data = _read_document(config_path)
    return build_config(data, config_path=config_path, resolve_items=resolve_items)


def build_config(data: Mapping[str, Any], *, config_path: Path, resolve_items: bool = True) -> Config:
    """Validate an already parsed document into a ``Config``."""

    base_dir = config_path.parent

    defaults_section = data.get("defaults", data.get("globalDefaults"))
    if defaults_section is None:
        raise ConfigError("Configuration must define a [defaults] table")
    groups_section = data.get("groups")
    if not isinstance(groups_section, dict):
        raise ConfigError("Configuration must define a [groups] table")

    raw_defaults = _validate(_RawDefaults, defaults_section, where="defaults")
    defaults = Defaults(
        mode=Mode.parse(raw_defaults.mode) if _is_known(raw_defaults.mode) else None,
        trash_enabled=raw_defaults.trash_enabled,
        trash_dir=canonicalize(raw_defaults.trash_directory or DEFAULT_TRASH_DIRNAME, base_dir=base_dir),
        state_path=(
            canonicalize(raw_defaults.state_path, base_dir=base_dir)
            if raw_defaults.state_path
            else config_path.with_name(f".{config_path.stem}.state.toml")
        ),
    )

    groups: Dict[str, GroupConfig] = {}
    owners: dict[str, str] = {}
    for group_name, group_body in groups_section.items():
        raw_group = _validate(_RawGroup, group_body, where=f"group '{group_name}'")
        items: list[ItemConfig] = []
        for index, raw_item in enumerate(raw_group.items if resolve_items else ()):
            where = f"group '{group_name}' item {index + 1}"
            mode = resolve_mode(raw_item.mode, raw_group.mode, raw_defaults.mode, where=where)
            destination = canonicalize(raw_item.destination, base_dir=base_dir)

            key = path_key(destination)
            if key in owners:
                raise ConfigError(
                    f"{where}: destination '{destination}' is already managed by group '{owners[key]}'"
                )
            owners[key] = group_name

            items.append(
                ItemConfig(
                    source=canonicalize(raw_item.source, base_dir=base_dir),
                    destination=destination,
                    mode=mode,
                    shortcut=_shortcut_attributes(raw_item.shortcut_attributes) if mode is Mode.SHORTCUT else None,
                )
            )

        groups[group_name] = GroupConfig(
            name=group_name,
            enabled=raw_group.enabled,
            mode=Mode.parse(raw_group.mode) if _is_known(raw_group.mode) else None,
            items=tuple(items),
        )

    return Config(config_path=config_path, defaults=defaults, groups=groups, items_resolved=resolve_items)


def _shortcut_attributes(raw: _RawShortcut | None) -> ShortcutAttributes:
    if raw is None:
        return ShortcutAttributes()
    return ShortcutAttributes(
        working_dir=raw.working_dir,
        arguments=raw.arguments,
        description=raw.description,
        icon=raw.icon,
        window=normalize_window(raw.window),
    )


def _is_known(mode: str | None) -> bool:
    if mode is None:
        return False
    try:
        Mode.parse(mode)
    except ValueError:
        return False
    return True


def _validate(model: type[BaseModel], raw: Any, *, where: str) -> Any:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}" for error in exc.errors()
        )
        raise ConfigError(f"Invalid {where}: {problems}") from None


def _read_document(config_path: Path) -> Mapping[str, Any]:
    try:
        if config_path.suffix.lower() == ".json":
            with config_path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        else:
            with config_path.open("rb") as handle:
                data = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Could not parse '{config_path}': {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration '{config_path}' must contain a table at the top level")
    return data


def _resolve_config_path(path: Path | None) -> Path:
    if path is None:
        path = Path.cwd() / DEFAULT_CONFIG_FILENAME
    else:
        path = Path(path)

    if not path.exists():
        raise ConfigError(f"Configuration file '{path}' does not exist")
    if path.is_dir():
        candidate = path / DEFAULT_CONFIG_FILENAME
        if not candidate.exists():
            raise ConfigError(f"Expected to find '{DEFAULT_CONFIG_FILENAME}' inside '{path}', but none was located")
        path = candidate

    return path.resolve(strict=False)
