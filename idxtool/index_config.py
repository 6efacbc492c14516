"""Export and import of index configurations: settings, rules and synonyms."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any

from idxtool.client import AlgoliaError, Console, Index

SCOPES = ("settings", "synonyms", "rules")


class ConfigError(ValueError):
    """Invalid options or an unusable configuration file."""


@dataclass
class ExportOptions:
    """Options of an index configuration export."""

    index_name: str = ""
    existing_indices: list[str] = field(default_factory=list)
    scope: list[str] = field(default_factory=list)
    directory: str = ""


@dataclass
class ImportConfig:
    """Content of a configuration file to import."""

    settings: dict[str, Any] | None = None
    rules: list[dict[str, Any]] = field(default_factory=list)
    synonyms: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class ImportOptions:
    """Options of an index configuration import."""

    file_path: str = ""
    scope: list[str] = field(default_factory=list)
    index_name: str = ""
    clear_existing_synonyms: bool = False
    clear_existing_rules: bool = False
    forward_settings_to_replicas: bool = False
    forward_synonyms_to_replicas: bool = False
    forward_rules_to_replicas: bool = False
    do_confirm: bool = False
    import_config: ImportConfig = field(default_factory=ImportConfig)


@dataclass
class ExportConfig:
    """Configuration of an index as written by an export."""

    settings: dict[str, Any] | None = None
    rules: list[Any] = field(default_factory=list)
    synonyms: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON shape, leaving out empty parts."""
        data: dict[str, Any] = {}
        if self.settings is not None:
            data["settings"] = self.settings
        if self.rules:
            data["rules"] = list(self.rules)
        if self.synonyms:
            data["synonyms"] = list(self.synonyms)
        return data


def _readable(items: list[str]) -> str:
    if len(items) <= 1:
        return "".join(items)
    return f"{', '.join(items[:-1])} and {items[-1]}"


def validate_export_config_flags(opts: ExportOptions, console: Console) -> None:
    """Raise ConfigError unless the index to export exists."""
    if opts.index_name not in opts.existing_indices:
        raise ConfigError(f"{console.failure_icon()} Indice '{opts.index_name}' doesn't exist")


def _describe_os_error(exc: OSError) -> str:
    return exc.strerror.lower() if exc.strerror else str(exc)


def _list_of_objects(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ValueError(f'"{key}" must be a list of objects')
    return value


def read_config_from_file(path: str, console: Console) -> ImportConfig:
    """Read and parse a configuration file."""
    icon = console.failure_icon()
    try:
        handle = open(path, encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            f"{icon} An error occurred when opening file: open {path}: {_describe_os_error(exc)}"
        ) from exc
    with handle:
        try:
            raw = handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"{icon} An error occurred when reading JSON file: {exc}") from exc
    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("the configuration must be a JSON object")
        settings = data.get("settings")
        if settings is not None and not isinstance(settings, dict):
            raise ValueError('"settings" must be an object')
        return ImportConfig(
            settings=settings,
            rules=_list_of_objects(data, "rules"),
            synonyms=_list_of_objects(data, "synonyms"),
        )
    except ValueError as exc:
        raise ConfigError(f"{icon} An error occurred when parsing JSON file: {exc}") from exc


def validate_import_config_flags(opts: ImportOptions, console: Console) -> None:
    """Load the configuration file into ``opts`` and check it against the options."""
    icon = console.failure_icon()
    if not opts.file_path:
        raise ConfigError(f"{icon} Config file is required")

    opts.import_config = read_config_from_file(opts.file_path, console)

    if not opts.scope:
        raise ConfigError(f"{icon} Scope is required")
    if opts.clear_existing_rules and "rules" not in opts.scope:
        raise ConfigError(f"{icon} Cannot clear existing rules if rules are not in scope")
    if opts.clear_existing_synonyms and "synonyms" not in opts.scope:
        raise ConfigError(f"{icon} Cannot clear existing synonyms if synonyms are not in scope")

    loaded = opts.import_config
    if (
        ("settings" in opts.scope and loaded.settings is not None)
        or ("rules" in opts.scope and loaded.rules)
        or ("synonyms" in opts.scope and loaded.synonyms)
    ):
        return
    raise ConfigError(f"{icon} No {_readable(opts.scope)} found in config file")


def config_file_name(path: str, index_name: str, app_id: str) -> str:
    """Name of an export file, stamped with the current Unix time."""
    root = f"{path}/" if path else ""
    return f"{root}export-{index_name}-{app_id}-{int(time.time())}.json"


def _collect(index: Index, kind: str) -> list[dict[str, Any]]:
    browse = index.browse_synonyms if kind == "synonyms" else index.browse_rules
    try:
        items = browse()
    except AlgoliaError as exc:
        raise AlgoliaError(f"cannot browse source index {kind}: {exc}", exc.status) from exc
    try:
        return list(items)
    except AlgoliaError as exc:
        raise AlgoliaError(
            f"error while iterating source index {kind}: {exc}", exc.status
        ) from exc


def get_synonyms(index: Index) -> list[dict[str, Any]]:
    """Every synonym of an index."""
    return _collect(index, "synonyms")


def get_rules(index: Index) -> list[dict[str, Any]]:
    """Every rule of an index."""
    return _collect(index, "rules")


def get_index_config(index: Index, scope: list[str], console: Console) -> ExportConfig:
    """Fetch the parts of an index configuration named in ``scope``."""
    icon = console.failure_icon()
    config = ExportConfig()
    if "synonyms" in scope:
        try:
            config.synonyms = get_synonyms(index)
        except AlgoliaError as exc:
            raise ConfigError(f"{icon} An error occurred when retrieving synonyms: {exc}") from exc
    if "rules" in scope:
        try:
            config.rules = get_rules(index)
        except AlgoliaError as exc:
            raise ConfigError(f"{icon} An error occurred when retrieving rules: {exc}") from exc
    if "settings" in scope:
        try:
            config.settings = index.get_settings()
        except AlgoliaError as exc:
            raise ConfigError(f"{icon} An error occurred when retrieving settings: {exc}") from exc
    if not config.rules and not config.synonyms and config.settings is None:
        raise ConfigError(f"{icon} No config to export")
    return config


def _ask_multi_select(
    console: Console, message: str, default: list[str], options: list[str]
) -> list[str]:
    prompt = f"{message} [{', '.join(options)}]"
    while True:
        answer = console.ask(prompt, ",".join(default))
        items = [item.strip() for item in answer.split(",") if item.strip()]
        if items and all(item in options for item in items):
            return list(dict.fromkeys(items))


def ask_export_config(opts: ExportOptions, console: Console) -> None:
    """Prompt for the scope and the target directory of an export."""
    opts.scope = _ask_multi_select(
        console, "scope (comma separated):", opts.scope, ["settings", "synonyms", "rules"]
    )
    opts.directory = console.ask("directory (default to current folder)", opts.directory)


def ask_import_config(opts: ImportOptions, console: Console) -> None:
    """Prompt for the file, the scope and the options of an import."""
    while True:
        path = console.ask("file (path of the .json config file)", opts.file_path)
        if path:
            opts.file_path = path
            break
    opts.import_config = read_config_from_file(opts.file_path, console)

    options: list[str] = []
    if opts.import_config.rules:
        options.append("rules")
    if opts.import_config.synonyms:
        options.append("synonyms")
    if opts.import_config.settings is not None:
        options.append("settings")

    previous = opts.scope
    opts.scope = []
    opts.scope = _ask_multi_select(console, "scope (comma separated):", previous, options)

    if "synonyms" in opts.scope:
        opts.clear_existing_synonyms = console.confirm(
            "Clear and replace existing synonyms? (default: no)"
        )
        opts.forward_synonyms_to_replicas = console.confirm(
            "Forward synonyms to replicas? (default: no)"
        )
    if "rules" in opts.scope:
        opts.clear_existing_rules = console.confirm(
            "Clear and replace existing rules? (default: no)"
        )
        opts.forward_rules_to_replicas = console.confirm(
            "Forward rules to replicas? (default: no)"
        )
    if "settings" in opts.scope:
        opts.forward_settings_to_replicas = console.confirm(
            "Forward settings to replicas? (default: no)"
        )