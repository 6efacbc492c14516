"""Commands reading and writing the settings of an index."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from idxtool.client import Console, SearchClient, print_json


def get_settings(client: SearchClient, index_name: str, console: Console) -> dict[str, Any]:
    """Print the settings of an index as JSON and return them."""
    settings = client.init_index(index_name).get_settings()
    print_json(console, settings)
    return settings


def _read_source(source: str, console: Console) -> str:
    if not source:
        raise ValueError("a settings file is required")
    if source == "-":
        return console.stdin.read()
    with open(source, encoding="utf-8") as handle:
        return handle.read()


def import_settings(
    client: SearchClient, index_name: str, source: str, console: Console
) -> dict[str, Any]:
    """Apply the settings held in a JSON file ("-" reads standard input)."""
    settings = json.loads(_read_source(source, console))
    if not isinstance(settings, dict):
        raise ValueError("settings must be a JSON object")
    client.init_index(index_name).set_settings(settings)
    if console.stdout_tty:
        console.write(f"{console.success_icon()} Imported settings on {index_name}\n")
    return settings


def set_settings(
    client: SearchClient,
    index_name: str,
    settings: Mapping[str, Any],
    forward_to_replicas: bool,
    console: Console,
) -> None:
    """Change settings of an index."""
    client.init_index(index_name).set_settings(settings, forward_to_replicas)
    if console.stdout_tty:
        console.write(f"{console.success_icon()} Set settings on {index_name}\n")