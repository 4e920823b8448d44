"""Plugin discovery — extends Importwright via entry points."""

from __future__ import annotations

import logging
from importlib.metadata import entry_points
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Entry point groups
CLIENT_GROUP = "importwright.clients"
SCHEMA_GROUP = "importwright.schemas"

ALL_GROUPS = [CLIENT_GROUP, SCHEMA_GROUP]


def discover_plugins(group: str | None = None) -> dict[str, dict[str, Any]]:
    """Discover installed plugins by entry point group.

    Returns dict of {group: {name: loaded_object}}.
    If group is specified, only returns that group.
    """
    groups_to_scan = [group] if group else ALL_GROUPS
    result: dict[str, dict[str, Any]] = {}

    for g in groups_to_scan:
        result[g] = {}
        for ep in entry_points(group=g):
            try:
                result[g][ep.name] = ep.load()
                logger.debug("Loaded plugin %s from group %s", ep.name, g)
            except Exception as exc:
                logger.warning("Failed to load plugin %s from %s: %s", ep.name, g, exc)

    return result


def discover_clients() -> dict[str, Any]:
    """Discover remote client plugins. Returns {name: client factory}."""
    return discover_plugins(CLIENT_GROUP)[CLIENT_GROUP]


def discover_schema_dirs() -> list[Path]:
    """Schema directories contributed by plugins, sorted by plugin name.

    A schema plugin entry point resolves to a directory path, or to a callable
    returning one.
    """
    plugins = discover_plugins(SCHEMA_GROUP)[SCHEMA_GROUP]
    dirs = []
    for name in sorted(plugins):
        target = plugins[name]
        dirs.append(Path(target() if callable(target) else target))
    return dirs


def list_plugins() -> dict[str, list[str]]:
    """List all discovered plugin names by group."""
    all_plugins = discover_plugins()
    return {group: list(plugins.keys()) for group, plugins in all_plugins.items()}
