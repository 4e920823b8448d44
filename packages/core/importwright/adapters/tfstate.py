"""Terraform state client — treats a .tfstate file as the remote system.

Useful for migrating resources between configurations: every managed
instance in the state can be looked up by its ``id`` attribute.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

from importwright.adapters import RemoteClient


class TerraformStateClient(RemoteClient):
    """Reads Terraform state files (v3 and v4)."""

    name = "terraform"

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._index: dict[str, list[dict[str, Any]]] | None = None

    def _load(self) -> dict[str, list[dict[str, Any]]]:
        if self._index is None:
            data = json.loads(self._path.read_text())
            version = data.get("version", 4)
            resources = self._parse_v3(data) if version <= 3 else self._parse_v4(data)
            index: dict[str, list[dict[str, Any]]] = {}
            for res in resources:
                index.setdefault(res["type"], []).append(res["attributes"])
            self._index = index
        return self._index

    async def get_by_id(self, resource_type: str, external_id: str) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(attrs)
            for attrs in self._load().get(resource_type, [])
            if str(attrs.get("id", "")) == external_id
        ]

    # Parsing

    def _parse_v3(self, data: dict[str, Any]) -> list[dict[str, Any]]:
        resources = []
        for module in data.get("modules", []):
            for addr, res in module.get("resources", {}).items():
                if res.get("mode") == "data" or addr.startswith("data."):
                    continue
                primary = res.get("primary", {})
                attrs = dict(primary.get("attributes", {}))
                attrs.setdefault("id", primary.get("id", ""))
                resources.append({"type": res["type"], "attributes": attrs})
        return resources

    def _parse_v4(self, data: dict[str, Any]) -> list[dict[str, Any]]:
        resources = []
        for res in data.get("resources", []):
            if res.get("mode") == "data":
                continue
            for instance in res.get("instances", []):
                resources.append({"type": res["type"], "attributes": instance.get("attributes", {})})
        return resources
