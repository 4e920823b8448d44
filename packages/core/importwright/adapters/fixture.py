"""In-memory remote client, optionally loaded from a YAML/JSON fixture file.

Fixture format::

    id_fields:            # optional; attribute holding the external id per type
      aws_s3_bucket: bucket
    resources:
      aws_s3_bucket:
        - bucket: logs
          arn: arn:aws:s3:::logs
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

import yaml

from importwright.adapters import RemoteClient
from importwright.errors import RemoteError


class FixtureClient(RemoteClient):
    name = "fixture"

    def __init__(
        self,
        resources: dict[str, list[dict[str, Any]]] | None = None,
        id_fields: dict[str, str] | None = None,
    ):
        self._resources = {k: list(v or []) for k, v in (resources or {}).items()}
        self._id_fields = dict(id_fields or {})
        self.calls: list[tuple[str, str]] = []

    @classmethod
    def from_file(cls, path: str | Path) -> FixtureClient:
        p = Path(path)
        text = p.read_text()
        data = json.loads(text) if p.suffix == ".json" else yaml.safe_load(text)
        if not isinstance(data, dict):
            raise ValueError(f"{p.name}: expected a mapping with a 'resources' key")
        return cls(resources=data.get("resources") or {}, id_fields=data.get("id_fields") or {})

    def add(self, resource_type: str, attributes: dict[str, Any]) -> None:
        self._resources.setdefault(resource_type, []).append(attributes)

    async def get_by_id(self, resource_type: str, external_id: str) -> list[dict[str, Any]]:
        self.calls.append((resource_type, external_id))
        id_field = self._id_fields.get(resource_type, "id")
        matches = []
        for i, obj in enumerate(self._resources.get(resource_type, [])):
            if not isinstance(obj, dict):
                raise RemoteError(f"fixture {resource_type}[{i}]: expected a mapping, got {type(obj).__name__}")
            if str(obj.get(id_field, "")) == external_id:
                matches.append(copy.deepcopy(obj))
        return matches
