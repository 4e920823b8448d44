"""Runtime settings for the import pipeline.

Settings come from, in increasing priority: field defaults, a YAML file, and
``IMPORTWRIGHT_<FIELD>`` environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field

ENV_PREFIX = "IMPORTWRIGHT_"


class ImportSettings(BaseModel):
    # Remote fetch
    max_attempts: int = Field(default=4, ge=1)
    backoff_multiplier: float = Field(default=0.5, ge=0)
    backoff_max: float = Field(default=8.0, ge=0)
    timeout_seconds: float = Field(default=30.0, gt=0)

    # Planning
    max_concurrency: int = Field(default=8, ge=1)
    lock_shards: int = Field(default=16, ge=1)

    # Rendering
    reveal_sensitive: bool = False
    include_import_blocks: bool = True

    # Locations
    schema_dir: str | None = None
    ledger_path: str | None = None


def _env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name in ImportSettings.model_fields:
        key = ENV_PREFIX + name.upper()
        if key in env:
            overrides[name] = env[key]
    return overrides


def load_settings(path: str | Path | None = None, env: Mapping[str, str] | None = None) -> ImportSettings:
    """Load settings from an optional YAML file, then apply environment overrides.

    Relative ``schema_dir`` / ``ledger_path`` values in the file are resolved
    against the file's directory.
    """
    data: dict[str, Any] = {}
    if path is not None:
        p = Path(path)
        data = yaml.safe_load(p.read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{p}: expected a mapping of settings")
        for key in ("schema_dir", "ledger_path"):
            value = data.get(key)
            if value and not Path(value).is_absolute():
                data[key] = str((p.parent / value).resolve())

    data.update(_env_overrides(os.environ if env is None else env))
    return ImportSettings.model_validate(data)
