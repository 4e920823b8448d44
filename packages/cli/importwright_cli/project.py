"""Project directory support — finds .importwright/ and resolves settings."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from importwright.config import ImportSettings, load_settings

PROJECT_DIR = ".importwright"
DEFAULT_LEDGER = "ledger.jsonl"


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from start (default: cwd) looking for .importwright/ directory."""
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        if (parent / PROJECT_DIR).is_dir():
            return parent
    return None


def get_project_config_path(project_root: Path) -> Path | None:
    """Return the path to .importwright/config.yaml if it exists."""
    config_path = project_root / PROJECT_DIR / "config.yaml"
    if config_path.exists():
        return config_path
    return None


def load_project_env(project_root: Path | None) -> None:
    """Load a project .env (or ./.env) without overriding the real environment."""
    for candidate in ([project_root / ".env"] if project_root else []) + [Path.cwd() / ".env"]:
        if candidate.exists():
            load_dotenv(candidate, override=False)
            return


def resolve_settings(config_file: str | None = None, start: Path | None = None) -> ImportSettings:
    """Settings from an explicit config file, else the project config, else defaults.

    A missing ledger_path defaults to .importwright/ledger.jsonl under the
    project root (or the current directory outside a project).
    """
    root = find_project_root(start)
    load_project_env(root)

    if config_file:
        path: Path | None = Path(config_file)
        if not path.exists():
            raise FileNotFoundError(config_file)
    else:
        path = get_project_config_path(root) if root else None

    settings = load_settings(path, env=os.environ)
    if settings.ledger_path is None:
        base = root or (start or Path.cwd())
        settings = settings.model_copy(update={"ledger_path": str(base / PROJECT_DIR / DEFAULT_LEDGER)})
    return settings
