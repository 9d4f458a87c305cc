"""
Project root, `.env` and path resolution.

Relative settings paths (`data/spots.json`, `.familyspots/state.json`) are
resolved against the project root, so the CLI, the API server and the tests
read the same files from any working directory.

The root is `FAMILYSPOTS_PROJECT_ROOT` if set, otherwise the nearest directory
holding `pyproject.toml` above the working directory (then above this file).
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

ROOT_MARKER = "pyproject.toml"


def _find_root(start: Path) -> Path | None:
    start = start.resolve()
    for candidate in (start, *start.parents):
        if (candidate / ROOT_MARKER).is_file():
            return candidate
    return None


@lru_cache
def get_project_root() -> Path:
    """Return the project root directory (cached)."""
    override = os.getenv("FAMILYSPOTS_PROJECT_ROOT")
    if override:
        return Path(override).expanduser().resolve()
    return _find_root(Path.cwd()) or _find_root(Path(__file__).parent) or Path.cwd().resolve()


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load `<root>/.env` once without overriding variables already set."""
    env_path = get_project_root() / ".env"
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path


def resolve_project_path(path: str | Path) -> Path:
    """Resolve a possibly-relative path against the project root."""
    p = Path(path).expanduser()
    if p.is_absolute():
        return p
    return (get_project_root() / p).resolve()


def is_url(source: str | Path) -> bool:
    """True if `source` looks like an http(s) URL rather than a file path."""
    s = str(source).strip().lower()
    return s.startswith("http://") or s.startswith("https://")
