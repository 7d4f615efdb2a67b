# hackhub/utils.py
"""
Utility helpers used across the service.

Goals:
- Load .env deterministically (repo root)
- Resolve absolute paths reliably on all OS (always relative to repo root)
- Provide JSON-file helpers with atomic writes and clear errors
"""

from __future__ import annotations

import datetime as _dt
import json
import os
import pathlib
import uuid
from typing import Any, Union

from dotenv import load_dotenv


# ----------------------------------------------------------------------
# 1) Repo root resolution + .env loading
# ----------------------------------------------------------------------
def _find_repo_root(start: pathlib.Path) -> pathlib.Path:
    """
    Walk up from `start` to find a folder that looks like the project root.

    Markers we accept:
    - `.env` (preferred)
    - `pyproject.toml`
    - `README.md`
    """
    markers = {".env", "pyproject.toml", "README.md"}
    for p in [start, *start.parents]:
        if any((p / m).exists() for m in markers):
            return p

    # avoid IndexError if path is shallow
    parents = list(start.parents)
    return parents[1] if len(parents) > 1 else start.parent


REPO_ROOT = _find_repo_root(pathlib.Path(__file__).resolve())
load_dotenv(dotenv_path=REPO_ROOT / ".env", override=False)


# ----------------------------------------------------------------------
# 2) Helper: env var (or default) -> absolute Path
# ----------------------------------------------------------------------
def env_path(key: str, default: Union[str, pathlib.Path]) -> pathlib.Path:
    """
    Return a pathlib.Path guaranteed to be absolute.

    - If env var `key` is missing, fallback to `default`
    - Relative values are interpreted as relative to REPO_ROOT
    """
    raw = os.getenv(key, str(default)).strip()
    p = pathlib.Path(raw)

    if not p.is_absolute():
        p = REPO_ROOT / p

    return p.resolve()


def env_flag(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# ----------------------------------------------------------------------
# 3) Small value helpers
# ----------------------------------------------------------------------
def utc_now() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


def utc_iso_now() -> str:
    return utc_now().isoformat(timespec="seconds")


def new_id() -> str:
    return str(uuid.uuid4())


# ----------------------------------------------------------------------
# 4) JSON helpers
# ----------------------------------------------------------------------
def load_json_file(path: pathlib.Path) -> Any:
    """
    Read a JSON file and return its content.

    Callers validate the type (documents files hold a list).
    """
    if not path.is_file():
        raise FileNotFoundError(f"Data file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def save_json_file(path: pathlib.Path, content: Any) -> None:
    """
    Write JSON deterministically (UTF-8, pretty-printed).

    The payload is written to a sibling temp file first and swapped in with
    os.replace, so a crash never leaves a half-written document file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as f:
        json.dump(content, f, ensure_ascii=False, indent=2)
    os.replace(tmp, path)


__all__ = [
    "REPO_ROOT",
    "env_path",
    "env_flag",
    "utc_now",
    "utc_iso_now",
    "new_id",
    "load_json_file",
    "save_json_file",
]
