"""Cached loaders for bundled seed data."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

_BASE_DIR = Path(__file__).resolve().parent


def _load_json(path: Path) -> Any:
    """Return parsed JSON payload from disk."""

    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


@lru_cache(maxsize=None)
def get_sample_inventory() -> tuple[dict[str, Any], ...]:
    """Return the starter equipment catalogue used by ``manage seed``."""

    payload = _load_json(_BASE_DIR / "sample_inventory.json")
    return tuple(payload)
