from __future__ import annotations

import os
from typing import Iterable, Optional


def env_str(name: str, default: str, *, strip: bool = True) -> str:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip() if strip else value


def env_first(names: Iterable[str], default: Optional[str] = None) -> Optional[str]:
    """Return the first non-empty value among several variable names."""
    for name in names:
        value = (os.environ.get(name) or "").strip()
        if value:
            return value
    return default


def env_choice(name: str, choices: Iterable[str], default: str) -> str:
    raw = (os.environ.get(name) or "").strip().lower()
    return raw if raw in set(choices) else default


def env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    raw = raw.strip().lower()
    if raw in {"1", "true", "yes", "y", "on"}:
        return True
    if raw in {"0", "false", "no", "n", "off"}:
        return False
    return default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default
