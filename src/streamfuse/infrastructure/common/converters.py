"""Type conversion utilities for loosely typed provider payloads."""

from __future__ import annotations

import math
import re

_SIZE_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*([KMGT]i?B|B)\b", re.IGNORECASE)

_MULTIPLIERS: dict[str, int] = {
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
    "TB": 1024**4,
}


def to_int(raw: str | int | float | None) -> int | None:
    """Convert string or number to int, return None if invalid.

    Handles various formats:
        - None -> None
        - int -> int (passthrough)
        - 12.0 -> 12
        - "1,234" -> 1234
        - "" -> None
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, int):
        return raw

    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else None

    if isinstance(raw, str):
        txt = "".join(ch for ch in raw if ch.isdigit())
        return int(txt) if txt else None

    return None


def parse_size(raw: str | int | float | None) -> int | None:
    """Parse a size value to bytes, or None when it cannot be read.

    Supports raw byte counts ("1234", 1234) and unit strings
    ("4.5 GB", "700 MiB", "1,2 GB"). Units are binary.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        if not math.isfinite(raw) or raw < 0:
            return None
        return int(raw)

    text = raw.strip()
    if not text:
        return None
    if text.isdigit():
        return int(text)

    match = _SIZE_RE.search(text)
    if not match:
        return None
    value = float(match.group(1).replace(",", "."))
    unit = match.group(2).upper().replace("I", "")
    return int(value * _MULTIPLIERS[unit])
