"""Display formatting helpers for timers and diagnostics."""

from __future__ import annotations

_BYTE_UNITS = ("bytes", "KB", "MB", "GB", "TB")


def format_clock(seconds: float | int, pad_minutes: bool = False) -> str:
    """Render a duration as ``M:SS`` (or ``H:MM:SS`` past one hour)."""
    total = max(0, int(seconds))
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    if pad_minutes:
        return f"{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_bytes(size: int) -> str:
    if size < 1000:
        return f"{max(0, size)} bytes"
    value = float(size)
    unit = _BYTE_UNITS[0]
    for unit in _BYTE_UNITS[1:]:
        value /= 1000.0
        if value < 1000.0:
            break
    return f"{value:.1f} {unit}"
