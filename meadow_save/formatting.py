"""Display helpers for the slot picker."""

from __future__ import annotations

from datetime import datetime

from meadow_save.sections.base import is_real_number


def format_play_time(ms: float | None) -> str:
    """
    Format a play time as HH:MM:SS. Hours are not wrapped.

    Example:
        format_play_time(3_723_000)  # "01:02:03"
    """
    if not is_real_number(ms) or ms <= 0:
        return "00:00:00"

    total_seconds = int(ms // 1000)
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_date_time(timestamp_ms: float | None) -> str:
    """Format a ms timestamp as local 'dd/mm/yyyy hh:mm'."""
    if not timestamp_ms or not is_real_number(timestamp_ms):
        return "--/--/---- --:--"
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%d/%m/%Y %H:%M")
