from typing import Union


def parse_clock_time(value: Union[str, int, float]) -> float:
    """
    Parse a GTFS clock time ("HH:MM:SS", hours may be >= 24) into minutes past
    midnight. Numeric input is taken as minutes already.
    """
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    parts = text.split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid clock time: {value!r}")
    try:
        hours = int(parts[0])
        minutes = int(parts[1])
        seconds = int(parts[2]) if len(parts) == 3 else 0
    except ValueError as exc:
        raise ValueError(f"Invalid clock time: {value!r}") from exc
    if hours < 0 or not 0 <= minutes < 60 or not 0 <= seconds < 60:
        raise ValueError(f"Invalid clock time: {value!r}")
    return hours * 60 + minutes + seconds / 60.0


def format_clock_time(minutes: float) -> str:
    """
    Format minutes past midnight back to "HH:MM:SS" (hours are not wrapped).
    """
    total_seconds = int(round(minutes * 60))
    hours, rem = divmod(total_seconds, 3600)
    mins, secs = divmod(rem, 60)
    return f"{hours:02d}:{mins:02d}:{secs:02d}"
