"""
Helper functions for formatting byte counts, speeds and durations.
"""

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_size(byte_count: float) -> str:
    """Formats a byte count as e.g. '512 B' or '145.3 MB'."""
    if byte_count <= 0:
        return "0 B"
    value = float(byte_count)
    for unit in _SIZE_UNITS[:-1]:
        if value < 1024:
            break
        value /= 1024
    else:
        unit = _SIZE_UNITS[-1]
    if unit == "B":
        return f"{int(value)} B"
    return f"{value:.1f} {unit}"


def format_speed(bytes_per_second: float) -> str:
    return f"{format_size(bytes_per_second)}/s"


def format_duration(seconds: float) -> str:
    """
    Formats a duration as e.g. '2m 12s'.
    Sub-second durations are shown in milliseconds.
    """
    if 0 < seconds < 1:
        return f"{round(seconds * 1000)}ms"
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    parts = [f"{n}{suffix}" for n, suffix in ((hours, "h"), (minutes, "m")) if n]
    if secs or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)
