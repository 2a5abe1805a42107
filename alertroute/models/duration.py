"""Prometheus-style duration strings (``30s``, ``5m``, ``1h30m``)."""

import re
from datetime import timedelta

_UNITS: dict[str, timedelta] = {
    "y": timedelta(days=365),
    "w": timedelta(weeks=1),
    "d": timedelta(days=1),
    "h": timedelta(hours=1),
    "m": timedelta(minutes=1),
    "s": timedelta(seconds=1),
    "ms": timedelta(milliseconds=1),
}

# Units must appear in descending order, each at most once.
_DURATION_RE = re.compile(
    r"^(?:(?P<y>\d+)y)?(?:(?P<w>\d+)w)?(?:(?P<d>\d+)d)?(?:(?P<h>\d+)h)?"
    r"(?:(?P<m>\d+)m)?(?:(?P<s>\d+)s)?(?:(?P<ms>\d+)ms)?$"
)


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``20s`` or ``1h30m`` into a timedelta."""
    text = text.strip()
    if not text:
        raise ValueError("empty duration string")

    match = _DURATION_RE.match(text)
    if not match:
        raise ValueError(f"not a valid duration string: {text!r}")

    total = timedelta()
    for unit, amount in match.groupdict().items():
        if amount is not None:
            total += int(amount) * _UNITS[unit]
    return total


def format_duration(value: timedelta) -> str:
    """Render a timedelta in the shortest equivalent duration string."""
    ms = int(value.total_seconds() * 1000)
    if ms == 0:
        return "0s"

    sign = "-" if ms < 0 else ""
    ms = abs(ms)

    parts: list[str] = []
    for unit, size in _UNITS.items():
        unit_ms = int(size.total_seconds() * 1000)
        count, ms = divmod(ms, unit_ms)
        if count:
            parts.append(f"{count}{unit}")
    return sign + "".join(parts)
