"""Duration parsing for configuration values.

Accepts the compact duration strings operators already use in the service's
environment files (``24h``, ``90m``, ``1h30m``, ``45s``, ``500ms``) as well as
a bare number of seconds.
"""

import logging
import math
import re
from datetime import timedelta

logger = logging.getLogger(__name__)

_UNITS = {
    'h': 3600.0,
    'm': 60.0,
    's': 1.0,
    'ms': 0.001,
}

# Cache entries must still expire within datetime's range
MAX_DURATION = timedelta(days=365 * 100)

_PART = re.compile(r'(\d+(?:\.\d+)?)(ms|h|m|s)')


def parse_duration(value, default: timedelta) -> timedelta:
    """
    Parse a duration string into a timedelta.

    Args:
        value: Duration string, number of seconds, or empty/None
        default: Returned when value is empty or cannot be parsed

    Returns:
        timedelta: The parsed duration (never negative)

    Usage:
        ttl = parse_duration(os.getenv('TRANSLATION_CACHE_TTL'), timedelta(hours=24))
    """
    if value is None:
        return default
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        return _invalid(value, default)
    if isinstance(value, (int, float)):
        return _from_seconds(value, value, default)

    text = str(value).strip().lower()
    if not text:
        return default

    try:
        return _from_seconds(float(text), value, default)
    except ValueError:
        pass

    total = 0.0
    position = 0
    for match in _PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _UNITS[match.group(2)]
        position = match.end()

    if position != len(text):
        return _invalid(value, default)
    return _from_seconds(total, value, default)


def _from_seconds(seconds, value, default):
    """Positive, finite and no longer than MAX_DURATION, else the default."""
    if not math.isfinite(seconds) or seconds <= 0:
        return _invalid(value, default)
    try:
        duration = timedelta(seconds=seconds)
    except OverflowError:
        return _invalid(value, default)
    if duration > MAX_DURATION:
        return _invalid(value, default)
    return duration


def _invalid(value, default):
    logger.warning(f"Invalid duration '{value}', using default {default}")
    return default
