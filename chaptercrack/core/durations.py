import math
import re

from .errors import InvalidDuration

# Plain ASCII decimal seconds as ffprobe prints them, e.g. "3723.456000"
DURATION_PATTERN = re.compile(r"[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?", re.ASCII)


def validate_duration(duration, raw=None) -> float:
    """Return the duration as a float, or raise InvalidDuration if it is not finite and non-negative"""
    raw = duration if raw is None else raw
    if isinstance(duration, bool):
        raise InvalidDuration(raw, "not a number")
    try:
        value = float(duration)
    except (TypeError, ValueError) as e:
        raise InvalidDuration(raw, "not a number") from e

    if not math.isfinite(value):
        raise InvalidDuration(raw, "not finite")
    if value < 0:
        raise InvalidDuration(raw, "negative")
    return value


def parse_duration(raw: str) -> float:
    """Strictly parse ffprobe's duration output (seconds, optionally padded with whitespace)"""
    text = (raw or "").strip()
    if not text:
        raise InvalidDuration(raw, "empty probe output")
    if not DURATION_PATTERN.fullmatch(text):
        raise InvalidDuration(raw, "not a number")
    return validate_duration(float(text), raw=raw)
