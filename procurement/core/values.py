import math
import re

from procurement.core.dates import normalize_datetime

_PLACEHOLDER_VALUES = {"none", "[none]", "null", "[null]", "na", "n/a", "nan", "-", "--"}
_TRUE_VALUES = {"true", "yes", "y", "1"}
_HEADER_STRIP = re.compile(r"[^a-z0-9]")
_WHITESPACE = re.compile(r"\s+")


def is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def normalize_header(value):
    if value is None:
        return ""
    return _HEADER_STRIP.sub("", str(value).strip().lower())


def normalize_name(value):
    """Collapse whitespace and upper-case, for outlet and brand comparisons."""
    if is_blank(value):
        return ""
    return _WHITESPACE.sub(" ", str(value)).strip().upper()


def to_text(value):
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    if text.lower() in _PLACEHOLDER_VALUES:
        return ""
    return text


def to_optional_float(value):
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().replace(",", "")
    if text.lower() in ("infinity", "inf", "+infinity"):
        return math.inf
    try:
        return float(text)
    except ValueError:
        return None


def to_float(value):
    number = to_optional_float(value)
    if number is None:
        return 0.0
    return number


def to_optional_int(value):
    number = to_optional_float(value)
    if number is None or math.isinf(number):
        return None
    return int(number)


def to_int(value):
    number = to_optional_int(value)
    if number is None:
        return 0
    return number


def to_bool(value):
    if isinstance(value, bool):
        return value
    if is_blank(value):
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in _TRUE_VALUES


def to_datetime(value):
    return normalize_datetime(value)


__all__ = [
    "is_blank",
    "normalize_header",
    "normalize_name",
    "to_bool",
    "to_datetime",
    "to_float",
    "to_int",
    "to_optional_float",
    "to_optional_int",
    "to_text",
]
