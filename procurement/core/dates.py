from datetime import date, datetime, time

_DATE_FORMATS = ("%Y/%m/%d", "%d/%m/%Y", "%m/%d/%Y")
_SECONDS_PER_DAY = 86400.0


def normalize_datetime(value):
    """Coerce a cell value into a naive datetime; dates become midnight."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        value_text = value.strip()
        if not value_text:
            return None
        try:
            return normalize_datetime(datetime.fromisoformat(value_text))
        except ValueError:
            pass
        for fmt in _DATE_FORMATS:
            try:
                return datetime.strptime(value_text, fmt)
            except ValueError:
                continue
    return None


def days_between(later, earlier) -> float:
    later_dt = normalize_datetime(later)
    earlier_dt = normalize_datetime(earlier)
    if later_dt is None or earlier_dt is None:
        return 0.0
    return (later_dt - earlier_dt).total_seconds() / _SECONDS_PER_DAY


def as_reference_datetime(today=None) -> datetime:
    if today is None:
        return datetime.now()
    return normalize_datetime(today)


__all__ = [
    "as_reference_datetime",
    "days_between",
    "normalize_datetime",
]
