# prm/dates.py
from datetime import date, datetime, timezone

EPOCH = datetime(1970, 1, 1)


def parse_datetime(value):
    """
    Accepts datetime, date or ISO-8601 strings ("Z" suffix allowed) and
    returns a naive UTC datetime. Blank input gives None; anything
    unparseable raises ValueError.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def to_datetime(value):
    """Lenient parse for display and sorting: bad input gives None."""
    try:
        return parse_datetime(value)
    except (TypeError, ValueError):
        return None


def utcnow_naive():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_date(value, fmt: str = "%b %d, %Y") -> str:
    dt = to_datetime(value)
    return dt.strftime(fmt) if dt else "—"
