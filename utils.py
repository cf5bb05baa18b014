from datetime import date, datetime, timezone

from dateutil import parser as date_parser


def parse_date(value):
    """Parse an ISO date (or date-time) string into a date."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date_parser.isoparse(str(value).strip()).date()


def parse_datetime(value):
    """Parse an ISO date-time string into a naive UTC datetime."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        dt = date_parser.isoparse(str(value).strip())
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_int(value):
    """Return value as int, or None when it is not a plain integer."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip() if value is not None else ''
    if text.lstrip('-').isdigit():
        return int(text)
    return None


def utcnow_iso():
    """Current UTC time as an ISO string with a Z suffix."""
    return datetime.utcnow().isoformat(timespec='milliseconds') + 'Z'


def months_between(start, end=None):
    """Whole months elapsed between two dates (30-day months)."""
    start = parse_date(start)
    if start is None:
        return 0
    end = parse_date(end) if end is not None else date.today()
    return round((end - start).days / 30)
