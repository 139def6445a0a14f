from datetime import datetime

from coursemart.errors import ValidationError


def iso(value):
    return value.isoformat() if value else None


def parse_datetime(value, field):
    """Accept a datetime or an ISO-8601 string (a trailing 'Z' is allowed)."""
    if value is None or isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid date for {field}.")
    # stored naive, in UTC
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None) - parsed.utcoffset()
    return parsed


TRUE_STRINGS = ("true", "1", "yes")
FALSE_STRINGS = ("false", "0", "no", "")


def parse_bool(value, field):
    """Accept a JSON boolean or one of its common string forms."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise ValidationError(f"{field} must be true or false.")
