# credit_ledger/services/dates.py

import re
from datetime import date, datetime
from typing import Any, Optional

from zoneinfo import ZoneInfo

from credit_ledger.config import timezone_name
from credit_ledger.errors import ValidationError

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def today() -> date:
    return datetime.now(ZoneInfo(timezone_name())).date()


def parse_iso_date(value: Any, field: str) -> date:
    """Parse a YYYY-MM-DD string (or pass a date through)."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required.", field=field)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not ISO_DATE_RE.match(text):
        raise ValidationError(
            f"Invalid {field} format. Use YYYY-MM-DD.", field=field
        )
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field} is not a valid calendar date.", field=field)


def parse_optional_date(value: Any, field: str) -> Optional[date]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_iso_date(value, field)
