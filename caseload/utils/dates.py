# caseload/utils/dates.py

from datetime import date, datetime, timezone
from typing import Optional, Union
import uuid

DateLike = Union[str, date, datetime, None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_date(value: DateLike) -> Optional[date]:
    """
    Coerce an ISO string, date or datetime into a calendar date.

    Timestamps ("2024-09-15T00:00:00Z") are truncated to their date part
    so that stored values compare the same way as date-only strings.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def to_iso_date(value: date) -> str:
    return value.isoformat()


def new_id() -> str:
    return str(uuid.uuid4())
