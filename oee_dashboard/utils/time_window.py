"""
OEE Floor Dashboard - KPI time windows

Window bounds arrive as path segments, usually ``YYYY-MM-DD HH:MM:SS``.
ISO-8601 and bare dates are accepted too; a bare end date covers that whole day.
"""

from datetime import datetime, time
from typing import Tuple

from oee_dashboard.utils.exceptions import ValidationError

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"


def parse_bound(value: str, name: str, end_of_day: bool = False) -> datetime:
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required", {"field": name})
    value = str(value).strip()

    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError:
        pass

    try:
        day = datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        pass
    else:
        return datetime.combine(day.date(), time.max) if end_of_day else day

    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(
            f"{name} is not a valid timestamp",
            {"field": name, "value": value, "expected": TIMESTAMP_FORMAT}
        )


def validate_window(start: datetime, end: datetime) -> None:
    """A KPI window is a closed interval with both bounds and start <= end."""
    if start is None or end is None:
        raise ValidationError("Both window bounds are required")
    if (start.tzinfo is None) != (end.tzinfo is None):
        raise ValidationError(
            "Window bounds must both carry a timezone or both omit it",
            {"start_date": start.isoformat(), "end_date": end.isoformat()}
        )
    if start > end:
        raise ValidationError(
            "Window start is after its end",
            {"start_date": start.isoformat(), "end_date": end.isoformat()}
        )


def parse_window(start_date: str, end_date: str) -> Tuple[datetime, datetime]:
    start = parse_bound(start_date, "start_date")
    end = parse_bound(end_date, "end_date", end_of_day=True)
    validate_window(start, end)
    return start, end
