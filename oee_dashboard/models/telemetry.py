"""
OEE Floor Dashboard - Telemetry Models

This module defines the immutable telemetry sample read from the device store
and the derived per-minute bucket used by the OEE computation pipeline.

Calendar groupings (minute, day, month) follow the plant clock set by
PLANT_TIMEZONE, since devices reset their counters at local midnight.

Device payloads are sparse JSON documents: a key may be missing, null, or hold
text where a number is expected. Accessors return None for all of those so
callers can treat absence as "contributes nothing".
"""

import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple, Union

import pytz
from pydantic import BaseModel, ConfigDict, Field

from oee_dashboard.config import settings


def as_number(value: Any) -> Optional[float]:
    """Coerce a raw attribute value to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(Decimal(value.strip()))
        except (InvalidOperation, ValueError):
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def as_text(value: Any) -> Optional[str]:
    """Render a raw attribute value the way a JSON text extraction would."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    return str(value)


def plant_time(timestamp: datetime) -> datetime:
    """Timestamp on the plant clock. Naive timestamps are taken as plant time already."""
    if timestamp.tzinfo is None:
        return timestamp
    return timestamp.astimezone(pytz.timezone(settings.PLANT_TIMEZONE))


class Sample(BaseModel):
    """One telemetry reading of a device."""

    model_config = ConfigDict(frozen=True)

    device_id: Union[int, str]
    timestamp: datetime
    attributes: Dict[str, Any] = Field(default_factory=dict)

    def has(self, key: str) -> bool:
        """Whether the payload carries the key at all (even with a null value)."""
        return key in self.attributes

    def number(self, key: str) -> Optional[float]:
        return as_number(self.attributes.get(key))

    def text(self, key: str) -> Optional[str]:
        return as_text(self.attributes.get(key))

    @property
    def minute(self) -> datetime:
        return plant_time(self.timestamp).replace(second=0, microsecond=0)

    @property
    def day(self) -> date:
        return plant_time(self.timestamp).date()

    @property
    def month(self) -> Tuple[int, int]:
        local = plant_time(self.timestamp)
        return local.year, local.month


@dataclass(frozen=True)
class MinuteBucket:
    """Samples of one device within one wall-clock minute."""

    device_id: Union[int, str]
    minute: datetime
    data_points: int
    uptime_points: int
    downtime_points: int
    span_minutes: float = 0.0
    max_line_speed: Optional[float] = None

    @property
    def uptime_ratio(self) -> float:
        if self.data_points == 0:
            return 0.0
        return self.uptime_points / self.data_points

    @property
    def downtime_ratio(self) -> float:
        if self.data_points == 0:
            return 0.0
        return self.downtime_points / self.data_points

    @property
    def day(self) -> date:
        return self.minute.date()
