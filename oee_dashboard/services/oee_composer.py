"""
OEE Floor Dashboard - Performance/Quality/OEE Composer

This module combines the availability and production weights of a window into
the OEE figures. OEE is calculated as Availability × Performance × Quality.

Where:
- Availability = uptime share of classified minutes (already a percentage)
- Performance = (Actual Weight / Target Weight) × 100
- Quality = (Actual Weight / (Actual Weight + Rejected Weight)) × 100
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Union

from oee_dashboard.config import settings
from oee_dashboard.models.machine import OEEMetricsResponse

TWO_PLACES = Decimal("0.01")
WHOLE = Decimal("1")


def _quantize(value: float, exponent: Decimal) -> Decimal:
    number = Decimal(str(value))
    with localcontext() as ctx:
        # quantize needs every integer digit plus the kept decimals
        ctx.prec = max(ctx.prec, number.adjusted() + 3)
        return number.quantize(exponent, rounding=ROUND_HALF_UP)


def round_percentage(value: float) -> float:
    """Round half-up to 2 decimals in fixed point."""
    return float(_quantize(value, TWO_PLACES))


def round_length(value: float) -> int:
    """Round half-up to a whole number in fixed point."""
    return int(_quantize(value, WHOLE))


def _clamp(value: float) -> float:
    return min(100.0, max(0.0, value))


class RejectedProductionProvider:
    """
    Source of rejected (scrap) weight for a device and window.

    No rejection telemetry is reported by the devices yet, so the default
    provider reports none and quality stays at 100%.
    """

    async def rejected_weight(self, device_id: Union[int, str], start: datetime, end: datetime) -> float:
        return 0.0


def calculate_performance(actual_weight: float, target_weight: float) -> float:
    if target_weight == 0:
        return 0.0
    return actual_weight / target_weight * 100


def calculate_quality(actual_weight: float, rejected_weight: float = 0.0) -> float:
    if actual_weight == 0:
        return 100.0
    return actual_weight / (actual_weight + rejected_weight) * 100


def compose_oee(
    availability: float,
    actual_weight: float,
    target_weight: float,
    rejected_weight: float = 0.0,
    clamp: bool = settings.CLAMP_KPI_PERCENTAGES
) -> OEEMetricsResponse:
    """Compose the four KPI figures; all rounded only at the end."""
    performance = calculate_performance(actual_weight, target_weight)
    quality = calculate_quality(actual_weight, rejected_weight)

    if clamp:
        availability = _clamp(availability)
        performance = _clamp(performance)

    if availability == 0 or performance == 0:
        oee = 0.0
    else:
        oee = availability * performance / 100 * quality / 100

    return OEEMetricsResponse(
        oee=round_percentage(oee),
        availability=round_percentage(availability),
        performance=round_percentage(performance),
        quality=round_percentage(quality),
    )
