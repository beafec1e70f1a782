"""
OEE Floor Dashboard - Production Weight Estimator

Estimates the mass of wire produced over a window from line speed and cold
diameter readings, and the mass that could have been produced had the line
run at its best observed speed of the day for every minute it was up.

Weight of a cylinder of wire: pi * r^2 * length * density, with the diameter
reported in millimetres, length in metres and the result scaled by
``weight_scale`` (1000 turns kg into tonnes).
"""

import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import structlog

from oee_dashboard.config import settings
from oee_dashboard.models.telemetry import MinuteBucket, Sample

logger = structlog.get_logger()


def cylinder_weight(diameter_mm: float, length: float, density: float, weight_scale: float) -> float:
    radius_m = diameter_mm / 1000 / 2
    return math.pi * radius_m ** 2 * length * density / weight_scale


def _by_device(samples: Iterable[Sample]) -> Dict[object, List[Sample]]:
    grouped: Dict[object, List[Sample]] = {}
    for sample in samples:
        grouped.setdefault(sample.device_id, []).append(sample)
    for series in grouped.values():
        series.sort(key=lambda sample: sample.timestamp)
    return grouped


class ProductionWeightEstimator:
    """Actual and target production weight for a window of samples."""

    def __init__(
        self,
        line_speed_key: str = settings.LINE_SPEED_KEY,
        diameter_key: str = settings.DIAMETER_KEY,
        density: float = settings.MATERIAL_DENSITY,
        weight_scale: float = settings.WEIGHT_SCALE
    ):
        self.line_speed_key = line_speed_key
        self.diameter_key = diameter_key
        self.density = density
        self.weight_scale = weight_scale

    def actual_weight(self, samples: Iterable[Sample]) -> float:
        """
        Integrate speed over the gaps between consecutive speed readings.

        Each interval is weighed with the speed and diameter of the sample that
        opens it. Intervals whose opening sample lacks a speed or diameter, or
        whose closing sample lacks a speed, are skipped. The last reading
        closes nothing and contributes nothing.
        """
        total = 0.0
        carrying_speed = (sample for sample in samples if sample.has(self.line_speed_key))
        for series in _by_device(carrying_speed).values():
            for current, following in zip(series, series[1:]):
                speed = current.number(self.line_speed_key)
                diameter = current.number(self.diameter_key)
                if speed is None or diameter is None or following.number(self.line_speed_key) is None:
                    continue
                elapsed_minutes = (following.timestamp - current.timestamp).total_seconds() / 60
                total += cylinder_weight(diameter, elapsed_minutes * speed, self.density, self.weight_scale)
        return total

    @staticmethod
    def target_length(buckets: Sequence[MinuteBucket]) -> float:
        """
        Length the line would have produced at each day's top speed.

        Buckets must come from samples carrying both status and line speed.
        Every bucket of a day is scaled by the highest speed seen that day,
        its uptime ratio and its own time span.
        """
        day_max_speed: Dict[Tuple[object, object], float] = {}
        for bucket in buckets:
            if bucket.max_line_speed is None:
                continue
            key = (bucket.device_id, bucket.day)
            day_max_speed[key] = max(day_max_speed.get(key, bucket.max_line_speed), bucket.max_line_speed)

        total = 0.0
        for bucket in buckets:
            max_speed = day_max_speed.get((bucket.device_id, bucket.day))
            if max_speed is None:
                continue
            total += bucket.uptime_ratio * max_speed * bucket.span_minutes
        return total

    def window_diameter(self, samples: Iterable[Sample]) -> Optional[float]:
        """The diameter produced in the window: the first one reported."""
        diameters: List[float] = []
        for sample in sorted(samples, key=lambda sample: sample.timestamp):
            diameter = sample.number(self.diameter_key)
            if diameter is not None and diameter not in diameters:
                diameters.append(diameter)

        if not diameters:
            return None
        if len(diameters) > 1:
            # TODO: weigh target length per product once changeover boundaries are reported.
            logger.warning(
                "Several diameters in window, target weight uses the first",
                diameters=diameters[:10],
                distinct=len(diameters)
            )
        return diameters[0]

    def target_weight(self, buckets: Sequence[MinuteBucket], samples: Iterable[Sample]) -> float:
        length = self.target_length(buckets)
        diameter = self.window_diameter(samples)
        if not length or diameter is None:
            return 0.0
        return cylinder_weight(diameter, length, self.density, self.weight_scale)
