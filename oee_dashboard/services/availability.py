"""
OEE Floor Dashboard - Uptime/Availability Aggregator

Samples are grouped per device into wall-clock minute buckets. Each bucket
contributes its uptime and downtime *ratios* rather than raw counts, so
minutes with a burst of readings weigh the same as sparsely polled ones.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from oee_dashboard.config import settings
from oee_dashboard.models.telemetry import MinuteBucket, Sample

RUNNING = 1
STOPPED = 0


def bucket_by_minute(
    samples: Iterable[Sample],
    status_key: str = settings.STATUS_KEY,
    line_speed_key: Optional[str] = None
) -> List[MinuteBucket]:
    """
    Group samples into per-device minute buckets.

    Only samples that carry ``status_key`` take part. When ``line_speed_key``
    is given, samples must carry it as well and each bucket records the
    highest numeric line speed seen in it.
    """
    groups: Dict[Tuple[object, object], List[Sample]] = {}
    for sample in samples:
        if not sample.has(status_key):
            continue
        if line_speed_key is not None and not sample.has(line_speed_key):
            continue
        groups.setdefault((sample.device_id, sample.minute), []).append(sample)

    buckets = []
    for (device_id, minute), members in groups.items():
        statuses = [member.number(status_key) for member in members]
        timestamps = [member.timestamp for member in members]

        max_line_speed = None
        if line_speed_key is not None:
            speeds = [speed for speed in (member.number(line_speed_key) for member in members) if speed is not None]
            max_line_speed = max(speeds) if speeds else None

        buckets.append(MinuteBucket(
            device_id=device_id,
            minute=minute,
            data_points=len(members),
            uptime_points=sum(1 for status in statuses if status == RUNNING),
            downtime_points=sum(1 for status in statuses if status == STOPPED),
            span_minutes=(max(timestamps) - min(timestamps)).total_seconds() / 60,
            max_line_speed=max_line_speed,
        ))

    buckets.sort(key=lambda bucket: bucket.minute)
    return buckets


def availability_percentage(buckets: Iterable[MinuteBucket]) -> float:
    """Share of uptime among classified minutes, 0-100; 0 when nothing was classified."""
    uptime = 0.0
    downtime = 0.0
    for bucket in buckets:
        uptime += bucket.uptime_ratio
        downtime += bucket.downtime_ratio

    denominator = uptime + downtime
    if denominator == 0:
        return 0.0
    return uptime / denominator * 100
