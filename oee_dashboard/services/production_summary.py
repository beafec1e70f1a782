"""
OEE Floor Dashboard - Monthly Production & Reel-Count Summarizer

Devices report a running "this month production" counter that resets at the
device's month boundary, so produced length is max - min within each
(year, month) group, never across groups.
"""

from typing import Dict, Iterable, List, Tuple

from oee_dashboard.config import settings
from oee_dashboard.models.telemetry import Sample
from oee_dashboard.services.oee_composer import round_length

REEL_OFF = "0"
REEL_ON = "1"


def produced_length(samples: Iterable[Sample], counter_key: str = settings.MONTH_PRODUCTION_KEY) -> int:
    """Length produced in the window, summed over device and month groups."""
    ranges: Dict[Tuple[object, int, int], Tuple[float, float]] = {}
    for sample in samples:
        counter = sample.number(counter_key)
        if counter is None:
            continue
        key = (sample.device_id, *sample.month)
        low, high = ranges.get(key, (counter, counter))
        ranges[key] = (min(low, counter), max(high, counter))

    return round_length(sum(high - low for low, high in ranges.values()))


def count_reel_changes(samples: Iterable[Sample], indicator_key: str = settings.REEL_CHANGE_KEY) -> int:
    """
    Count 0 -> 1 transitions of the reel change indicator.

    Only samples carrying a value for the indicator are considered, so a
    transition is detected across gaps where the indicator was not reported.
    """
    series: Dict[object, List[Sample]] = {}
    for sample in samples:
        if sample.text(indicator_key) is not None:
            series.setdefault(sample.device_id, []).append(sample)

    changes = 0
    for device_samples in series.values():
        device_samples.sort(key=lambda sample: sample.timestamp)
        for previous, current in zip(device_samples, device_samples[1:]):
            if previous.text(indicator_key) == REEL_OFF and current.text(indicator_key) == REEL_ON:
                changes += 1
    return changes
