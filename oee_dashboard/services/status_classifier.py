"""
OEE Floor Dashboard - Status Classifier

Maps the most recent sample of a device to the live status shown on the
dashboard. Rules are evaluated top to bottom and the first match wins:

    no sample / no status field        -> OFFLINE (2)
    status stopped                     -> STOPPED (0)
    status running, speed == 0         -> IDLE (3)
    status running, speed < ratio*tgt  -> REDUCED_SPEED (4)
    status running, speed >= ratio*tgt -> RUNNING (1)
    anything else                      -> UNKNOWN (2)
"""

from typing import Optional

from oee_dashboard.config import settings
from oee_dashboard.models.machine import MachineStatus
from oee_dashboard.models.telemetry import Sample

STATUS_STOPPED = 0
STATUS_RUNNING = 1


class StatusClassifier:
    """Classifies a device's latest sample into a MachineStatus."""

    def __init__(
        self,
        status_key: str = settings.STATUS_KEY,
        speed_key: str = settings.ACTUAL_SPEED_KEY,
        target_speed_key: str = settings.TARGET_SPEED_KEY,
        reduced_speed_ratio: float = settings.REDUCED_SPEED_RATIO
    ):
        self.status_key = status_key
        self.speed_key = speed_key
        self.target_speed_key = target_speed_key
        self.reduced_speed_ratio = reduced_speed_ratio

    def classify(self, sample: Optional[Sample]) -> MachineStatus:
        if sample is None or sample.attributes.get(self.status_key) is None:
            return MachineStatus.OFFLINE

        status = sample.number(self.status_key)
        if status == STATUS_STOPPED:
            return MachineStatus.STOPPED
        if status != STATUS_RUNNING:
            return MachineStatus.UNKNOWN

        speed = sample.number(self.speed_key)
        if speed is None:
            return MachineStatus.UNKNOWN
        if speed == 0:
            return MachineStatus.IDLE

        target_speed = sample.number(self.target_speed_key)
        if target_speed is None:
            return MachineStatus.UNKNOWN
        if speed < self.reduced_speed_ratio * target_speed:
            return MachineStatus.REDUCED_SPEED
        return MachineStatus.RUNNING


def classify_status(sample: Optional[Sample]) -> MachineStatus:
    """Classify with the configured telemetry keys and thresholds."""
    return StatusClassifier().classify(sample)
