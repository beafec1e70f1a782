"""
OEE Floor Dashboard - Dashboard Service

Request-scoped orchestration behind the dashboard endpoints. Every call reads
raw telemetry for the requested window and recomputes from scratch:

    read -> bucket per minute -> fold per window -> compose KPIs

Nothing is kept between calls.
"""

from datetime import datetime
from typing import List, Optional, Sequence, Union

import structlog

from oee_dashboard.config import settings
from oee_dashboard.models.machine import (
    MachineResponse, MachineSummaryResponse, OEEMetricsResponse
)
from oee_dashboard.models.telemetry import Sample
from oee_dashboard.services.availability import availability_percentage, bucket_by_minute
from oee_dashboard.services.machine_catalog import MachineCatalog
from oee_dashboard.services.oee_composer import RejectedProductionProvider, compose_oee
from oee_dashboard.services.production_summary import count_reel_changes, produced_length
from oee_dashboard.services.production_weight import ProductionWeightEstimator
from oee_dashboard.services.status_classifier import StatusClassifier
from oee_dashboard.services.telemetry_reader import TelemetryReader
from oee_dashboard.utils.exceptions import NotFoundError
from oee_dashboard.utils.metrics import KPI_COMPUTE_DURATION
from oee_dashboard.utils.time_window import validate_window

logger = structlog.get_logger()


class DashboardService:
    """KPI queries for machines and devices."""

    def __init__(
        self,
        reader: TelemetryReader,
        catalog: MachineCatalog,
        classifier: Optional[StatusClassifier] = None,
        estimator: Optional[ProductionWeightEstimator] = None,
        rejected_production: Optional[RejectedProductionProvider] = None,
        status_key: str = settings.STATUS_KEY,
        lookback_minutes: int = settings.STATUS_LOOKBACK_MINUTES,
        clamp: bool = settings.CLAMP_KPI_PERCENTAGES
    ):
        self.reader = reader
        self.catalog = catalog
        self.classifier = classifier or StatusClassifier()
        self.estimator = estimator or ProductionWeightEstimator()
        self.rejected_production = rejected_production or RejectedProductionProvider()
        self.status_key = status_key
        self.summary_keys = (settings.MONTH_PRODUCTION_KEY, settings.REEL_CHANGE_KEY)
        self.lookback_minutes = lookback_minutes
        self.clamp = clamp

    async def machines_by_company(
        self,
        company_id: Union[int, str],
        start: datetime,
        end: datetime
    ) -> List[MachineSummaryResponse]:
        """Machines of a company with live status, produced length and reel count."""
        validate_window(start, end)

        with KPI_COMPUTE_DURATION.labels(operation="machines_by_company").time():
            machines = await self.catalog.machines_for_company(company_id)
            if not machines:
                raise NotFoundError("Machines for company", str(company_id))

            device_ids = [machine.machine_id for machine in machines]
            samples = await self.reader.read_devices(device_ids, start, end, keys=self.summary_keys)
            latest = await self.reader.latest(device_ids, self.lookback_minutes)

            summaries = [
                self.summarize_machine(machine, samples.get(machine.machine_id, []), latest.get(machine.machine_id))
                for machine in machines
            ]

        logger.info(
            "Company machines summarized",
            company_id=company_id,
            machines=len(summaries),
            start_time=start.isoformat(),
            end_time=end.isoformat()
        )
        return summaries

    async def machine(self, machine_uid: Union[int, str]) -> MachineResponse:
        machine = await self.catalog.machine_by_uid(machine_uid)
        if machine is None:
            raise NotFoundError("Machine", str(machine_uid))
        return machine

    async def device_oee(
        self,
        device_id: Union[int, str],
        start: datetime,
        end: datetime
    ) -> OEEMetricsResponse:
        """OEE, availability, performance and quality of a device over a window."""
        validate_window(start, end)

        with KPI_COMPUTE_DURATION.labels(operation="device_oee").time():
            samples = await self.reader.read(device_id, start, end)
            if not samples:
                raise NotFoundError("Telemetry for device", str(device_id))

            rejected_weight = await self.rejected_production.rejected_weight(device_id, start, end)
            metrics = self.compute_oee(samples, rejected_weight)

        logger.info(
            "Device OEE calculated",
            device_id=device_id,
            samples=len(samples),
            oee=metrics.oee,
            availability=metrics.availability,
            performance=metrics.performance,
            quality=metrics.quality
        )
        return metrics

    def summarize_machine(
        self,
        machine: MachineResponse,
        samples: Sequence[Sample],
        latest_sample: Optional[Sample]
    ) -> MachineSummaryResponse:
        return MachineSummaryResponse(
            **machine.model_dump(),
            status=self.classifier.classify(latest_sample),
            produced_length=produced_length(samples),
            produced_reels=count_reel_changes(samples),
        )

    def compute_oee(self, samples: Sequence[Sample], rejected_weight: float = 0.0) -> OEEMetricsResponse:
        availability = availability_percentage(bucket_by_minute(samples, self.status_key))

        actual_weight = self.estimator.actual_weight(samples)
        performance_buckets = bucket_by_minute(samples, self.status_key, self.estimator.line_speed_key)
        target_weight = self.estimator.target_weight(performance_buckets, samples)

        logger.debug(
            "Production weights estimated",
            actual_weight=actual_weight,
            target_weight=target_weight,
            rejected_weight=rejected_weight
        )

        return compose_oee(
            availability=availability,
            actual_weight=actual_weight,
            target_weight=target_weight,
            rejected_weight=rejected_weight,
            clamp=self.clamp
        )
