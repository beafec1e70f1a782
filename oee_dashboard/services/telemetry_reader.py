"""
OEE Floor Dashboard - Telemetry Reader

This module reads raw device samples from the telemetry store. Samples live in
``<schema>.device_data`` as one JSON document per reading, keyed by device uid
and timestamp. All reads are bounded by a caller-supplied window.
"""

import json
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import structlog
from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from oee_dashboard.config import settings
from oee_dashboard.database import execute_query
from oee_dashboard.models.telemetry import Sample
from oee_dashboard.utils.metrics import TELEMETRY_SAMPLES_READ

logger = structlog.get_logger()

DeviceId = Union[int, str]


def _decode_payload(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (str, bytes)):
        try:
            decoded = json.loads(raw)
        except ValueError:
            logger.warning("Discarding undecodable telemetry payload", payload=str(raw)[:100])
            return {}
        return decoded if isinstance(decoded, dict) else {}
    return {}


def _group_by_device(rows: Iterable[Dict[str, Any]], device_ids: Sequence[DeviceId]) -> Dict[DeviceId, List[Sample]]:
    requested = {str(device_id): device_id for device_id in device_ids}
    grouped: Dict[DeviceId, List[Sample]] = {device_id: [] for device_id in device_ids}

    for row in rows:
        device_id = requested.get(str(row["deviceuid"]))
        if device_id is None:
            continue
        grouped[device_id].append(Sample(
            device_id=device_id,
            timestamp=row["timestamp"],
            attributes=_decode_payload(row["data"]),
        ))

    # The store orders rows already; a stable sort keeps its tie order.
    for samples in grouped.values():
        samples.sort(key=lambda sample: sample.timestamp)
    return grouped


class TelemetryReader:
    """Read-only access to device telemetry."""

    def __init__(self, db: AsyncSession, schema: str = settings.DATABASE_SCHEMA):
        self.db = db
        self.schema = schema

    async def read(self, device_id: DeviceId, start: datetime, end: datetime) -> List[Sample]:
        """Samples of one device with ``start <= timestamp <= end``, oldest first."""
        samples = await self.read_devices([device_id], start, end)
        return samples[device_id]

    async def read_devices(
        self,
        device_ids: Sequence[DeviceId],
        start: datetime,
        end: datetime,
        keys: Optional[Sequence[str]] = None
    ) -> Dict[DeviceId, List[Sample]]:
        """Samples of several devices in one round trip, grouped per device.

        With ``keys``, only those payload attributes are fetched. Attributes a
        sample did not report come back as null.
        """
        if not device_ids:
            return {}

        params: Dict[str, Any] = {
            "device_ids": [str(device_id) for device_id in device_ids],
            "start_time": start,
            "end_time": end,
        }
        payload = "data"
        if keys:
            pairs = []
            for index, key in enumerate(keys):
                params[f"key_{index}"] = key
                pairs.append(f"CAST(:key_{index} AS text), data -> CAST(:key_{index} AS text)")
            payload = f"json_build_object({', '.join(pairs)})"

        query = text(f"""
            SELECT deviceuid, timestamp, {payload} AS data
            FROM {self.schema}.device_data
            WHERE deviceuid::text IN :device_ids
            AND timestamp BETWEEN :start_time AND :end_time
            ORDER BY deviceuid, timestamp
        """).bindparams(bindparam("device_ids", expanding=True))

        rows = await execute_query(self.db, query, params)
        TELEMETRY_SAMPLES_READ.inc(len(rows))

        logger.debug(
            "Telemetry read",
            devices=len(device_ids),
            samples=len(rows),
            start_time=start.isoformat(),
            end_time=end.isoformat()
        )

        return _group_by_device(rows, device_ids)

    async def latest(
        self,
        device_ids: Sequence[DeviceId],
        lookback_minutes: int = settings.STATUS_LOOKBACK_MINUTES
    ) -> Dict[DeviceId, Sample]:
        """Most recent sample per device within the lookback window.

        Devices with nothing in the window are absent from the result.
        """
        if not device_ids:
            return {}

        query = text(f"""
            SELECT DISTINCT ON (deviceuid) deviceuid, timestamp, data
            FROM {self.schema}.device_data
            WHERE deviceuid::text IN :device_ids
            AND timestamp >= NOW() - make_interval(mins => :lookback_minutes)
            ORDER BY deviceuid, timestamp DESC
        """).bindparams(bindparam("device_ids", expanding=True))

        rows = await execute_query(self.db, query, {
            "device_ids": [str(device_id) for device_id in device_ids],
            "lookback_minutes": lookback_minutes,
        })

        grouped = _group_by_device(rows, device_ids)
        return {device_id: samples[-1] for device_id, samples in grouped.items() if samples}
