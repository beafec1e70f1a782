"""
OEE Floor Dashboard - Machine Catalog

Read access to machines, their machine type and their parts.
"""

import json
from typing import Any, Dict, List, Optional, Union

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from oee_dashboard.config import settings
from oee_dashboard.database import execute_query
from oee_dashboard.models.machine import MachineResponse

logger = structlog.get_logger()

MACHINE_COLUMNS = """
    m.machine_uid,
    m.machine_id,
    m.machine_name,
    m.machine_plant,
    m.machine_model,
    m.machine_customer,
    m.machine_location,
    m.machine_longitude,
    m.machine_latitude,
    mt.machine_type_name,
    m.company_id,
    COALESCE(
        JSON_AGG(
            JSON_BUILD_OBJECT(
                'machine_part_id', p.machine_part_id,
                'machine_part_name', p.machine_part_name,
                'machine_part_serial_no', p.machine_part_serial_no,
                'machine_image_path', p.machine_image_path,
                'machine_image_name', p.machine_image_name
            )
        ) FILTER (WHERE p.machine_part_id IS NOT NULL),
        '[]'::json
    ) AS model_data
"""

MACHINE_GROUP_BY = """
    m.machine_uid,
    m.machine_id,
    m.machine_name,
    m.machine_plant,
    m.machine_model,
    m.machine_customer,
    m.machine_location,
    m.machine_longitude,
    m.machine_latitude,
    mt.machine_type_name,
    m.company_id
"""


def _to_machine(row: Dict[str, Any]) -> MachineResponse:
    record = dict(row)
    parts = record.get("model_data")
    if isinstance(parts, (str, bytes)):
        parts = json.loads(parts)
    record["model_data"] = parts or []
    return MachineResponse.model_validate(record)


class MachineCatalog:
    """Machine metadata lookups."""

    def __init__(self, db: AsyncSession, schema: str = settings.DATABASE_SCHEMA):
        self.db = db
        self.schema = schema

    async def machines_for_company(self, company_id: Union[int, str]) -> List[MachineResponse]:
        """All typed machines of a company with their parts, by name."""
        query = f"""
            SELECT {MACHINE_COLUMNS}
            FROM {self.schema}.oee_machine m
            JOIN {self.schema}.oee_machine_type mt
            ON m.machine_type_id = mt.machine_type_id
            LEFT JOIN {self.schema}.oee_machine_parts p
            ON m.machine_uid = p.machine_id
            WHERE m.company_id::text = :company_id
            GROUP BY {MACHINE_GROUP_BY}
            ORDER BY m.machine_name, m.machine_uid
        """
        rows = await execute_query(self.db, query, {"company_id": str(company_id)}, source="catalog")

        logger.debug("Machines retrieved for company", company_id=company_id, count=len(rows))
        return [_to_machine(row) for row in rows]

    async def machine_by_uid(self, machine_uid: Union[int, str]) -> Optional[MachineResponse]:
        query = f"""
            SELECT {MACHINE_COLUMNS}
            FROM {self.schema}.oee_machine m
            LEFT JOIN {self.schema}.oee_machine_type mt
            ON m.machine_type_id = mt.machine_type_id
            LEFT JOIN {self.schema}.oee_machine_parts p
            ON m.machine_uid = p.machine_id
            WHERE m.machine_uid::text = :machine_uid
            GROUP BY {MACHINE_GROUP_BY}
        """
        rows = await execute_query(self.db, query, {"machine_uid": str(machine_uid)}, source="catalog")
        if not rows:
            return None
        return _to_machine(rows[0])
