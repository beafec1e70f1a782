"""
OEE Floor Dashboard - Machine & OEE API Routes

This module provides API endpoints for the machine overview of a company,
single machine metadata, and device OEE figures over a time window.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from oee_dashboard.database import get_db
from oee_dashboard.models.machine import MachineResponse, MachineSummaryResponse, OEEMetricsResponse
from oee_dashboard.services.dashboard_service import DashboardService
from oee_dashboard.services.machine_catalog import MachineCatalog
from oee_dashboard.services.telemetry_reader import TelemetryReader
from oee_dashboard.utils.exceptions import DashboardException
from oee_dashboard.utils.time_window import parse_window

logger = structlog.get_logger()

router = APIRouter()


def get_dashboard_service(db: AsyncSession = Depends(get_db)) -> DashboardService:
    """Dependency building a request-scoped dashboard service."""
    return DashboardService(reader=TelemetryReader(db), catalog=MachineCatalog(db))


@router.get(
    "/machine_data/{company_id}/{start_date}/{end_date}",
    response_model=List[MachineSummaryResponse],
    status_code=status.HTTP_200_OK
)
async def machine_by_company_id(
    company_id: str,
    start_date: str = Path(..., description="Window start, YYYY-MM-DD HH:MM:SS"),
    end_date: str = Path(..., description="Window end, YYYY-MM-DD HH:MM:SS"),
    service: DashboardService = Depends(get_dashboard_service)
) -> List[MachineSummaryResponse]:
    """Get all machines of a company with live status and production figures."""
    try:
        start, end = parse_window(start_date, end_date)

        machines = await service.machines_by_company(company_id, start, end)

        logger.debug(
            "Company machines retrieved via API",
            company_id=company_id,
            count=len(machines)
        )

        return machines

    except DashboardException:
        raise
    except Exception as e:
        logger.error("Failed to get company machines via API", error=str(e), company_id=company_id)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get(
    "/single_machine_data/{machine_id}",
    response_model=List[MachineResponse],
    status_code=status.HTTP_200_OK
)
async def get_machine_name(
    machine_id: str,
    service: DashboardService = Depends(get_dashboard_service)
) -> List[MachineResponse]:
    """Get metadata of a single machine by its machine uid."""
    try:
        machine = await service.machine(machine_id)

        logger.debug("Machine retrieved via API", machine_uid=machine_id)

        return [machine]

    except DashboardException:
        raise
    except Exception as e:
        logger.error("Failed to get machine via API", error=str(e), machine_uid=machine_id)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get(
    "/device_data/{device_id}/{start_date}/{end_date}",
    response_model=OEEMetricsResponse,
    status_code=status.HTTP_200_OK
)
async def data_by_device_id(
    device_id: str,
    start_date: str = Path(..., description="Window start, YYYY-MM-DD HH:MM:SS"),
    end_date: str = Path(..., description="Window end, YYYY-MM-DD HH:MM:SS"),
    service: DashboardService = Depends(get_dashboard_service)
) -> OEEMetricsResponse:
    """Get OEE, availability, performance and quality of a device over a window."""
    try:
        start, end = parse_window(start_date, end_date)

        metrics = await service.device_oee(device_id, start, end)

        logger.debug(
            "Device OEE retrieved via API",
            device_id=device_id,
            oee=metrics.oee
        )

        return metrics

    except DashboardException:
        raise
    except Exception as e:
        logger.error("Failed to get device OEE via API", error=str(e), device_id=device_id)
        raise HTTPException(status_code=500, detail="Internal server error")
