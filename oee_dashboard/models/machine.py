"""
OEE Floor Dashboard - Machine & KPI Models

This module defines Pydantic models for the machine catalog and the KPI
responses served to the dashboard.
"""

from enum import IntEnum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class MachineStatus(IntEnum):
    """Live operating state of a machine, as shown on the dashboard."""
    STOPPED = 0
    RUNNING = 1
    OFFLINE = 2
    IDLE = 3
    REDUCED_SPEED = 4
    # Shares the wire code with OFFLINE.
    UNKNOWN = 2


# Base models
class BaseMachineModel(BaseModel):
    """Base model for catalog entities."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class MachinePart(BaseMachineModel):
    """Sub-component of a machine."""
    machine_part_id: Union[int, str]
    machine_part_name: Optional[str] = None
    machine_part_serial_no: Optional[str] = None
    machine_image_path: Optional[str] = None
    machine_image_name: Optional[str] = None


class MachineResponse(BaseMachineModel):
    """Machine metadata as stored in the catalog."""
    machine_uid: Union[int, str]
    machine_id: Union[int, str] = Field(..., description="Telemetry device identifier")
    machine_name: Optional[str] = None
    machine_plant: Optional[str] = None
    machine_model: Optional[str] = None
    machine_customer: Optional[str] = None
    machine_location: Optional[str] = None
    machine_longitude: Optional[Union[float, str]] = None
    machine_latitude: Optional[Union[float, str]] = None
    machine_type_name: Optional[str] = None
    company_id: Union[int, str]
    model_data: List[MachinePart] = Field(default_factory=list, description="Machine parts")


class MachineSummaryResponse(MachineResponse):
    """Machine metadata with live status and production figures for a window."""
    status: MachineStatus = MachineStatus.OFFLINE
    produced_length: int = 0
    produced_reels: int = 0


class OEEMetricsResponse(BaseModel):
    """OEE figures for one device over a window, percentages with 2 decimals."""

    model_config = ConfigDict(populate_by_name=True)

    oee: float = Field(0.0, alias="OEE")
    availability: float = Field(0.0, alias="Availability")
    performance: float = Field(0.0, alias="Performance")
    quality: float = Field(0.0, alias="Quality")
