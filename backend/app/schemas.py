from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from bus_seating.layout import ArrangementPattern, SeatType


class SeatRecord(BaseModel):
    id: str = ""
    row: int = Field(ge=0)
    column: int
    type: SeatType = SeatType.regular
    available: bool = True
    label: str = ""
    # Absent on legacy records.
    visual_row: Optional[int] = None
    visual_column: Optional[int] = None
    is_walkway: bool = False


class SeatLayout(BaseModel):
    rows: int = Field(gt=0)
    columns: int = Field(gt=0)
    arrangement_pattern: ArrangementPattern = ArrangementPattern.two_by_two
    seats: list[SeatRecord] = Field(default_factory=list)


class BusConfigurationCreate(BaseModel):
    name: str
    description: str = ""
    bus_type: str
    total_seats: int = Field(ge=0)
    seat_layout: SeatLayout
    amenities: list[str] = Field(default_factory=list)

    @field_validator("bus_type")
    @classmethod
    def _lower_bus_type(cls, v: str) -> str:
        return v.strip().lower()


class BusConfigurationUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    bus_type: Optional[str] = None
    total_seats: Optional[int] = Field(default=None, ge=0)
    seat_layout: Optional[SeatLayout] = None
    amenities: Optional[list[str]] = None

    @field_validator("bus_type")
    @classmethod
    def _lower_bus_type(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v is not None else None


class CloneRequest(BaseModel):
    name: str


class BusCreate(BaseModel):
    bus_number: str
    configuration_id: str
    fleet_number: Optional[str] = None
