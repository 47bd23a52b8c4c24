from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class BusConfiguration(SQLModel, table=True):
    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str = Field(index=True)
    description: str = ""
    bus_type: str
    total_seats: int = 0

    # JSON: {"rows", "columns", "arrangement_pattern", "seats": [...]}
    layout_json: str
    # JSON list of strings
    amenities_json: str = "[]"

    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    def layout(self) -> dict:
        return json.loads(self.layout_json)

    def amenities(self) -> list[str]:
        return json.loads(self.amenities_json)


class Bus(SQLModel, table=True):
    id: str = Field(default_factory=_new_id, primary_key=True)
    bus_number: str = Field(index=True)
    # SQLite does not enforce this; configurations are deleted independently.
    configuration_id: str = Field(index=True, foreign_key="busconfiguration.id")
    fleet_number: Optional[str] = None

    created_at: datetime = Field(default_factory=_utc_now)
