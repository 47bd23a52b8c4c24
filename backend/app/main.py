from __future__ import annotations

import json

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session, select

from bus_seating.layout import SeatLayoutError, parse_bus_type
from bus_seating.validate import duplicate_labels

from .db import get_session, init_db
from .models import Bus, BusConfiguration, _utc_now
from .schemas import BusConfigurationCreate, BusConfigurationUpdate, BusCreate, CloneRequest


app = FastAPI(title="Bus Configuration API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def _startup() -> None:
    init_db()


def _session() -> Session:
    return get_session()


def _validation_problems(payload: BusConfigurationCreate) -> list[str]:
    problems: list[str] = []
    if not payload.name.strip():
        problems.append("name is required")
    try:
        parse_bus_type(payload.bus_type)
    except SeatLayoutError as e:
        problems.append(str(e))
    if payload.total_seats <= 0:
        problems.append("total_seats must be greater than zero")

    layout = payload.seat_layout
    seats = [s.model_dump() for s in layout.seats]
    for s in layout.seats:
        if s.row >= layout.rows:
            problems.append(f"seat {s.id or s.label!r} is outside {layout.rows} rows")
            break
    dupes = duplicate_labels(seats)
    if dupes:
        problems.append(f"duplicate seat labels: {', '.join(dupes)}")
    if seats:
        available = sum(1 for s in layout.seats if s.available and not s.is_walkway)
        if available != payload.total_seats:
            problems.append(f"total_seats is {payload.total_seats} but {available} seats are available")
    return problems


def _check(payload: BusConfigurationCreate) -> None:
    problems = _validation_problems(payload)
    if problems:
        raise HTTPException(status_code=400, detail="; ".join(problems))


def _layout_json(payload: BusConfigurationCreate) -> str:
    return json.dumps(payload.seat_layout.model_dump(mode="json"))


def _config_out(c: BusConfiguration) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "description": c.description,
        "bus_type": c.bus_type,
        "total_seats": c.total_seats,
        "seat_layout": c.layout(),
        "amenities": c.amenities(),
        "created_at": c.created_at.isoformat(),
        "updated_at": c.updated_at.isoformat(),
    }


def _get_config(session: Session, config_id: str) -> BusConfiguration:
    c = session.get(BusConfiguration, config_id)
    if not c:
        raise HTTPException(status_code=404, detail="bus configuration not found")
    return c


@app.get("/health")
def health() -> dict:
    return {"ok": True}


@app.get("/api/bus-configurations")
def list_configurations(session: Session = Depends(_session)) -> list[dict]:
    configs = session.exec(select(BusConfiguration).order_by(BusConfiguration.created_at.desc())).all()
    return [_config_out(c) for c in configs]


@app.post("/api/bus-configurations/validate")
def validate_configuration(payload: BusConfigurationCreate) -> dict:
    _check(payload)
    return {"valid": True}


@app.post("/api/bus-configurations", status_code=201)
def create_configuration(payload: BusConfigurationCreate, session: Session = Depends(_session)) -> dict:
    _check(payload)
    c = BusConfiguration(
        name=payload.name.strip(),
        description=payload.description,
        bus_type=payload.bus_type,
        total_seats=payload.total_seats,
        layout_json=_layout_json(payload),
        amenities_json=json.dumps(payload.amenities),
    )
    session.add(c)
    session.commit()
    session.refresh(c)
    return _config_out(c)


@app.get("/api/bus-configurations/buses/{bus_id}/configuration")
def configuration_for_bus(bus_id: str, session: Session = Depends(_session)) -> dict:
    bus = session.get(Bus, bus_id)
    if not bus:
        raise HTTPException(status_code=404, detail="bus not found")
    return _config_out(_get_config(session, bus.configuration_id))


@app.get("/api/bus-configurations/{config_id}")
def get_configuration(config_id: str, session: Session = Depends(_session)) -> dict:
    return _config_out(_get_config(session, config_id))


@app.patch("/api/bus-configurations/{config_id}")
def update_configuration(
    config_id: str, payload: BusConfigurationUpdate, session: Session = Depends(_session)
) -> dict:
    c = _get_config(session, config_id)
    merged = BusConfigurationCreate(
        name=payload.name if payload.name is not None else c.name,
        description=payload.description if payload.description is not None else c.description,
        bus_type=payload.bus_type if payload.bus_type is not None else c.bus_type,
        total_seats=payload.total_seats if payload.total_seats is not None else c.total_seats,
        seat_layout=payload.seat_layout if payload.seat_layout is not None else c.layout(),
        amenities=payload.amenities if payload.amenities is not None else c.amenities(),
    )
    _check(merged)
    c.name = merged.name.strip()
    c.description = merged.description
    c.bus_type = merged.bus_type
    c.total_seats = merged.total_seats
    c.layout_json = _layout_json(merged)
    c.amenities_json = json.dumps(merged.amenities)
    c.updated_at = _utc_now()
    session.add(c)
    session.commit()
    session.refresh(c)
    return _config_out(c)


@app.delete("/api/bus-configurations/{config_id}")
def delete_configuration(config_id: str, session: Session = Depends(_session)) -> dict:
    c = _get_config(session, config_id)
    session.delete(c)
    session.commit()
    return {"deleted": True}


@app.post("/api/bus-configurations/{config_id}/clone", status_code=201)
def clone_configuration(config_id: str, payload: CloneRequest, session: Session = Depends(_session)) -> dict:
    src = _get_config(session, config_id)
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="name is required")
    c = BusConfiguration(
        name=name,
        description=src.description,
        bus_type=src.bus_type,
        total_seats=src.total_seats,
        layout_json=src.layout_json,
        amenities_json=src.amenities_json,
    )
    session.add(c)
    session.commit()
    session.refresh(c)
    return _config_out(c)


@app.post("/api/buses", status_code=201)
def create_bus(payload: BusCreate, session: Session = Depends(_session)) -> dict:
    if not payload.bus_number.strip():
        raise HTTPException(status_code=400, detail="bus_number is required")
    if not session.get(BusConfiguration, payload.configuration_id):
        raise HTTPException(status_code=400, detail="configuration_id does not match a bus configuration")
    b = Bus(
        bus_number=payload.bus_number.strip(),
        configuration_id=payload.configuration_id,
        fleet_number=payload.fleet_number,
    )
    session.add(b)
    session.commit()
    session.refresh(b)
    return {"id": b.id, "bus_number": b.bus_number, "configuration_id": b.configuration_id}


@app.get("/api/buses")
def list_buses(session: Session = Depends(_session)) -> list[dict]:
    buses = session.exec(select(Bus).order_by(Bus.created_at.desc())).all()
    return [
        {"id": b.id, "bus_number": b.bus_number, "configuration_id": b.configuration_id, "fleet_number": b.fleet_number}
        for b in buses
    ]
