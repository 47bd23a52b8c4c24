from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from .layout import (
    ArrangementPattern,
    Grid,
    LabelCollisionError,
    SeatLayoutError,
    available_count,
    default_label,
    generate,
    is_back_aisle_seat,
    iter_seats,
    parse_pattern,
    parse_seat_type,
    replace_seat,
    seat_at,
)
from .reconcile import overlay_stored_seats, reconcile
from .serialize import serialize
from .validate import validate_submission


logger = logging.getLogger(__name__)

DEFAULT_ROWS = 10
DEFAULT_COLUMNS = 4
DEFAULT_PATTERN = ArrangementPattern.two_by_two


class ConfirmationRequired(SeatLayoutError):
    pass


@dataclass(frozen=True)
class ConfigurationEditorState:
    """
    Everything the configuration dialog edits, as one immutable value.

    ``baseline`` holds the snapshot taken when the editor was opened or last
    saved; it does not take part in equality.
    """

    config_id: Optional[str] = None
    name: str = ""
    description: str = ""
    bus_type: str = ""
    total_seats: int = 0
    amenities: tuple[str, ...] = ()
    rows: int = DEFAULT_ROWS
    columns: int = DEFAULT_COLUMNS
    pattern: ArrangementPattern = DEFAULT_PATTERN
    grid: Grid = ()
    layout_configured: bool = False
    baseline: Optional[tuple] = field(default=None, compare=False, repr=False)

    def snapshot(self) -> tuple:
        return (
            self.name,
            self.description,
            self.bus_type,
            self.total_seats,
            self.amenities,
            self.rows,
            self.columns,
            self.pattern,
            self.grid,
        )


def _split_amenities(value) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(a.strip() for a in value if a and str(a).strip())


def new_editor(
    rows: int = DEFAULT_ROWS,
    columns: int = DEFAULT_COLUMNS,
    pattern=DEFAULT_PATTERN,
) -> ConfigurationEditorState:
    state = ConfigurationEditorState(rows=rows, columns=columns, pattern=parse_pattern(pattern))
    return replace(state, baseline=state.snapshot())


def generate_layout(state: ConfigurationEditorState) -> ConfigurationEditorState:
    grid = generate(state.rows, state.columns, state.pattern)
    return replace(state, grid=grid, layout_configured=True, total_seats=available_count(grid))


reset_layout = generate_layout


def resize(state: ConfigurationEditorState, rows: int, columns: int) -> ConfigurationEditorState:
    return generate_layout(replace(state, rows=int(rows), columns=int(columns)))


def has_custom_labels(state: ConfigurationEditorState) -> bool:
    for seat in iter_seats(state.grid):
        if seat.label != default_label(seat.visual_row, seat.visual_column, state.rows, state.columns):
            return True
    return False


def change_pattern(state: ConfigurationEditorState, pattern, *, confirmed: bool = False) -> ConfigurationEditorState:
    """
    Switch arrangement pattern.

    Moving to a fixed pattern regenerates the grid at that pattern's width,
    which throws away custom labels; that needs ``confirmed=True``.
    """
    new_pattern = parse_pattern(pattern)
    if new_pattern is state.pattern:
        return state
    if new_pattern is ArrangementPattern.custom:
        return replace(state, pattern=new_pattern)
    if state.layout_configured and has_custom_labels(state) and not confirmed:
        raise ConfirmationRequired(
            f"switching to {new_pattern.value} discards custom seat labels; confirm to continue"
        )
    return generate_layout(replace(state, pattern=new_pattern, columns=new_pattern.width))


def _require_layout(state: ConfigurationEditorState) -> None:
    if not state.layout_configured or not state.grid:
        raise SeatLayoutError("seat layout has not been configured")


def _label_taken(state: ConfigurationEditorState, label: str, row: int, col: int) -> bool:
    for seat in iter_seats(state.grid):
        if (seat.visual_row, seat.visual_column) == (row, col):
            continue
        if seat.available and not seat.is_walkway and seat.label == label:
            return True
    return False


def _with_grid(state: ConfigurationEditorState, grid: Grid) -> ConfigurationEditorState:
    return replace(state, grid=grid, total_seats=available_count(grid))


def set_seat_type(state: ConfigurationEditorState, row: int, col: int, seat_type) -> ConfigurationEditorState:
    _require_layout(state)
    seat = seat_at(state.grid, row, col)
    if seat.is_walkway:
        raise SeatLayoutError(f"R{row}C{col} is a walkway")
    return replace(state, grid=replace_seat(state.grid, seat.with_changes(type=parse_seat_type(seat_type))))


def toggle_availability(state: ConfigurationEditorState, row: int, col: int) -> ConfigurationEditorState:
    _require_layout(state)
    seat = seat_at(state.grid, row, col)
    if seat.is_walkway:
        raise SeatLayoutError(f"R{row}C{col} is a walkway")
    if not seat.available and _label_taken(state, seat.label, row, col):
        raise LabelCollisionError(f"label {seat.label!r} is already used by another seat")
    return _with_grid(state, replace_seat(state.grid, seat.with_changes(available=not seat.available)))


def set_label(state: ConfigurationEditorState, row: int, col: int, label: str) -> ConfigurationEditorState:
    _require_layout(state)
    label = (label or "").strip()
    if not label:
        raise SeatLayoutError("label must be a non-empty string")
    seat = seat_at(state.grid, row, col)
    if seat.is_walkway:
        raise SeatLayoutError(f"R{row}C{col} is a walkway")
    if seat.available and _label_taken(state, label, row, col):
        raise LabelCollisionError(f"label {label!r} is already used by another seat")
    return replace(state, grid=replace_seat(state.grid, seat.with_changes(label=label)))


def toggle_walkway(state: ConfigurationEditorState, row: int, col: int) -> ConfigurationEditorState:
    _require_layout(state)
    if state.pattern is not ArrangementPattern.custom:
        raise SeatLayoutError("walkways can only be edited in the custom pattern")
    if is_back_aisle_seat(row, col, state.rows, state.columns):
        raise SeatLayoutError("the back-row aisle seat cannot be a walkway")
    seat = seat_at(state.grid, row, col)
    if seat.is_walkway:
        label = default_label(row, col, state.rows, state.columns)
        if label.startswith("W"):
            label = f"{row + 1}W"
        if _label_taken(state, label, row, col):
            raise LabelCollisionError(f"label {label!r} is already used by another seat")
        seat = seat.with_changes(is_walkway=False, available=True, label=label)
    else:
        seat = seat.with_changes(is_walkway=True, available=False, label=f"W{row + 1}")
    return _with_grid(state, replace_seat(state.grid, seat))


def update_details(state: ConfigurationEditorState, **fields) -> ConfigurationEditorState:
    allowed = {"name", "description", "bus_type", "total_seats", "amenities"}
    unknown = set(fields) - allowed
    if unknown:
        raise SeatLayoutError(f"unknown configuration fields: {sorted(unknown)}")
    if "amenities" in fields:
        fields["amenities"] = _split_amenities(fields["amenities"])
    if "total_seats" in fields:
        fields["total_seats"] = int(fields["total_seats"] or 0)
    if "bus_type" in fields:
        fields["bus_type"] = str(fields["bus_type"] or "").strip().lower()
    return replace(state, **fields)


def open_configuration(config: dict) -> ConfigurationEditorState:
    """Editor state for a stored configuration, rebuilt through the reconciler."""
    layout = config.get("seat_layout") or {}
    rows = int(layout.get("rows") or DEFAULT_ROWS)
    columns = int(layout.get("columns") or DEFAULT_COLUMNS)
    pattern = parse_pattern(layout.get("arrangement_pattern") or DEFAULT_PATTERN.value)
    seats = layout.get("seats") or []
    total = int(config.get("total_seats") or 0)
    if not total:
        total = available_count(overlay_stored_seats(seats, rows, columns, pattern)[0])
    grid = reconcile(seats, rows, columns, pattern, total)

    state = ConfigurationEditorState(
        config_id=config.get("id") or None,
        name=str(config.get("name") or ""),
        description=str(config.get("description") or ""),
        bus_type=str(config.get("bus_type") or "").lower(),
        total_seats=available_count(grid),
        amenities=_split_amenities(config.get("amenities")),
        rows=rows,
        columns=columns,
        pattern=pattern,
        grid=grid,
        layout_configured=True,
    )
    return replace(state, baseline=state.snapshot())


def build_submission(state: ConfigurationEditorState) -> dict:
    """Validate and flatten the editor into a create/update request body."""
    validate_submission(state)
    seats = serialize(state.grid, state.columns)
    total = available_count(state.grid)
    if total != state.total_seats:
        logger.info("total seats corrected from %d to %d available seat(s)", state.total_seats, total)
    return {
        "name": state.name.strip(),
        "description": state.description,
        "bus_type": state.bus_type,
        "total_seats": total,
        "seat_layout": {
            "rows": state.rows,
            "columns": state.columns,
            "arrangement_pattern": state.pattern.value,
            "seats": seats,
        },
        "amenities": list(state.amenities),
    }


def is_dirty(state: ConfigurationEditorState) -> bool:
    return state.baseline is None or state.snapshot() != state.baseline


def mark_saved(state: ConfigurationEditorState, config_id: Optional[str] = None) -> ConfigurationEditorState:
    if config_id is not None:
        state = replace(state, config_id=config_id)
    return replace(state, baseline=state.snapshot())
