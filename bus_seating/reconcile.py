from __future__ import annotations

import logging
from typing import Iterable, Optional

from .layout import (
    Grid,
    Seat,
    SeatLayoutError,
    SeatType,
    available_count,
    generate,
    is_back_aisle_seat,
    iter_seats,
    middle_point,
    replace_seat,
)


logger = logging.getLogger(__name__)


def _as_int(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _stored_type(value) -> SeatType:
    try:
        return SeatType(str(getattr(value, "value", value)).strip().lower())
    except ValueError:
        return SeatType.regular


def _walkway_record(rec: dict, row: int) -> bool:
    if "is_walkway" in rec:
        return bool(rec["is_walkway"])
    # Older exports drop the flag; the default walkway is a disabled "W{row}".
    return not rec.get("available", True) and str(rec.get("label") or "").strip() == f"W{row + 1}"


def _index_stored(stored_seats: Iterable[dict]) -> tuple[dict, dict]:
    by_visual: dict[tuple[int, int], dict] = {}
    by_api: dict[tuple[int, int], dict] = {}
    for rec in stored_seats:
        vr = _as_int(rec.get("visual_row"))
        vc = _as_int(rec.get("visual_column"))
        if vr is not None and vc is not None:
            by_visual[(vr, vc)] = rec
            continue
        row = _as_int(rec.get("row"))
        col = _as_int(rec.get("column"))
        if row is None or col is None:
            continue
        key = (row, col)
        # Walkway records share their API column with the next seat; the seat wins
        # whichever order the records arrive in.
        if key in by_api and _walkway_record(rec, row) and not _walkway_record(by_api[key], row):
            continue
        by_api[key] = rec
    return by_visual, by_api


def overlay_stored_seats(
    stored_seats: Iterable[dict],
    rows: int,
    columns: int,
    pattern,
) -> tuple[Grid, set[tuple[int, int]]]:
    """
    Regenerate the default grid and lay persisted per-seat state over it.

    Returns the grid and the visual positions that matched a stored record.
    """
    grid = generate(rows, columns, pattern)
    by_visual, by_api = _index_stored(stored_seats)
    matched: set[tuple[int, int]] = set()

    out: list[tuple[Seat, ...]] = []
    for row in grid:
        new_row: list[Seat] = []
        for seat in row:
            rec = by_visual.get((seat.visual_row, seat.visual_column))
            if rec is None:
                rec = by_api.get((seat.row, seat.column))
            if rec is None:
                new_row.append(seat)
                continue
            matched.add((seat.visual_row, seat.visual_column))
            is_walkway = bool(rec.get("is_walkway", seat.is_walkway))
            if is_back_aisle_seat(seat.visual_row, seat.visual_column, rows, columns):
                is_walkway = False
            label = str(rec.get("label") or "").strip() or seat.label
            available = bool(rec.get("available", seat.available)) and not is_walkway
            new_row.append(
                seat.with_changes(
                    type=_stored_type(rec.get("type", seat.type.value)),
                    label=label,
                    available=available,
                    is_walkway=is_walkway,
                )
            )
        out.append(tuple(new_row))
    return tuple(out), matched


def _back_to_front(grid: Grid, *, skip: Optional[tuple[int, int]] = None) -> list[Seat]:
    seats = [
        s
        for s in iter_seats(grid)
        if not s.is_walkway and (s.visual_row, s.visual_column) != skip
    ]
    return sorted(seats, key=lambda s: (s.visual_row, s.visual_column), reverse=True)


def _set_available(grid: Grid, seats: list[Seat], value: bool, limit: int) -> tuple[Grid, int]:
    changed = 0
    for seat in seats:
        if changed >= limit:
            break
        current = grid[seat.visual_row][seat.visual_column]
        if current.available == value:
            continue
        grid = replace_seat(grid, current.with_changes(available=value))
        changed += 1
    return grid, changed


def reconcile(
    stored_seats: Iterable[dict],
    rows: int,
    columns: int,
    pattern,
    target_total_seats: int,
) -> Grid:
    """
    Rebuild an editable grid from a persisted flat seat list.

    The stored list is the only source of truth. The result always ends up
    with exactly ``target_total_seats`` available seats when the layout has
    room for that many; seats are disabled or enabled from the back of the
    bus to get there.
    """
    target = int(target_total_seats)
    if target < 0:
        raise SeatLayoutError("target total seats must not be negative")

    grid, matched = overlay_stored_seats(stored_seats, rows, columns, pattern)

    back_aisle = (rows - 1, middle_point(columns))
    if back_aisle not in matched and target == rows * columns:
        seat = grid[back_aisle[0]][back_aisle[1]]
        grid = replace_seat(grid, seat.with_changes(available=False))

    # rows * columns + 1 for a standard layout; custom walkway edits move it.
    capacity = sum(1 for s in iter_seats(grid) if not s.is_walkway)
    expected_disabled = capacity - target
    disabled = sum(1 for s in iter_seats(grid) if not s.is_walkway and not s.available)
    if disabled < expected_disabled:
        grid, _ = _set_available(
            grid, _back_to_front(grid, skip=back_aisle), False, expected_disabled - disabled
        )

    actual = available_count(grid)
    if actual > target:
        logger.warning("seat count repair: disabling %d seat(s) to reach %d", actual - target, target)
        grid, _ = _set_available(grid, _back_to_front(grid), False, actual - target)
    elif actual < target:
        logger.warning("seat count repair: enabling %d seat(s) to reach %d", target - actual, target)
        grid, changed = _set_available(grid, _back_to_front(grid), True, target - actual)
        if changed < target - actual:
            logger.warning(
                "layout %dx%d has room for only %d seat(s), wanted %d",
                rows,
                columns,
                available_count(grid),
                target,
            )
    return grid
