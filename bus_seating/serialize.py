from __future__ import annotations

import secrets
from collections import defaultdict

from .layout import Grid, Seat, default_label, is_back_aisle_seat, iter_seats


def _unique_id(seat_id: str, seen: set[str]) -> str:
    candidate = seat_id or "seat"
    while candidate in seen:
        candidate = f"{seat_id or 'seat'}-{secrets.token_hex(3)}"
    seen.add(candidate)
    return candidate


def serialize(grid: Grid, columns: int) -> list[dict]:
    """
    Flatten a grid into the seat records the configuration API stores.

    ``column`` is a dense per-row index over real seats; the visual position
    is carried alongside so the grid can be redrawn exactly on reload.
    Columns are clamped to ``columns`` rather than ``columns - 1`` because the
    last row seats the aisle too and holds ``columns + 1`` seats.
    """
    rows = len(grid)
    by_row: dict[int, list[Seat]] = defaultdict(list)
    for seat in iter_seats(grid):
        by_row[seat.row].append(seat)

    seen_ids: set[str] = set()
    out: list[dict] = []
    for r in sorted(by_row):
        api_col = 0
        for seat in sorted(by_row[r], key=lambda s: s.visual_column):
            back_aisle = is_back_aisle_seat(seat.visual_row, seat.visual_column, rows, columns)
            is_walkway = seat.is_walkway and not back_aisle
            column = min(api_col, columns)
            if not is_walkway:
                api_col += 1
            out.append(
                {
                    "id": _unique_id(seat.id, seen_ids),
                    "row": seat.row,
                    "column": column,
                    "type": seat.type.value,
                    "available": bool(seat.available) and not is_walkway,
                    "label": seat.label or default_label(seat.visual_row, seat.visual_column, rows, columns),
                    "visual_row": seat.visual_row,
                    "visual_column": seat.visual_column,
                    "is_walkway": is_walkway,
                }
            )
    return out
