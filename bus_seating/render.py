from __future__ import annotations

from .layout import Grid, Seat, SeatType


TYPE_MARKERS = {
    SeatType.regular: "",
    SeatType.vip: "*",
    SeatType.disabled: "+",
}


def _cell(seat: Seat, width: int) -> str:
    if seat.is_walkway:
        return "|".center(width)
    if not seat.available:
        return "x".center(width)
    t = f"{seat.label}{TYPE_MARKERS.get(seat.type, '')}"
    if len(t) > width:
        t = t[: max(0, width - 1)] + "…"
    return t.center(width)


def render_ascii(grid: Grid, *, cell_width: int = 5) -> str:
    """
    Draw the grid front to back. Walkways show as ``|``, unavailable seats as
    ``x``; VIP seats carry ``*`` and accessible seats ``+``.
    """
    if not grid:
        return "(no layout)"
    cell_width = max(3, int(cell_width))
    cols = max(len(r) for r in grid)

    header = " " * (cell_width + 2) + " ".join(f"C{c}".center(cell_width) for c in range(cols))
    lines = [header]
    for r, row in enumerate(grid):
        row_cells = " ".join(_cell(seat, cell_width) for seat in row)
        lines.append(f"R{r}".ljust(cell_width + 2) + row_cells)
    return "\n".join(lines)
