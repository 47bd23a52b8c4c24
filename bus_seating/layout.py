from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class SeatLayoutError(Exception):
    pass


class LabelCollisionError(SeatLayoutError):
    pass


class SeatType(str, Enum):
    regular = "regular"
    vip = "vip"
    disabled = "disabled"


class ArrangementPattern(str, Enum):
    one_by_one = "1x1"
    two_by_one = "2x1"
    one_by_two = "1x2"
    two_by_two = "2x2"
    three_by_two = "3x2"
    custom = "custom"

    @property
    def width(self) -> int | None:
        """Seats per row across both sides of the aisle; None for custom."""
        if self is ArrangementPattern.custom:
            return None
        left, right = self.value.split("x")
        return int(left) + int(right)


class BusType(str, Enum):
    economy = "economy"
    standard = "standard"
    business = "business"
    executive = "executive"
    vip = "vip"
    luxury = "luxury"
    sleeper = "sleeper"


@dataclass(frozen=True)
class Seat:
    id: str
    row: int
    column: int
    visual_row: int
    visual_column: int
    type: SeatType = SeatType.regular
    available: bool = True
    label: str = ""
    is_walkway: bool = False

    def with_changes(self, **changes) -> "Seat":
        return replace(self, **changes)


Grid = tuple[tuple[Seat, ...], ...]

WALKWAY_COLUMN = -1


def _enum_text(value) -> str:
    # str() of a str-mixin enum member is its qualified name, not its value.
    return str(getattr(value, "value", value)).strip().lower()


def parse_pattern(value) -> ArrangementPattern:
    try:
        return ArrangementPattern(_enum_text(value))
    except ValueError as e:
        allowed = ", ".join(p.value for p in ArrangementPattern)
        raise SeatLayoutError(f"unknown arrangement pattern {value!r} (expected one of: {allowed})") from e


def parse_seat_type(value) -> SeatType:
    try:
        return SeatType(_enum_text(value))
    except ValueError as e:
        raise SeatLayoutError(f"unknown seat type {value!r}") from e


def parse_bus_type(value) -> BusType:
    try:
        return BusType(_enum_text(value))
    except ValueError as e:
        allowed = ", ".join(b.value for b in BusType)
        raise SeatLayoutError(f"unknown bus type {value!r} (expected one of: {allowed})") from e


def middle_point(columns: int) -> int:
    return (columns + 1) // 2


def seat_letter(index: int) -> str:
    # 0 -> A, 25 -> Z, 26 -> AA
    letters = ""
    n = index + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def default_label(row: int, visual_column: int, rows: int, columns: int) -> str:
    """
    Label a seat would get from the generator.

    Left of the aisle letters run from A by visual column. Right of the aisle
    they start at C, or right after the last left-side letter when the left
    side already reaches C, so both sides stay disjoint.
    """
    mid = middle_point(columns)
    if visual_column == mid:
        if row != rows - 1:
            return f"W{row + 1}"
        # Back row: the aisle slot is a real seat.
        if columns <= ord("W") - ord("A"):
            return f"{row + 1}W"
        return f"{row + 1}{seat_letter(columns)}"
    if visual_column < mid:
        return f"{row + 1}{seat_letter(visual_column)}"
    first_right = max(2, mid)
    return f"{row + 1}{seat_letter(first_right + visual_column - mid - 1)}"


def is_back_aisle_seat(row: int, visual_column: int, rows: int, columns: int) -> bool:
    return row == rows - 1 and visual_column == middle_point(columns)


def generate(rows: int, columns: int, pattern=ArrangementPattern.two_by_two) -> Grid:
    """
    Build the default seat grid for a bus.

    One extra visual column is reserved for the aisle. Every row except the
    last gets a walkway there; in the last row that slot is a regular seat.
    """
    if rows <= 0 or columns <= 0:
        raise SeatLayoutError("rows and columns must be positive integers")
    parse_pattern(pattern)

    actual_columns = columns + 1
    mid = middle_point(columns)
    grid: list[tuple[Seat, ...]] = []
    for r in range(rows):
        is_last_row = r == rows - 1
        api_col = 0
        row_seats: list[Seat] = []
        for c in range(actual_columns):
            label = default_label(r, c, rows, columns)
            if c == mid and not is_last_row:
                row_seats.append(
                    Seat(
                        id=f"seat-{r}-{c}",
                        row=r,
                        column=WALKWAY_COLUMN,
                        visual_row=r,
                        visual_column=c,
                        available=False,
                        label=label,
                        is_walkway=True,
                    )
                )
                continue
            row_seats.append(
                Seat(
                    id=f"seat-{r}-{c}",
                    row=r,
                    column=api_col,
                    visual_row=r,
                    visual_column=c,
                    label=label,
                )
            )
            api_col += 1
        grid.append(tuple(row_seats))
    return tuple(grid)


def iter_seats(grid: Grid):
    for row in grid:
        yield from row


def seat_at(grid: Grid, row: int, visual_column: int) -> Seat:
    if not (0 <= row < len(grid) and 0 <= visual_column < len(grid[row])):
        raise SeatLayoutError(f"seat out of bounds: row={row}, col={visual_column}")
    return grid[row][visual_column]


def replace_seat(grid: Grid, seat: Seat) -> Grid:
    r, c = seat.visual_row, seat.visual_column
    seat_at(grid, r, c)
    new_row = grid[r][:c] + (seat,) + grid[r][c + 1 :]
    return grid[:r] + (new_row,) + grid[r + 1 :]


def available_count(grid: Grid) -> int:
    return sum(1 for s in iter_seats(grid) if s.available and not s.is_walkway)
