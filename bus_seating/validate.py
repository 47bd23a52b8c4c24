from __future__ import annotations

from collections import Counter
from typing import Iterable, Union

from .layout import ArrangementPattern, LabelCollisionError, Seat, SeatLayoutError, available_count, parse_bus_type


class SubmissionError(SeatLayoutError):
    pass


class DuplicateLabelError(SubmissionError, LabelCollisionError):
    def __init__(self, labels: list[str]):
        self.labels = labels
        super().__init__(f"duplicate seat labels: {', '.join(labels)}")


def _field(seat: Union[Seat, dict], name: str):
    if isinstance(seat, dict):
        return seat.get(name)
    return getattr(seat, name)


def duplicate_labels(seats: Iterable[Union[Seat, dict]]) -> list[str]:
    """Labels used by more than one available seat, sorted."""
    counts = Counter(
        str(_field(s, "label") or "").strip()
        for s in seats
        if _field(s, "available") and not _field(s, "is_walkway")
    )
    return sorted(label for label, n in counts.items() if n > 1 and label)


def validate_submission(state) -> None:
    """
    Gate a configuration before it is serialized and sent.

    Raises on the first rule that fails; nothing here touches the network.
    """
    if not (state.name or "").strip():
        raise SubmissionError("configuration name is required")
    try:
        parse_bus_type(state.bus_type)
    except SeatLayoutError as e:
        raise SubmissionError(str(e)) from e
    if int(state.total_seats or 0) <= 0:
        raise SubmissionError("total seats must be greater than zero")
    if not state.layout_configured or not state.grid:
        raise SubmissionError("seat layout has not been configured")
    if state.pattern is ArrangementPattern.custom and available_count(state.grid) == 0:
        raise SubmissionError("custom layout needs at least one available seat")

    seats = [s for row in state.grid for s in row]
    dupes = duplicate_labels(seats)
    if dupes:
        raise DuplicateLabelError(dupes)
