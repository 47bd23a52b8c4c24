from __future__ import annotations

import json
import re
from dataclasses import replace
from pathlib import Path
from typing import Optional

from .editor import (
    ConfigurationEditorState,
    build_submission,
    generate_layout,
    is_dirty,
    new_editor,
    open_configuration,
)
from .layout import SeatLayoutError, available_count, parse_pattern
from .reconcile import overlay_stored_seats, reconcile
from .serialize import serialize


class LayoutImportError(SeatLayoutError):
    pass


EXPORT_SEAT_FIELDS = ("row", "column", "type", "available", "label", "is_walkway")


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (name or "").lower()).strip("-")
    return slug or "configuration"


def export_filename(name: str) -> str:
    return f"bus-config-{slugify(name)}.json"


def export_layout(state: ConfigurationEditorState) -> dict:
    if not state.layout_configured or not state.grid:
        raise SeatLayoutError("seat layout has not been configured")
    seats = serialize(state.grid, state.columns)
    return {
        "rows": state.rows,
        "columns": state.columns,
        "arrangement_pattern": state.pattern.value,
        "seats": [{k: s[k] for k in EXPORT_SEAT_FIELDS} for s in seats],
    }


def _dump(data: dict) -> str:
    return json.dumps(data, indent=2, sort_keys=True) + "\n"


def save_export(state: ConfigurationEditorState, directory: str | Path = ".") -> Path:
    d = Path(directory)
    d.mkdir(parents=True, exist_ok=True)
    p = d / export_filename(state.name)
    p.write_text(_dump(export_layout(state)), encoding="utf-8")
    return p


def _positive_int(data: dict, key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise LayoutImportError(f"{key!r} is required and must be a positive integer")
    try:
        n = int(value)
    except ValueError as e:
        raise LayoutImportError(f"{key!r} must be a positive integer") from e
    if n <= 0:
        raise LayoutImportError(f"{key!r} must be a positive integer")
    return n


def import_layout(text: str, state: Optional[ConfigurationEditorState] = None) -> ConfigurationEditorState:
    """
    Load a pasted layout export into the editor.

    The layout goes through the same reconciler used when opening a stored
    configuration. Seats with no matching entry keep their defaults.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise LayoutImportError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise LayoutImportError("layout must be a JSON object")

    rows = _positive_int(data, "rows")
    columns = _positive_int(data, "columns")
    seats = data.get("seats")
    if not isinstance(seats, list) or not all(isinstance(s, dict) for s in seats):
        raise LayoutImportError("'seats' must be an array of seat objects")
    try:
        pattern = parse_pattern(data.get("arrangement_pattern") or "custom")
    except SeatLayoutError as e:
        raise LayoutImportError(str(e)) from e

    overlaid, _ = overlay_stored_seats(seats, rows, columns, pattern)
    target = data.get("total_seats")
    target = int(target) if isinstance(target, int) and target >= 0 else available_count(overlaid)
    grid = reconcile(seats, rows, columns, pattern, target)

    base = state if state is not None else new_editor(rows, columns, pattern)
    return replace(
        base,
        rows=rows,
        columns=columns,
        pattern=pattern,
        grid=grid,
        layout_configured=True,
        total_seats=available_count(grid),
    )


def _draft_payload(state: ConfigurationEditorState) -> dict:
    seats = serialize(state.grid, state.columns) if state.grid else []
    return {
        "id": state.config_id,
        "name": state.name,
        "description": state.description,
        "bus_type": state.bus_type,
        "total_seats": available_count(state.grid) if state.grid else state.total_seats,
        "seat_layout": {
            "rows": state.rows,
            "columns": state.columns,
            "arrangement_pattern": state.pattern.value,
            "seats": seats,
        },
        "amenities": list(state.amenities),
        "unsaved_changes": is_dirty(state),
    }


def load_draft(path: str | Path) -> ConfigurationEditorState:
    p = Path(path)
    if not p.exists():
        raise SeatLayoutError(f"draft file not found: {p}")

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except Exception as e:  # noqa: BLE001
        raise SeatLayoutError(f"failed to read draft JSON: {e}") from e
    if not isinstance(data, dict):
        raise SeatLayoutError(f"draft file is not a configuration object: {p}")

    state = open_configuration(data)
    if data.get("unsaved_changes"):
        # No baseline means every later edit still counts as unsaved.
        state = replace(state, baseline=None)
    return state


def save_draft(state: ConfigurationEditorState, path: str | Path) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(_dump(_draft_payload(state)), encoding="utf-8")


def maybe_init_draft(
    path: str | Path,
    *,
    rows: Optional[int] = None,
    columns: Optional[int] = None,
    pattern=None,
    overwrite: bool = False,
) -> ConfigurationEditorState:
    p = Path(path)
    if p.exists() and not overwrite:
        return load_draft(p)

    if rows is None or columns is None:
        raise SeatLayoutError("rows and columns are required to initialize a new draft")

    state = generate_layout(new_editor(rows, columns, pattern or "2x2"))
    save_draft(state, p)
    return state


def submission_preview(state: ConfigurationEditorState) -> str:
    return _dump(build_submission(state))
