from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .client import ApiError, BusConfigurationClient, load_for_edit, paginate, submit_configuration
from .editor import (
    change_pattern,
    is_dirty,
    reset_layout,
    resize,
    set_label,
    set_seat_type,
    toggle_availability,
    toggle_walkway,
    update_details,
)
from .layout import SeatLayoutError
from .render import render_ascii
from .storage import import_layout, load_draft, maybe_init_draft, save_draft, save_export, submission_preview


DEFAULT_FILE = "bus_config.json"


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--file",
        default=DEFAULT_FILE,
        help=f"Path to the draft configuration JSON file (default: {DEFAULT_FILE})",
    )


def _add_seat_args(p: argparse.ArgumentParser) -> None:
    _add_common_args(p)
    p.add_argument("--row", type=int, required=True)
    p.add_argument("--col", type=int, required=True, help="Visual column (the aisle counts as a column)")


def _client(args: argparse.Namespace) -> BusConfigurationClient:
    return BusConfigurationClient(args.api_url)


def cmd_init(args: argparse.Namespace) -> int:
    state = maybe_init_draft(
        args.file, rows=args.rows, columns=args.cols, pattern=args.pattern, overwrite=args.overwrite
    )
    details = {k: v for k, v in (("name", args.name), ("bus_type", args.bus_type)) if v is not None}
    if details:
        state = update_details(state, **details)
        save_draft(state, args.file)
    print(f"Initialized draft at {args.file} ({state.rows} rows x {state.columns} cols, {state.pattern.value})")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    state = load_draft(args.file)
    unsaved = " (unsaved changes)" if is_dirty(state) else ""
    print(f"{state.name or '(unnamed)'} [{state.bus_type or '-'}] {state.total_seats} seats{unsaved}")
    print(render_ascii(state.grid, cell_width=args.width))
    return 0


def cmd_details(args: argparse.Namespace) -> int:
    state = load_draft(args.file)
    fields = {
        k: getattr(args, k)
        for k in ("name", "description", "bus_type", "amenities")
        if getattr(args, k) is not None
    }
    state = update_details(state, **fields)
    save_draft(state, args.file)
    print(f"Updated {', '.join(sorted(fields)) or 'nothing'}")
    return 0


def cmd_seat_type(args: argparse.Namespace) -> int:
    state = set_seat_type(load_draft(args.file), args.row, args.col, args.type)
    save_draft(state, args.file)
    print(f"R{args.row}C{args.col} is now {args.type}")
    return 0


def cmd_toggle(args: argparse.Namespace) -> int:
    state = toggle_availability(load_draft(args.file), args.row, args.col)
    save_draft(state, args.file)
    seat = state.grid[args.row][args.col]
    print(f"R{args.row}C{args.col} ({seat.label}) {'enabled' if seat.available else 'disabled'}")
    return 0


def cmd_label(args: argparse.Namespace) -> int:
    state = set_label(load_draft(args.file), args.row, args.col, args.label)
    save_draft(state, args.file)
    print(f"R{args.row}C{args.col} labelled {args.label.strip()!r}")
    return 0


def cmd_walkway(args: argparse.Namespace) -> int:
    state = toggle_walkway(load_draft(args.file), args.row, args.col)
    save_draft(state, args.file)
    seat = state.grid[args.row][args.col]
    print(f"R{args.row}C{args.col} is {'a walkway' if seat.is_walkway else 'a seat'}")
    return 0


def cmd_pattern(args: argparse.Namespace) -> int:
    state = change_pattern(load_draft(args.file), args.pattern, confirmed=args.yes)
    save_draft(state, args.file)
    print(f"Pattern set to {state.pattern.value} ({state.columns} cols)")
    return 0


def cmd_resize(args: argparse.Namespace) -> int:
    state = resize(load_draft(args.file), args.rows, args.cols)
    save_draft(state, args.file)
    print(f"Resized to {args.rows} rows x {args.cols} cols")
    return 0


def cmd_reset(args: argparse.Namespace) -> int:
    state = reset_layout(load_draft(args.file))
    save_draft(state, args.file)
    print("Seat layout reset to default")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    out = save_export(load_draft(args.file), args.output_dir)
    print(f"Exported layout to {out}")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    text = sys.stdin.read() if args.input == "-" else Path(args.input).read_text(encoding="utf-8")
    base = load_draft(args.file) if Path(args.file).exists() else None
    state = import_layout(text, base)
    save_draft(state, args.file)
    print(f"Imported layout into {args.file} ({state.total_seats} seats)")
    return 0


def cmd_preview(args: argparse.Namespace) -> int:
    print(submission_preview(load_draft(args.file)), end="")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    with _client(args) as client:
        configs = client.list_configurations()
    page, pages = paginate(configs, args.page, args.per_page)
    for c in page:
        print(f"{c['id']}  {c['name']}  [{c['bus_type']}]  {c['total_seats']} seats")
    print(f"page {min(max(1, args.page), pages)}/{pages} ({len(configs)} configurations)")
    return 0


def cmd_pull(args: argparse.Namespace) -> int:
    if Path(args.file).exists() and not args.overwrite and is_dirty(load_draft(args.file)):
        raise SeatLayoutError(f"{args.file} has unsaved changes; pass --overwrite to discard them")
    with _client(args) as client:
        state = load_for_edit(client, args.id)
    save_draft(state, args.file)
    print(f"Pulled {state.name!r} into {args.file}")
    return 0


def cmd_push(args: argparse.Namespace) -> int:
    state = load_draft(args.file)
    with _client(args) as client:
        saved = submit_configuration(client, state)
    save_draft(saved, args.file)
    print(f"Saved configuration {saved.config_id} ({saved.total_seats} seats)")
    return 0


def cmd_clone(args: argparse.Namespace) -> int:
    with _client(args) as client:
        c = client.clone_configuration(args.id, args.name)
    print(f"Cloned into {c['id']} ({c['name']})")
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    with _client(args) as client:
        client.delete_configuration(args.id)
    print(f"Deleted configuration {args.id}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bus_seating", description="Bus seat layout configuration (CLI).")
    p.add_argument("--api-url", default=None, help="Configuration service base URL (default: $BUS_SEATING_API_URL)")
    p.add_argument("--verbose", action="store_true", help="Log debug output")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", help="Create a new draft with a default layout")
    _add_common_args(p_init)
    p_init.add_argument("--rows", type=int, required=True)
    p_init.add_argument("--cols", type=int, required=True)
    p_init.add_argument("--pattern", default="2x2")
    p_init.add_argument("--name")
    p_init.add_argument("--bus-type")
    p_init.add_argument("--overwrite", action="store_true", help="Overwrite an existing draft file")
    p_init.set_defaults(func=cmd_init)

    p_show = sub.add_parser("show", help="Print the draft seat layout")
    _add_common_args(p_show)
    p_show.add_argument("--width", type=int, default=5, help="Cell width for display")
    p_show.set_defaults(func=cmd_show)

    p_details = sub.add_parser("details", help="Set name, description, bus type or amenities")
    _add_common_args(p_details)
    p_details.add_argument("--name")
    p_details.add_argument("--description")
    p_details.add_argument("--bus-type")
    p_details.add_argument("--amenities", help="Comma-separated list")
    p_details.set_defaults(func=cmd_details)

    p_type = sub.add_parser("seat-type", help="Change a seat's type")
    _add_seat_args(p_type)
    p_type.add_argument("--type", required=True, help="regular, vip or disabled")
    p_type.set_defaults(func=cmd_seat_type)

    p_toggle = sub.add_parser("toggle", help="Enable or disable a seat")
    _add_seat_args(p_toggle)
    p_toggle.set_defaults(func=cmd_toggle)

    p_label = sub.add_parser("label", help="Relabel a seat")
    _add_seat_args(p_label)
    p_label.add_argument("--label", required=True)
    p_label.set_defaults(func=cmd_label)

    p_walkway = sub.add_parser("walkway", help="Toggle a walkway (custom pattern only)")
    _add_seat_args(p_walkway)
    p_walkway.set_defaults(func=cmd_walkway)

    p_pattern = sub.add_parser("pattern", help="Change the arrangement pattern")
    _add_common_args(p_pattern)
    p_pattern.add_argument("--pattern", required=True)
    p_pattern.add_argument("--yes", action="store_true", help="Discard custom labels without asking")
    p_pattern.set_defaults(func=cmd_pattern)

    p_resize = sub.add_parser("resize", help="Regenerate the layout with new dimensions")
    _add_common_args(p_resize)
    p_resize.add_argument("--rows", type=int, required=True)
    p_resize.add_argument("--cols", type=int, required=True)
    p_resize.set_defaults(func=cmd_resize)

    p_reset = sub.add_parser("reset", help="Reset the layout to defaults")
    _add_common_args(p_reset)
    p_reset.set_defaults(func=cmd_reset)

    p_export = sub.add_parser("export", help="Export the layout as bus-config-<name>.json")
    _add_common_args(p_export)
    p_export.add_argument("--output-dir", default=".")
    p_export.set_defaults(func=cmd_export)

    p_import = sub.add_parser("import", help="Import a layout export into the draft")
    _add_common_args(p_import)
    p_import.add_argument("--input", required=True, help="Layout JSON file, or - for stdin")
    p_import.set_defaults(func=cmd_import)

    p_preview = sub.add_parser("preview", help="Validate and print the request body")
    _add_common_args(p_preview)
    p_preview.set_defaults(func=cmd_preview)

    p_list = sub.add_parser("list", help="List stored configurations")
    p_list.add_argument("--page", type=int, default=1)
    p_list.add_argument("--per-page", type=int, default=6)
    p_list.set_defaults(func=cmd_list)

    p_pull = sub.add_parser("pull", help="Fetch a stored configuration into the draft")
    _add_common_args(p_pull)
    p_pull.add_argument("--id", required=True)
    p_pull.add_argument("--overwrite", action="store_true", help="Discard unsaved changes in an existing draft")
    p_pull.set_defaults(func=cmd_pull)

    p_push = sub.add_parser("push", help="Validate and save the draft to the service")
    _add_common_args(p_push)
    p_push.set_defaults(func=cmd_push)

    p_clone = sub.add_parser("clone", help="Duplicate a stored configuration")
    p_clone.add_argument("--id", required=True)
    p_clone.add_argument("--name", required=True)
    p_clone.set_defaults(func=cmd_clone)

    p_delete = sub.add_parser("delete", help="Delete a stored configuration")
    p_delete.add_argument("--id", required=True)
    p_delete.set_defaults(func=cmd_delete)

    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(args.func(args))
    except (SeatLayoutError, ApiError) as e:
        print(f"Error: {e}")
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
