import unittest
from dataclasses import replace

from bus_seating.editor import (
    ConfirmationRequired,
    build_submission,
    change_pattern,
    generate_layout,
    is_dirty,
    mark_saved,
    new_editor,
    open_configuration,
    resize,
    set_label,
    set_seat_type,
    toggle_availability,
    toggle_walkway,
    update_details,
)
from bus_seating.layout import (
    ArrangementPattern,
    LabelCollisionError,
    SeatLayoutError,
    SeatType,
    available_count,
    replace_seat,
)
from bus_seating.validate import DuplicateLabelError, SubmissionError, duplicate_labels


def _ready(rows=3, cols=4, pattern="2x2"):
    state = generate_layout(new_editor(rows, cols, pattern))
    return update_details(state, name="Executive 2x2", bus_type="Executive")


class TestEditing(unittest.TestCase):
    def test_new_editor_is_unconfigured(self):
        s = new_editor()
        self.assertFalse(s.layout_configured)
        self.assertEqual(s.grid, ())
        self.assertEqual((s.rows, s.columns, s.pattern), (10, 4, ArrangementPattern.two_by_two))

    def test_generate_sets_total(self):
        s = generate_layout(new_editor())
        self.assertTrue(s.layout_configured)
        self.assertEqual(s.total_seats, 41)

    def test_edits_do_not_touch_previous_state(self):
        s = _ready()
        s2 = toggle_availability(s, 0, 0)
        self.assertTrue(s.grid[0][0].available)
        self.assertFalse(s2.grid[0][0].available)
        self.assertEqual(s2.total_seats, s.total_seats - 1)

    def test_walkway_cannot_be_toggled(self):
        with self.assertRaises(SeatLayoutError):
            toggle_availability(_ready(), 0, 2)
        with self.assertRaises(SeatLayoutError):
            set_seat_type(_ready(), 1, 2, "vip")

    def test_seat_type(self):
        s = set_seat_type(_ready(), 1, 3, "VIP")
        self.assertIs(s.grid[1][3].type, SeatType.vip)
        with self.assertRaises(SeatLayoutError):
            set_seat_type(s, 1, 3, "first")

    def test_label_collision_rejected(self):
        s = _ready()
        with self.assertRaises(LabelCollisionError):
            set_label(s, 0, 0, "1B")
        s = set_label(s, 0, 0, " Front ")
        self.assertEqual(s.grid[0][0].label, "Front")

    def test_enabling_seat_with_taken_label_rejected(self):
        s = toggle_availability(_ready(), 0, 0)
        s = set_label(s, 0, 0, "1B")
        with self.assertRaises(LabelCollisionError):
            toggle_availability(s, 0, 0)

    def test_out_of_bounds(self):
        with self.assertRaises(SeatLayoutError):
            toggle_availability(_ready(), 9, 0)

    def test_edit_requires_layout(self):
        with self.assertRaises(SeatLayoutError):
            toggle_availability(new_editor(), 0, 0)

    def test_resize(self):
        s = resize(_ready(), 5, 3)
        self.assertEqual((len(s.grid), len(s.grid[0])), (5, 4))
        self.assertEqual(s.total_seats, 16)

    def test_change_pattern_needs_confirmation_for_custom_labels(self):
        s = set_label(_ready(), 0, 0, "Front")
        with self.assertRaises(ConfirmationRequired):
            change_pattern(s, "3x2")
        s2 = change_pattern(s, "3x2", confirmed=True)
        self.assertEqual(s2.columns, 5)
        self.assertEqual(s2.grid[0][0].label, "1A")

    def test_change_pattern_without_custom_labels(self):
        s = change_pattern(_ready(), "2x1")
        self.assertEqual(s.columns, 3)
        self.assertIs(s.pattern, ArrangementPattern.two_by_one)

    def test_switch_to_custom_keeps_grid(self):
        s = set_label(_ready(), 0, 0, "Front")
        s2 = change_pattern(s, "custom")
        self.assertEqual(s2.grid, s.grid)
        self.assertIs(s2.pattern, ArrangementPattern.custom)

    def test_toggle_walkway_custom_only(self):
        with self.assertRaises(SeatLayoutError):
            toggle_walkway(_ready(), 0, 0)
        s = change_pattern(_ready(), "custom")
        s2 = toggle_walkway(s, 0, 0)
        self.assertTrue(s2.grid[0][0].is_walkway)
        self.assertEqual(s2.total_seats, s.total_seats - 1)
        s3 = toggle_walkway(s2, 0, 2)
        self.assertFalse(s3.grid[0][2].is_walkway)
        self.assertEqual(s3.grid[0][2].label, "1W")
        with self.assertRaises(SeatLayoutError):
            toggle_walkway(s3, 2, 2)

    def test_update_details(self):
        s = update_details(new_editor(), amenities="wifi, usb ,,", bus_type=" VIP ")
        self.assertEqual(s.amenities, ("wifi", "usb"))
        self.assertEqual(s.bus_type, "vip")
        with self.assertRaises(SeatLayoutError):
            update_details(s, colour="red")


class TestSubmission(unittest.TestCase):
    def test_body_shape(self):
        s = update_details(toggle_availability(_ready(), 0, 0), amenities=["wifi"])
        body = build_submission(s)
        self.assertEqual(body["name"], "Executive 2x2")
        self.assertEqual(body["bus_type"], "executive")
        self.assertEqual(body["total_seats"], 12)
        self.assertEqual(body["seat_layout"]["rows"], 3)
        self.assertEqual(body["seat_layout"]["arrangement_pattern"], "2x2")
        self.assertEqual(len(body["seat_layout"]["seats"]), 15)
        self.assertEqual(body["amenities"], ["wifi"])

    def test_declared_total_is_corrected(self):
        s = update_details(_ready(), total_seats=99)
        with self.assertLogs("bus_seating.editor", level="INFO"):
            body = build_submission(s)
        self.assertEqual(body["total_seats"], 13)

    def test_duplicate_labels_rejected(self):
        s = _ready()
        grid = replace_seat(s.grid, s.grid[2][0].with_changes(label="3A"))
        grid = replace_seat(grid, grid[2][1].with_changes(label="3A"))
        with self.assertRaises(DuplicateLabelError) as ctx:
            build_submission(replace(s, grid=grid))
        self.assertEqual(ctx.exception.labels, ["3A"])
        self.assertIsInstance(ctx.exception, LabelCollisionError)

    def test_duplicate_label_on_disabled_seat_is_fine(self):
        s = _ready()
        grid = replace_seat(s.grid, s.grid[2][1].with_changes(label="3A", available=False))
        build_submission(replace(s, grid=grid))

    def test_rules(self):
        with self.assertRaises(SubmissionError):
            build_submission(update_details(_ready(), name="  "))
        with self.assertRaises(SubmissionError):
            build_submission(update_details(_ready(), bus_type="spaceship"))
        with self.assertRaises(SubmissionError):
            build_submission(update_details(_ready(), total_seats=0))
        with self.assertRaises(SubmissionError):
            build_submission(update_details(new_editor(), name="x", bus_type="economy", total_seats=4))

    def test_custom_needs_an_available_seat(self):
        s = change_pattern(_ready(2, 1), "custom")
        for r, c in ((0, 0), (1, 0), (1, 1)):
            s = toggle_availability(s, r, c)
        s = update_details(s, total_seats=3)
        with self.assertRaises(SubmissionError):
            build_submission(s)

    def test_duplicate_labels_on_flat_records(self):
        flat = [
            {"label": "1A", "available": True},
            {"label": "1A", "available": True},
            {"label": "1B", "available": False},
            {"label": "1B", "available": True},
        ]
        self.assertEqual(duplicate_labels(flat), ["1A"])


class TestReopen(unittest.TestCase):
    def test_open_reproduces_edited_grid(self):
        s = _ready(4, 4)
        s = toggle_availability(s, 3, 2)
        s = set_label(s, 1, 0, "VIP1")
        s = set_seat_type(s, 1, 0, "vip")
        body = build_submission(s)
        reopened = open_configuration({**body, "id": "cfg-1"})
        self.assertEqual(reopened.grid, s.grid)
        self.assertEqual(reopened.config_id, "cfg-1")
        self.assertEqual(reopened.total_seats, available_count(s.grid))
        self.assertFalse(is_dirty(reopened))

    def test_open_without_total_keeps_stored_availability(self):
        s = toggle_availability(_ready(), 0, 0)
        body = build_submission(s)
        body["total_seats"] = 0
        reopened = open_configuration(body)
        self.assertFalse(reopened.grid[0][0].available)

    def test_dirty_tracking(self):
        s = open_configuration(build_submission(_ready()))
        self.assertFalse(is_dirty(s))
        s = toggle_availability(s, 0, 0)
        self.assertTrue(is_dirty(s))
        s = mark_saved(s, "cfg-9")
        self.assertFalse(is_dirty(s))
        self.assertEqual(s.config_id, "cfg-9")


if __name__ == "__main__":
    unittest.main()
