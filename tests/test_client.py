import json
import unittest
from dataclasses import replace

import httpx

from bus_seating.client import (
    GENERIC_ERROR,
    ApiError,
    BusConfigurationClient,
    load_for_edit,
    paginate,
    submit_configuration,
)
from bus_seating.editor import build_submission, generate_layout, new_editor, toggle_availability, update_details
from bus_seating.layout import replace_seat
from bus_seating.validate import DuplicateLabelError


def _state():
    s = generate_layout(new_editor(3, 4, "2x2"))
    return update_details(s, name="Coastal Express", bus_type="business")


def _stored(**overrides):
    body = build_submission(toggle_availability(_state(), 0, 0))
    return {"_id": "abc123", **body, **overrides}


class _Recorder:
    def __init__(self, responder):
        self.requests = []
        self._responder = responder

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)


def _client(responder):
    rec = _Recorder(responder)
    http = httpx.Client(transport=httpx.MockTransport(rec))
    return BusConfigurationClient("http://api.test/api", http=http), rec


class TestNormalization(unittest.TestCase):
    def test_list_unwraps_data_and_ids(self):
        legacy = _stored()
        for s in legacy["seat_layout"]["seats"]:
            s.pop("visual_row")
            s.pop("visual_column")
        client, rec = _client(lambda r: httpx.Response(200, json={"data": [legacy]}))
        configs = client.list_configurations()
        self.assertEqual(len(configs), 1)
        c = configs[0]
        self.assertEqual(c["id"], "abc123")
        self.assertEqual(c["bus_type"], "business")
        self.assertIsNone(c["seat_layout"]["seats"][0]["visual_row"])
        self.assertEqual(str(rec.requests[0].url), "http://api.test/api/bus-configurations")

    def test_missing_fields_get_defaults(self):
        client, _ = _client(lambda r: httpx.Response(200, json={"id": "x"}))
        c = client.get_configuration("x")
        self.assertEqual(c["name"], "")
        self.assertEqual(c["total_seats"], 0)
        self.assertEqual(c["seat_layout"]["seats"], [])
        self.assertEqual(c["amenities"], [])

    def test_load_for_edit_rebuilds_grid(self):
        client, _ = _client(lambda r: httpx.Response(200, json={"data": _stored()}))
        state = load_for_edit(client, "abc123")
        self.assertEqual(state.config_id, "abc123")
        self.assertFalse(state.grid[0][0].available)
        self.assertEqual(state.total_seats, 12)


class TestErrors(unittest.TestCase):
    def test_server_message(self):
        client, _ = _client(lambda r: httpx.Response(400, json={"message": "name already taken"}))
        with self.assertRaises(ApiError) as ctx:
            client.create_configuration({})
        self.assertEqual(ctx.exception.message, "name already taken")
        self.assertEqual(ctx.exception.status_code, 400)

    def test_detail_message(self):
        client, _ = _client(lambda r: httpx.Response(404, json={"detail": "bus configuration not found"}))
        with self.assertRaises(ApiError) as ctx:
            client.delete_configuration("nope")
        self.assertEqual(str(ctx.exception), "bus configuration not found")

    def test_fallback_message(self):
        client, _ = _client(lambda r: httpx.Response(500, text="<html>oops</html>"))
        with self.assertRaises(ApiError) as ctx:
            client.list_configurations()
        self.assertEqual(ctx.exception.message, "HTTP error 500")

    def test_malformed_json(self):
        client, _ = _client(lambda r: httpx.Response(200, text="{not json"))
        with self.assertRaises(ApiError) as ctx:
            client.get_configuration("x")
        self.assertIn("malformed", ctx.exception.message)

    def test_transport_failure(self):
        def boom(request):
            raise httpx.ConnectError("connection refused", request=request)

        client, _ = _client(boom)
        with self.assertRaises(ApiError) as ctx:
            client.list_configurations()
        self.assertEqual(ctx.exception.message, GENERIC_ERROR)
        self.assertIsNone(ctx.exception.status_code)

    def test_configuration_for_bus_missing(self):
        client, rec = _client(lambda r: httpx.Response(404, json={"detail": "bus not found"}))
        self.assertIsNone(client.get_configuration_for_bus("b1"))
        self.assertTrue(str(rec.requests[0].url).endswith("/bus-configurations/buses/b1/configuration"))

    def test_clone_requires_name(self):
        client, rec = _client(lambda r: httpx.Response(201, json=_stored()))
        with self.assertRaises(ApiError):
            client.clone_configuration("abc123", "  ")
        self.assertEqual(rec.requests, [])
        client.clone_configuration("abc123", "Coastal Express (Copy)")
        self.assertEqual(json.loads(rec.requests[0].content), {"name": "Coastal Express (Copy)"})


class TestSubmit(unittest.TestCase):
    def _responder(self, request):
        if request.url.path.endswith("/validate"):
            return httpx.Response(200, json={"valid": True})
        body = json.loads(request.content)
        return httpx.Response(201, json={"data": {"_id": "new-1", **body}})

    def test_create_then_update(self):
        client, rec = _client(self._responder)
        saved = submit_configuration(client, _state())
        self.assertEqual(saved.config_id, "new-1")
        self.assertEqual([r.method for r in rec.requests], ["POST", "POST"])
        self.assertTrue(rec.requests[0].url.path.endswith("/bus-configurations/validate"))
        self.assertEqual(json.loads(rec.requests[1].content)["total_seats"], 13)

        submit_configuration(client, toggle_availability(saved, 0, 0))
        self.assertEqual(rec.requests[-1].method, "PATCH")
        self.assertTrue(rec.requests[-1].url.path.endswith("/bus-configurations/new-1"))

    def test_label_collision_blocks_before_network(self):
        client, rec = _client(self._responder)
        s = _state()
        grid = replace_seat(s.grid, s.grid[2][1].with_changes(label="3A"))
        with self.assertRaises(DuplicateLabelError):
            submit_configuration(client, replace(s, grid=grid))
        self.assertEqual(rec.requests, [])

    def test_server_validation_failure_stops_save(self):
        client, rec = _client(lambda r: httpx.Response(400, json={"detail": "duplicate seat labels: 1A"}))
        with self.assertRaises(ApiError):
            submit_configuration(client, _state())
        self.assertEqual(len(rec.requests), 1)


class TestPaginate(unittest.TestCase):
    def test_pages(self):
        items = list(range(13))
        page, pages = paginate(items, 3)
        self.assertEqual((page, pages), ([12], 3))
        self.assertEqual(paginate(items, 0)[0], list(range(6)))
        self.assertEqual(paginate(items, 9)[0], [12])
        self.assertEqual(paginate([], 1), ([], 1))


if __name__ == "__main__":
    unittest.main()
