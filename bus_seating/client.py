from __future__ import annotations

import logging
import math
import os
from typing import Any, Optional

import httpx

from .editor import ConfigurationEditorState, build_submission, mark_saved, open_configuration


logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000/api"
DEFAULT_TIMEOUT_S = 10.0
GENERIC_ERROR = "request to the configuration service failed"


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _default_base_url() -> str:
    return os.environ.get("BUS_SEATING_API_URL", DEFAULT_API_URL)


def _default_timeout() -> float:
    try:
        return float(os.environ.get("BUS_SEATING_API_TIMEOUT", DEFAULT_TIMEOUT_S))
    except ValueError:
        return DEFAULT_TIMEOUT_S


def _optional_int(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_seat(s: dict) -> dict:
    return {
        "id": str(s.get("id") or ""),
        "row": int(s.get("row") or 0),
        "column": int(s.get("column") or 0),
        "type": s.get("type") or "regular",
        "available": bool(s.get("available", True)),
        "label": s.get("label") or "",
        # Left as None on legacy records so reconciliation falls back to row/column.
        "visual_row": _optional_int(s.get("visual_row")),
        "visual_column": _optional_int(s.get("visual_column")),
        "is_walkway": bool(s.get("is_walkway", False)),
    }


def normalize_configuration(raw: Any) -> dict:
    c = raw.get("data", raw) if isinstance(raw, dict) else raw
    if not isinstance(c, dict):
        raise ApiError("malformed configuration in response")
    layout = c.get("seat_layout") or {}
    seats = layout.get("seats")
    return {
        "id": str(c.get("id") or c.get("_id") or ""),
        "name": c.get("name") or "",
        "description": c.get("description") or "",
        "bus_type": c.get("bus_type") or "",
        "total_seats": int(c.get("total_seats") or 0),
        "seat_layout": {
            "rows": int(layout.get("rows") or 0),
            "columns": int(layout.get("columns") or 0),
            "arrangement_pattern": layout.get("arrangement_pattern") or "",
            "seats": [normalize_seat(s) for s in seats] if isinstance(seats, list) else [],
        },
        "amenities": list(c["amenities"]) if isinstance(c.get("amenities"), list) else [],
        "created_at": c.get("created_at") or "",
        "updated_at": c.get("updated_at") or "",
    }


class BusConfigurationClient:
    """
    Thin client for the bus configuration service.

    Every call is a single request; failures raise ``ApiError`` and are not
    retried.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        http: Optional[httpx.Client] = None,
    ):
        self.base_url = (base_url or _default_base_url()).rstrip("/")
        self._owns_http = http is None
        self._http = http or httpx.Client(timeout=timeout if timeout is not None else _default_timeout())

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "BusConfigurationClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(self, method: str, path: str, *, json: Optional[dict] = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            resp = self._http.request(method, url, json=json)
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise ApiError(GENERIC_ERROR) from e

        if resp.status_code >= 400:
            message = None
            try:
                body = resp.json()
                if isinstance(body, dict):
                    message = body.get("message") or body.get("detail")
            except ValueError:
                pass
            if not isinstance(message, str) or not message:
                message = f"HTTP error {resp.status_code}"
            logger.error("%s %s -> %d: %s", method, url, resp.status_code, message)
            raise ApiError(message, resp.status_code)

        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError("malformed JSON in response", resp.status_code) from e

    def list_configurations(self) -> list[dict]:
        data = self._request("GET", "/bus-configurations")
        items = data.get("data", data) if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise ApiError("malformed configuration list in response")
        return [normalize_configuration(c) for c in items]

    def get_configuration(self, config_id: str) -> dict:
        return normalize_configuration(self._request("GET", f"/bus-configurations/{config_id}"))

    def create_configuration(self, body: dict) -> dict:
        return normalize_configuration(self._request("POST", "/bus-configurations", json=body))

    def update_configuration(self, config_id: str, body: dict) -> dict:
        return normalize_configuration(self._request("PATCH", f"/bus-configurations/{config_id}", json=body))

    def delete_configuration(self, config_id: str) -> None:
        self._request("DELETE", f"/bus-configurations/{config_id}")

    def validate_configuration(self, body: dict) -> dict:
        data = self._request("POST", "/bus-configurations/validate", json=body)
        return data if isinstance(data, dict) else {}

    def clone_configuration(self, config_id: str, name: str) -> dict:
        name = (name or "").strip()
        if not name:
            raise ApiError("clone name is required")
        return normalize_configuration(
            self._request("POST", f"/bus-configurations/{config_id}/clone", json={"name": name})
        )

    def get_configuration_for_bus(self, bus_id: str) -> Optional[dict]:
        try:
            data = self._request("GET", f"/bus-configurations/buses/{bus_id}/configuration")
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise
        return normalize_configuration(data)


def submit_configuration(client: BusConfigurationClient, state: ConfigurationEditorState) -> ConfigurationEditorState:
    """
    Validate locally, pre-flight on the server, then create or update.

    Local validation errors are raised before any request is made.
    """
    body = build_submission(state)
    client.validate_configuration(body)
    if state.config_id:
        saved = client.update_configuration(state.config_id, body)
    else:
        saved = client.create_configuration(body)
    logger.info("saved configuration %s (%s)", saved["id"], saved["name"])
    return mark_saved(state, saved["id"] or state.config_id)


def load_for_edit(client: BusConfigurationClient, config_id: str) -> ConfigurationEditorState:
    return open_configuration(client.get_configuration(config_id))


def paginate(items: list, page: int = 1, per_page: int = 6) -> tuple[list, int]:
    """Return one page of ``items`` (1-based, clamped) and the page count."""
    pages = max(1, math.ceil(len(items) / per_page))
    page = min(max(1, int(page)), pages)
    start = (page - 1) * per_page
    return items[start : start + per_page], pages
