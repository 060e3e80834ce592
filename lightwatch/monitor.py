"""Polls a light simulator over HTTP and reports additions, changes and removals."""

from __future__ import annotations

import http.client
import json
import sys
import time
from typing import Any, Iterable, TextIO
from urllib.parse import quote

from .light import Light

MAX_ATTEMPTS = 3
TIMEOUT_SECONDS = 5
_REPORTED_PROPERTIES = ("name", "room", "on", "brightness")


def _dump(document: dict[str, Any]) -> str:
    return json.dumps(document, indent=4, sort_keys=True, ensure_ascii=False)


def _entries(listing: Any) -> Iterable[Any]:
    if isinstance(listing, list):
        return listing
    if isinstance(listing, dict):
        return listing.values()
    return [listing]


class LightMonitor:
    """Tracks the lights of one simulator and prints what changed between polls."""

    def __init__(self, host: str, port: int, out: TextIO | None = None, err: TextIO | None = None):
        self.host = host
        self.port = port
        self._out = out
        self._err = err
        self._lights: dict[str, Light] = {}
        self._connection: http.client.HTTPConnection | None = None

    @property
    def lights(self) -> dict[str, Light]:
        """The lights seen on the last successful poll, by id."""
        return dict(self._lights)

    def _emit(self, text: str) -> None:
        print(text, file=self._out if self._out is not None else sys.stdout, flush=True)

    def _warn(self, text: str) -> None:
        print(text, file=self._err if self._err is not None else sys.stderr, flush=True)

    def _open(self) -> http.client.HTTPConnection:
        if self._connection is None:
            self._connection = http.client.HTTPConnection(self.host, self.port, timeout=TIMEOUT_SECONDS)
        return self._connection

    def close(self) -> None:
        """Close the kept-alive connection, if any."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def __enter__(self) -> LightMonitor:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _get(self, endpoint: str) -> bytes | None:
        """Fetch ``endpoint``; return its body on status 200, else report and return None."""
        try:
            connection = self._open()
            connection.request("GET", quote(endpoint, safe="/"))
            response = connection.getresponse()
            body = response.read()
        except (OSError, http.client.HTTPException):
            self.close()
            self._warn(f"HTTP GET {endpoint} failed: Connection Error")
            return None
        if response.status != 200:
            self._warn(f"HTTP GET {endpoint} failed: {response.status}")
            return None
        return body

    def _fetch_details(self, light_id: str) -> Light | None:
        endpoint = f"/lights/{light_id}"
        for attempt in range(1, MAX_ATTEMPTS + 1):
            body = self._get(endpoint)
            if body is None:
                time.sleep(0.1 * (1 << attempt))
                continue
            try:
                state = json.loads(body)
            except ValueError as exc:
                self._warn(f"JSON parse error for light {light_id}: {exc}")
                return None
            return Light.from_json_api_full(state)
        self._warn(f"HTTP GET {endpoint} failed: max attempt reached")
        return None

    def _report_changes(self, old: Light, new: Light) -> None:
        for prop in _REPORTED_PROPERTIES:
            value = getattr(new, prop)
            if getattr(old, prop) != value:
                self._emit(_dump({"id": new.id, prop: value}))

    def poll(self) -> None:
        """Fetch the current lights once and print every difference from the last poll."""
        body = self._get("/lights")
        if body is None:
            return
        try:
            listing = json.loads(body)
        except ValueError as exc:
            self._warn(f"JSON parse error during polling: {exc}")
            return

        found: dict[str, Light] = {}
        for entry in _entries(listing):
            concise = Light.from_json_api_concise(entry)
            light = self._fetch_details(concise.id)
            if light is None:
                continue
            found.setdefault(light.id, light)
            previous = self._lights.get(light.id)
            if previous is None:
                self._emit(_dump(light.to_json_full()))
            else:
                self._report_changes(previous, light)

        for light_id, old in self._lights.items():
            if light_id not in found:
                self._emit(f"{old.name} ({old.id}) has been removed")

        self._lights = found