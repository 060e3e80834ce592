import io
import json
import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import patch
from urllib.parse import unquote

import pytest

from lightwatch.light import Light
from lightwatch.monitor import MAX_ATTEMPTS, LightMonitor


class _Simulator:
    def __init__(self):
        self.lights = {}
        self.list_status = 200
        self.raw_list = None
        self.failures = {}
        self.requests = []

    def add(self, light_id, name, room, on=False, brightness=0):
        self.lights[light_id] = {
            "id": light_id,
            "name": name,
            "room": room,
            "on": on,
            "brightness": brightness,
        }


class _Handler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def log_message(self, *args):
        pass

    def _send(self, status, body):
        data = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def do_GET(self):
        sim = self.server.sim
        sim.requests.append(self.path)
        if self.path == "/lights":
            if sim.list_status != 200:
                self._send(sim.list_status, "{}")
            elif sim.raw_list is not None:
                self._send(200, sim.raw_list)
            else:
                listing = [
                    {"id": d["id"], "name": d["name"], "room": d["room"]}
                    for d in sim.lights.values()
                ]
                self._send(200, json.dumps(listing))
            return
        light_id = unquote(self.path[len("/lights/"):])
        if sim.failures.get(light_id, 0) > 0:
            sim.failures[light_id] -= 1
            self._send(500, "{}")
        elif light_id in sim.lights:
            self._send(200, json.dumps(sim.lights[light_id]))
        else:
            self._send(404, "{}")


@pytest.fixture
def simulator():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    server.sim = _Simulator()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


@pytest.fixture
def streams():
    return io.StringIO(), io.StringIO()


def _monitor(server, streams):
    out, err = streams
    return LightMonitor("127.0.0.1", server.server_address[1], out, err)


def _documents(text):
    decoder = json.JSONDecoder()
    docs, pos = [], 0
    text = text.strip()
    while pos < len(text):
        doc, end = decoder.raw_decode(text, pos)
        docs.append(doc)
        pos = end
        while pos < len(text) and text[pos].isspace():
            pos += 1
    return docs


def test_first_poll_reports_each_light(simulator, streams):
    simulator.sim.add("1", "Lamp", "Kitchen", True, 255)
    simulator.sim.add("2", "Strip", "Hall", False, 0)
    with _monitor(simulator, streams) as monitor:
        monitor.poll()
        assert _documents(streams[0].getvalue()) == [
            Light("1", "Lamp", "Kitchen", True, 100).to_json_full(),
            Light("2", "Strip", "Hall", False, 0).to_json_full(),
        ]
        assert set(monitor.lights) == {"1", "2"}


def test_new_light_is_printed_with_four_space_indent_and_sorted_keys(simulator, streams):
    simulator.sim.add("1", "Lamp", "Kitchen", True, 255)
    with _monitor(simulator, streams) as monitor:
        monitor.poll()
    lines = streams[0].getvalue().splitlines()
    assert lines[0] == "{"
    assert lines[1] == '    "brightness": 100,'
    assert lines[-1] == "}"


def test_unchanged_second_poll_prints_nothing(simulator, streams):
    simulator.sim.add("1", "Lamp", "Kitchen", True, 255)
    with _monitor(simulator, streams) as monitor:
        monitor.poll()
        streams[0].seek(0)
        streams[0].truncate()
        monitor.poll()
    assert streams[0].getvalue() == ""
    assert streams[1].getvalue() == ""


def test_property_changes_are_reported_one_by_one(simulator, streams):
    simulator.sim.add("1", "Lamp", "Kitchen", False, 0)
    with _monitor(simulator, streams) as monitor:
        monitor.poll()
        streams[0].seek(0)
        streams[0].truncate()
        simulator.sim.add("1", "Big Lamp", "Kitchen", True, 255)
        monitor.poll()
        assert monitor.lights["1"].name == "Big Lamp"
    assert _documents(streams[0].getvalue()) == [
        {"id": "1", "name": "Big Lamp"},
        {"id": "1", "on": True},
        {"id": "1", "brightness": 100},
    ]


def test_removed_light_is_reported(simulator, streams):
    simulator.sim.add("1", "Lamp", "Kitchen")
    with _monitor(simulator, streams) as monitor:
        monitor.poll()
        streams[0].seek(0)
        streams[0].truncate()
        del simulator.sim.lights["1"]
        monitor.poll()
        assert monitor.lights == {}
    assert streams[0].getvalue() == "Lamp (1) has been removed\n"


def test_failed_listing_keeps_state(simulator, streams):
    simulator.sim.add("1", "Lamp", "Kitchen")
    with _monitor(simulator, streams) as monitor:
        monitor.poll()
        simulator.sim.list_status = 500
        monitor.poll()
        assert set(monitor.lights) == {"1"}
    assert "HTTP GET /lights failed: 500" in streams[1].getvalue()
    assert "removed" not in streams[0].getvalue()


def test_detail_retries_with_backoff(simulator, streams):
    simulator.sim.add("1", "Lamp", "Kitchen")
    simulator.sim.failures["1"] = 2
    with patch("lightwatch.monitor.time.sleep") as sleep, _monitor(simulator, streams) as monitor:
        monitor.poll()
        assert set(monitor.lights) == {"1"}
    assert [c.args[0] for c in sleep.call_args_list] == pytest.approx([0.2, 0.4])
    assert simulator.sim.requests.count("/lights/1") == 3
    assert streams[1].getvalue().count("HTTP GET /lights/1 failed: 500") == 2


def test_detail_gives_up_after_max_attempts(simulator, streams):
    simulator.sim.add("1", "Lamp", "Kitchen")
    simulator.sim.add("2", "Strip", "Hall")
    simulator.sim.failures["1"] = 100
    with patch("lightwatch.monitor.time.sleep"), _monitor(simulator, streams) as monitor:
        monitor.poll()
        assert set(monitor.lights) == {"2"}
    assert simulator.sim.requests.count("/lights/1") == MAX_ATTEMPTS
    assert "HTTP GET /lights/1 failed: max attempt reached" in streams[1].getvalue()


def test_invalid_listing_json_is_reported(simulator, streams):
    simulator.sim.raw_list = "not json"
    with _monitor(simulator, streams) as monitor:
        monitor.poll()
        assert monitor.lights == {}
    assert streams[1].getvalue().startswith("JSON parse error during polling:")
    assert streams[0].getvalue() == ""


def test_connection_error_is_reported(streams):
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    out, err = streams
    with LightMonitor("127.0.0.1", port, out, err) as monitor:
        monitor.poll()
        assert monitor.lights == {}
    assert err.getvalue() == "HTTP GET /lights failed: Connection Error\n"


def test_close_allows_further_polls(simulator, streams):
    simulator.sim.add("1", "Lamp", "Kitchen")
    monitor = _monitor(simulator, streams)
    monitor.poll()
    monitor.close()
    simulator.sim.add("1", "Lamp", "Bedroom")
    monitor.poll()
    monitor.close()
    assert _documents(streams[0].getvalue())[-1] == {"id": "1", "room": "Bedroom"}