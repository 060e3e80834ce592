"""The light record and its conversions from and to the simulator's JSON."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any


def _lookup(data: Any, key: str, default: Any, kind: type) -> Any:
    """Return ``data[key]`` converted to ``kind``, or ``default`` when absent."""
    if not isinstance(data, dict):
        raise TypeError(f"cannot read '{key}' from a JSON {type(data).__name__}")
    if key not in data:
        return default
    value = data[key]
    if kind is str:
        if isinstance(value, str):
            return value
    elif kind is bool:
        if isinstance(value, bool):
            return value
    elif kind is int:
        if isinstance(value, (bool, int, float)):
            return int(value)
    raise TypeError(f"field '{key}' has type {type(value).__name__}, expected {kind.__name__}")


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _as_int8(value: int) -> int:
    return (value + 128) % 256 - 128


@dataclass
class Light:
    """A smart light: identity, location and current state."""

    id: str
    name: str
    room: str
    on: bool = False
    brightness: int = 0

    def to_json_full(self) -> dict[str, Any]:
        """Return every property as a JSON-ready mapping."""
        return {
            "id": self.id,
            "name": self.name,
            "room": self.room,
            "on": self.on,
            "brightness": self.brightness,
        }

    @classmethod
    def from_json_api_concise(cls, data: Any) -> Light:
        """Build a light from the listing form: id, name and room only."""
        return cls(
            _lookup(data, "id", "", str),
            _lookup(data, "name", "", str),
            _lookup(data, "room", "", str),
        )

    @classmethod
    def from_json_api_full(cls, data: Any) -> Light:
        """Build a light from the detail form, scaling brightness 0-255 to 0-100."""
        api_brightness = _lookup(data, "brightness", 0, int)
        percent = _round_half_away(api_brightness / 255.0 * 100)
        return cls(
            _lookup(data, "id", "", str),
            _lookup(data, "name", "", str),
            _lookup(data, "room", "", str),
            _lookup(data, "on", False, bool),
            _as_int8(percent),
        )