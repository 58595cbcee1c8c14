"""
Concrete schematic element kinds.

This module contains no Qt dependencies. Every two-pin part is laid out
along the local +y axis with pins at (0, 0) and (0, 48), so a rotation of
0 is vertical and each rotation step turns it by 45 degrees.
"""

from typing import Optional

from .entity import Entity
from .geometry import Bounds, plain_number, point_to_segment_distance

# Local pin spacing for two-pin parts
PIN_SPACING = 48

# Default wire length used when only a start point is given
DEFAULT_WIRE_LENGTH = 64

_NAME_RULE = {"type": "string", "required": True}
_VALUE_RULE = {"type": "string", "required": True}


class TwoPinElement(Entity):
    """Shared layout for parts with ports A (0, 0) and B (0, 48)."""

    netlist_kind = "x"

    def __init__(self, x, y, rotation=0, properties=None, **kwargs):
        super().__init__(x, y, rotation, properties, **kwargs)
        self.add_terminal("A", 0, 0)
        self.add_terminal("B", 0, PIN_SPACING)

    def to_netlist_entry(self) -> tuple[str, dict]:
        payload = {"name": self.properties.get("name")}
        if "value" in self.properties:
            payload["value"] = self.properties.get("value")
        payload["pins"] = self.pin_positions()
        return (self.netlist_kind, payload)


class ResistorElement(TwoPinElement):
    type_tag = "resistor"
    id_prefix = "R"
    netlist_kind = "r"
    auto_name = True
    bounds_padding = 6.0
    default_properties = {"value": "1k", "name": "R1"}
    schema = {"value": _VALUE_RULE, "name": _NAME_RULE}


class CapacitorElement(TwoPinElement):
    type_tag = "capacitor"
    id_prefix = "C"
    netlist_kind = "c"
    auto_name = True
    bounds_padding = 10.0
    default_properties = {"value": "1u", "name": "C1"}
    schema = {"value": _VALUE_RULE, "name": _NAME_RULE}


class SourceElement(TwoPinElement):
    """Independent voltage ("V") or current ("I") source."""

    type_tag = "source"
    auto_name = True
    id_prefix = "V"
    bounds_padding = 12.0
    default_properties = {"kind": "V", "value": "5V", "name": "V1", "polarity": "+"}
    schema = {
        "kind": {"type": "string", "enum": ["V", "I"], "required": True},
        "value": _VALUE_RULE,
        "name": _NAME_RULE,
        "polarity": {"type": "string", "enum": ["+", "-"]},
    }

    def to_netlist_entry(self) -> tuple[str, dict]:
        kind = str(self.properties.get("kind") or "V").lower()
        return (kind, {
            "name": self.properties.get("name"),
            "value": self.properties.get("value"),
            "pins": self.pin_positions(),
        })


class AmmeterElement(TwoPinElement):
    type_tag = "ammeter"
    id_prefix = "AM"
    netlist_kind = "ammeter"
    auto_name = True
    default_properties = {"name": "AM1"}
    schema = {"name": _NAME_RULE}


class GroundElement(Entity):
    """Single-pin reference node; its pin seeds the "0" net label."""

    type_tag = "ground"
    id_prefix = "GND"
    default_properties = {"name": "0"}
    schema = {"name": _NAME_RULE}

    def __init__(self, x, y, rotation=0, properties=None, **kwargs):
        super().__init__(x, y, rotation, properties, **kwargs)
        self.add_terminal("GND", 0, 0)

    def get_bounds(self) -> Bounds:
        pin = self.get_terminal("GND")
        if pin is None:
            return super().get_bounds()
        pad = 12.0
        return Bounds(pin.x - pad, pin.y - pad, pad * 2, pad * 2)

    def to_netlist_entry(self) -> tuple[str, dict]:
        return ("gnd", {"name": self.properties.get("name"), "pins": self.pin_positions()})


class ProbeElement(Entity):
    """Single-point voltage probe."""

    type_tag = "probe"
    id_prefix = "P"
    default_properties = {"name": "Vprobe"}
    schema = {"name": _NAME_RULE}

    def __init__(self, x, y, rotation=0, properties=None, **kwargs):
        super().__init__(x, y, rotation, properties, **kwargs)
        self.add_terminal("P", 0, 0)

    def get_bounds(self) -> Bounds:
        pin = self.get_terminal("P")
        if pin is None:
            return super().get_bounds()
        pad = 16.0
        return Bounds(pin.x - pad, pin.y - pad, pad * 2, pad * 2 + 10)

    def to_netlist_entry(self) -> tuple[str, dict]:
        return ("probe", {"name": self.properties.get("name"), "pins": self.pin_positions()})


class LabelElement(Entity):
    """Free text annotation; has no terminals and no electrical meaning."""

    type_tag = "label"
    id_prefix = "LBL"
    default_properties = {"text": "label"}
    schema = {"text": {"type": "string", "required": True}}

    def to_netlist_entry(self) -> tuple[str, dict]:
        return ("label", {"text": self.properties.get("text"),
                          "at": [plain_number(self.x), plain_number(self.y)]})


class WireElement(Entity):
    """
    Straight wire between its anchor (port A) and a second point (port B).

    Wires are conductive: a net label arriving at one end flows to the
    other end.
    """

    type_tag = "wire"
    id_prefix = "W"
    bounds_padding = 0.0

    def __init__(self, x, y, rotation=0, properties=None, *, dx: Optional[float] = None,
                 dy: Optional[float] = None, end: Optional[tuple[float, float]] = None, **kwargs):
        super().__init__(x, y, rotation, properties, **kwargs)
        if end is not None:
            dx, dy = end[0] - x, end[1] - y
        self.dx = DEFAULT_WIRE_LENGTH if dx is None else dx
        self.dy = 0 if dy is None else dy
        self.add_terminal("A", 0, 0)
        self.add_terminal("B", self.dx, self.dy)

    @property
    def endpoints(self) -> tuple[tuple[float, float], tuple[float, float]]:
        a, b = self.get_terminal("A"), self.get_terminal("B")
        return (a.position, b.position)

    def other_end(self, terminal):
        a, b = self.get_terminal("A"), self.get_terminal("B")
        return b if terminal is a else a

    def on_terminal_label(self, terminal, label):
        return [self.other_end(terminal)]

    def near(self, x: float, y: float, tolerance: float = 5.0) -> bool:
        (ax, ay), (bx, by) = self.endpoints
        return point_to_segment_distance(x, y, ax, ay, bx, by) <= tolerance

    def to_netlist_entry(self) -> tuple[str, dict]:
        a, b = self.get_terminal("A"), self.get_terminal("B")
        return ("w", {
            "a": [plain_number(a.x), plain_number(a.y)],
            "b": [plain_number(b.x), plain_number(b.y)],
        })

    def project_extras(self) -> dict:
        return {"dx": plain_number(self.dx), "dy": plain_number(self.dy)}


BUILTIN_ELEMENTS = (
    ResistorElement,
    CapacitorElement,
    SourceElement,
    AmmeterElement,
    GroundElement,
    ProbeElement,
    LabelElement,
    WireElement,
)
