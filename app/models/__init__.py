"""
Pure Python data models for the schematic editor core.

This package contains Qt-free classes for the scene graph: geometry
helpers, terminals, entities and their concrete kinds, the selection set,
hit testing and the scene with its coincidence index.
"""

from .elements import (
    BUILTIN_ELEMENTS,
    AmmeterElement,
    CapacitorElement,
    GroundElement,
    LabelElement,
    ProbeElement,
    ResistorElement,
    SourceElement,
    WireElement,
)
from .entity import Entity, EntityError
from .geometry import Bounds, rot_from_pins, transform
from .hit_test import HitTestStrategy
from .scene import IdGenerator, Scene
from .selection import SelectionSet
from .terminal import Terminal

__all__ = [
    "Scene",
    "IdGenerator",
    "Entity",
    "EntityError",
    "Terminal",
    "SelectionSet",
    "HitTestStrategy",
    "Bounds",
    "transform",
    "rot_from_pins",
    "BUILTIN_ELEMENTS",
    "ResistorElement",
    "CapacitorElement",
    "SourceElement",
    "AmmeterElement",
    "GroundElement",
    "ProbeElement",
    "LabelElement",
    "WireElement",
]
