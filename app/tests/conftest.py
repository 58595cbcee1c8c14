"""
Shared test fixtures for the schematic core test suite.

All fixtures build pure-Python model objects (no Qt dependencies).
"""

import sys
from pathlib import Path

# Ensure app/ is on sys.path so bare imports (models, controllers, netlist)
# work when running individual test files (e.g., python -m pytest app/tests/unit/test_foo.py).
_app_dir = str(Path(__file__).resolve().parent.parent)
if _app_dir not in sys.path:
    sys.path.insert(0, _app_dir)

import pytest
from controllers.element_factory import create_default_factory
from controllers.preferences import EditorPreferences
from controllers.schematic_controller import SchematicController
from models.scene import Scene


@pytest.fixture
def scene():
    """An empty scene on the default 8-unit grid."""
    return Scene(grid=8)


@pytest.fixture
def factory():
    """A private factory so tests that register kinds never leak."""
    return create_default_factory()


@pytest.fixture
def controller(factory):
    return SchematicController(factory=factory, preferences=EditorPreferences())


@pytest.fixture
def events():
    """Fixture that returns a list and a callback that appends events to it."""
    recorded = []

    def callback(event, data):
        recorded.append((event, data))

    return recorded, callback


@pytest.fixture
def divider_scene(scene, factory):
    """
    V1 -- R1 -- R2 -- GND, wired at coincident pins.

    V1 stands at (0, 0)-(0, 48); R1 (turned 90 degrees) runs from (48, 0)
    back to V1's top pin; R2 hangs from (48, 0) down to (48, 48); a wire
    joins V1's bottom pin to R2's bottom pin where the ground sits.
    """
    v1 = scene.add(factory.create("source", 0, 0, properties={"name": "V1"}))
    r1 = scene.add(factory.create("resistor", 48, 0, rotation=2, properties={"name": "R1", "value": "1k"}))
    r2 = scene.add(factory.create("resistor", 48, 0, properties={"name": "R2", "value": "2k"}))
    wire = scene.add(factory.create("wire", 0, 48, end=(48, 48)))
    gnd = scene.add(factory.create("ground", 48, 48))
    return scene, {"V1": v1, "R1": r1, "R2": r2, "W": wire, "GND": gnd}
