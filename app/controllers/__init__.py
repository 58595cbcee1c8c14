"""
Controllers for the schematic editor core.

This package contains Qt-free controller classes that turn editing
intents into undoable commands and notify views through an observer
pattern. Only ``preferences`` touches Qt, for QSettings.

``SchematicController`` depends on the ``netlist`` package, which in
turn uses the element factory here, so import it from
``controllers.schematic_controller`` directly.
"""

from .element_factory import ElementFactory, UnknownElementError, create_default_factory, element_factory
from .undo_manager import UndoManager

__all__ = [
    "ElementFactory",
    "UnknownElementError",
    "create_default_factory",
    "element_factory",
    "UndoManager",
]
