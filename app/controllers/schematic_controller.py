"""
SchematicController - The intent surface of the editing core.

Qt reaches this module only through ``EditorPreferences``, which is
backed by QSettings. Presentation code calls the intent methods (add,
select, rotate, undo, import, ...) and registers observers to hear about
changes. Every edit goes through the undo manager as a command.
"""

import json
import logging
from typing import Any, Callable, Iterable, Optional

from controllers.commands import (
    AddEntityCommand,
    Command,
    FlipSelectionCommand,
    MoveSelectionCommand,
    PropertyChangeCommand,
    RemoveSelectionCommand,
    RotateSelectionCommand,
)
from controllers.element_factory import ElementFactory, element_factory
from controllers.preferences import EditorPreferences
from controllers.undo_manager import UndoManager
from models.entity import Entity
from models.geometry import snap
from models.hit_test import HitTestStrategy
from models.scene import Scene
from netlist.netlist_translator import SchematicImportError, export_netlist, import_any

logger = logging.getLogger(__name__)

# Where parts land when the caller gives no position
DEFAULT_PART_POSITION = (160, 80)
DEFAULT_WIRE_START = (16, 16)

# Options of add() that are not property values
_PLACEMENT_OPTIONS = ("rotation", "end", "dx", "dy", "flipped_x", "flipped_y")


class SchematicController:
    """
    Controller for schematic editing intents.

    Owns the undo history and notifies registered observers when the
    scene changes.

    Observer events:
        entity_added (Entity) - An entity was added
        entities_removed (list[Entity]) - Selected entities were deleted
        entities_moved (list[Entity]) - The selection was moved
        entities_rotated (list[Entity]) - The selection was rotated
        entities_flipped (list[Entity]) - The selection was mirrored
        properties_changed (list[Entity]) - Property bags were patched
        selection_changed (list[Entity]) - The selection set changed
        undo (str) - A command was undone (its description)
        redo (str) - A command was redone (its description)
        scene_cleared (None) - The scene was emptied
        model_loaded (str) - A document was imported (schema name)
        import_failed (str) - An import was rejected (reason)
    """

    def __init__(self, scene: Optional[Scene] = None,
                 factory: Optional[ElementFactory] = None,
                 preferences: Optional[EditorPreferences] = None):
        self.preferences = preferences or EditorPreferences()
        self.scene = scene if scene is not None else Scene(grid=self.preferences.grid)
        self.factory = factory or element_factory
        self.undo_manager = UndoManager(max_depth=self.preferences.undo_depth)
        self.hit_strategy = HitTestStrategy(self.preferences.hit_tolerance)
        self._observers: list[Callable[[str, Any], None]] = []

    def add_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Register a callback for scene change events."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Unregister a previously registered callback."""
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify(self, event: str, data: Any) -> None:
        """Notify all observers of a scene change."""
        for observer in self._observers:
            try:
                observer(event, data)
            except (TypeError, AttributeError, RuntimeError) as e:
                logger.error("Error notifying observer: %s", e)

    def _execute(self, command: Command) -> bool:
        if command.is_empty():
            logger.debug("Ignoring empty command: %s", command.get_description())
            return False
        self.undo_manager.push_and_execute(command)
        return True

    def _snap(self, value: float) -> float:
        if not self.preferences.snap_to_grid:
            return value
        return snap(value, self.scene.grid)

    # --- Creation ---

    def add(self, type_tag: str, x: Optional[float] = None, y: Optional[float] = None,
            **options) -> Entity:
        """
        Create an entity through the factory and add it as one undo step.

        Args:
            type_tag: Registered element type ("resistor", "wire", ...).
            x, y: Anchor position; defaults to a fixed spot on the sheet.
            **options: ``rotation``, ``properties`` (a dict), wire geometry
                (``end`` or ``dx``/``dy``), flip flags; any other keyword
                is taken as a property value (``name="R7"``).

        Returns:
            The new entity.

        Raises:
            UnknownElementError: If ``type_tag`` is not registered.
            EntityError: If the construction arguments are invalid.
        """
        is_wire = str(type_tag).strip().lower() == "wire"
        if x is None or y is None:
            x, y = DEFAULT_WIRE_START if is_wire else DEFAULT_PART_POSITION
        else:
            x, y = self._snap(x), self._snap(y)

        extras = {key: options.pop(key) for key in _PLACEMENT_OPTIONS if key in options}
        rotation = extras.pop("rotation", 0)
        properties = dict(options.pop("properties", None) or {})
        properties.update(options)
        if is_wire and "end" not in extras and "dx" not in extras:
            extras["dx"] = self.preferences.default_wire_length
            extras.setdefault("dy", 0)

        entity = self.factory.create(type_tag, x, y, rotation=rotation,
                                     properties=properties or None, **extras)
        entity.entity_id = self.scene.ids.next_id(
            entity.id_prefix, (e.entity_id for e in self.scene.entities))
        if entity.auto_name and "name" not in properties:
            entity.set_properties({"name": entity.entity_id})

        self._execute(AddEntityCommand(self.scene, entity, select=self.preferences.select_on_add))
        logger.info("Added %s at (%s, %s)", entity.describe(), entity.x, entity.y)
        self._notify('entity_added', entity)
        if self.preferences.select_on_add:
            self._notify('selection_changed', self.scene.selection.get_all())
        return entity

    # --- Selection ---

    def select(self, entities: Iterable[Entity]) -> None:
        """Replace the selection with ``entities`` (those in the scene)."""
        self.scene.selection.set(e for e in entities if e in self.scene)
        self._notify('selection_changed', self.scene.selection.get_all())

    def select_at(self, x: float, y: float, additive: bool = False) -> Optional[Entity]:
        """
        Select the topmost entity under (x, y).

        With ``additive`` the hit entity is toggled and the rest of the
        selection is kept; otherwise the selection becomes just the hit
        (or empty on a miss).
        """
        hit = self.scene.hit_test(x, y, self.hit_strategy)
        if additive:
            if hit is None:
                return None
            self.scene.selection.toggle(hit)
        elif hit is None:
            self.scene.selection.clear()
        else:
            self.scene.selection.set([hit])
        self._notify('selection_changed', self.scene.selection.get_all())
        return hit

    def select_in_rect(self, rect, additive: bool = False) -> list[Entity]:
        """Marquee selection: every entity whose bounds intersect ``rect``."""
        found = self.scene.entities_in_rect(rect)
        if additive:
            for entity in found:
                self.scene.selection.add(entity)
        else:
            self.scene.selection.set(found)
        self._notify('selection_changed', self.scene.selection.get_all())
        return found

    def clear_selection(self) -> None:
        self.scene.selection.clear()
        self._notify('selection_changed', [])

    # --- Edits ---

    def delete_selected(self) -> bool:
        """Delete every selected entity. Returns False when nothing is selected."""
        removed = self.scene.selection.get_all()
        if not self._execute(RemoveSelectionCommand(self.scene)):
            return False
        self._notify('entities_removed', removed)
        self._notify('selection_changed', [])
        return True

    def move_selected(self, dx: float, dy: float) -> bool:
        """Translate the selection, snapping each anchor to the grid when enabled."""
        snap_step = self.scene.grid if self.preferences.snap_to_grid else None
        if not self._execute(MoveSelectionCommand(self.scene, dx, dy, snap_step=snap_step)):
            return False
        self._notify('entities_moved', self.scene.selection.get_all())
        return True

    def rotate(self, steps: int = 1) -> bool:
        """Rotate the selection by ``steps`` * 45 degrees (positive is clockwise)."""
        if not self._execute(RotateSelectionCommand(self.scene, steps)):
            return False
        self._notify('entities_rotated', self.scene.selection.get_all())
        return True

    def flip(self, axis: str = "x") -> bool:
        """
        Mirror each selected entity about its own anchor.

        Raises:
            ValueError: If ``axis`` is not "x" or "y".
        """
        if not self._execute(FlipSelectionCommand(self.scene, axis)):
            return False
        self._notify('entities_flipped', self.scene.selection.get_all())
        return True

    def set_properties(self, patch: dict, entities: Optional[Iterable[Entity]] = None) -> bool:
        """
        Patch the property bag of ``entities`` (default: the selection).

        Schema violations are kept and reported as warnings by the entity.
        Returns False, leaving the history alone, when no field would change.
        """
        targets = list(entities) if entities is not None else self.scene.selection.get_all()
        command = PropertyChangeCommand([(entity, patch) for entity in targets])
        if not self._execute(command):
            return False
        self._notify('properties_changed', targets)
        return True

    # --- History ---

    def undo(self) -> bool:
        description = self.undo_manager.get_undo_description()
        if not self.undo_manager.undo():
            return False
        self._notify('undo', description)
        return True

    def redo(self) -> bool:
        description = self.undo_manager.get_redo_description()
        if not self.undo_manager.redo():
            return False
        self._notify('redo', description)
        return True

    def can_undo(self) -> bool:
        return self.undo_manager.can_undo()

    def can_redo(self) -> bool:
        return self.undo_manager.can_redo()

    # --- Scene-wide operations ---

    def clear(self) -> None:
        """Empty the scene and drop the undo history."""
        self.scene.clear()
        self.undo_manager.clear()
        self._notify('scene_cleared', None)

    def assign_net_labels(self) -> dict:
        return self.scene.assign_net_labels()

    def import_project(self, text) -> bool:
        """
        Replace the scene with a project or netlist document.

        A rejected document leaves the scene and history untouched.

        Returns:
            True if the document was imported.
        """
        try:
            schema = import_any(self.scene, text, self.factory)
        except SchematicImportError as e:
            logger.error("Import failed: %s", e)
            self._notify('import_failed', str(e))
            return False
        self.undo_manager.clear()
        logger.info("Imported %s with %d entities", schema, len(self.scene))
        self._notify('model_loaded', schema)
        return True

    def export_project(self) -> str:
        return json.dumps(self.scene.to_project_form(), indent=2)

    def export_netlist(self) -> str:
        return json.dumps(export_netlist(self.scene), indent=2)
