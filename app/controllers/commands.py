"""
Command Pattern Implementation for Undo/Redo.

Each command stores the state it needs to make ``undo`` exact. Commands
that act on the selection snapshot it when they are constructed, so a
command built against an empty selection is inert: ``is_empty()`` is true
and execute/undo do nothing. Callers check ``is_empty()`` before pushing
to keep such entries out of the history.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Optional

from models.entity import PRIMITIVE_TYPES, Entity
from models.geometry import rotate_about, snap, normalize_rotation


class Command(ABC):
    """Base class for undoable commands."""

    @abstractmethod
    def execute(self) -> None:
        """Execute the command (perform the action)."""
        pass

    @abstractmethod
    def undo(self) -> None:
        """Undo the command (reverse the action)."""
        pass

    def is_empty(self) -> bool:
        """Return True when executing would not change anything."""
        return False

    def get_description(self) -> str:
        """Return a human-readable description of this command."""
        return self.__class__.__name__


class AddEntityCommand(Command):
    """Command to add one entity to the scene."""

    def __init__(self, scene, entity: Entity, select: bool = True):
        self.scene = scene
        self.entity = entity
        self.select = select
        self._previous_selection: list[Entity] = []

    def execute(self) -> None:
        """Add the entity, optionally making it the only selected one."""
        self._previous_selection = self.scene.selection.get_all()
        self.scene.add(self.entity)
        if self.select:
            self.scene.selection.set([self.entity])

    def undo(self) -> None:
        """Remove exactly the added instance and restore the prior selection."""
        self.scene.remove(self.entity)
        if self.select:
            self.scene.selection.set(e for e in self._previous_selection if e in self.scene)

    def get_description(self) -> str:
        return f"Add {self.entity.type_tag}"


class RemoveSelectionCommand(Command):
    """Command to delete every selected entity."""

    def __init__(self, scene):
        self.scene = scene
        items = [(scene.index_of(e), e) for e in scene.selection.get_all()]
        # Ascending list positions so re-insertion lands every entity back in place
        self._items: list[tuple[int, Entity]] = sorted(
            ((idx, e) for idx, e in items if idx >= 0), key=lambda item: item[0]
        )

    def is_empty(self) -> bool:
        return not self._items

    def execute(self) -> None:
        """Remove the snapshotted entities and clear the selection."""
        if not self._items:
            return
        for _, entity in self._items:
            self.scene.remove(entity)
        self.scene.selection.clear()

    def undo(self) -> None:
        """Re-insert entities at their original positions and reselect them."""
        if not self._items:
            return
        for idx, entity in self._items:
            self.scene.add(entity, index=idx)
        self.scene.selection.set(e for _, e in self._items)

    def get_description(self) -> str:
        return f"Delete {len(self._items)} item(s)"


class MoveSelectionCommand(Command):
    """
    Command to translate the selection.

    When ``snap_step`` is given, each entity's target anchor is snapped to
    the grid individually (entities that start off-grid land on it).
    Locked entities are left out.
    """

    def __init__(self, scene, dx: float, dy: float, snap_step: Optional[float] = None):
        self.scene = scene
        self.dx = dx
        self.dy = dy
        self._items: list[tuple[Entity, tuple[float, float], tuple[float, float]]] = []
        for entity in scene.selection.get_all():
            if entity.locked:
                continue
            start = (entity.x, entity.y)
            end = (entity.x + dx, entity.y + dy)
            if snap_step:
                end = (snap(end[0], snap_step), snap(end[1], snap_step))
            if end != start:
                self._items.append((entity, start, end))

    def is_empty(self) -> bool:
        return not self._items

    def execute(self) -> None:
        for entity, _, (x, y) in self._items:
            entity.set_pose(x=x, y=y)

    def undo(self) -> None:
        for entity, (x, y), _ in self._items:
            entity.set_pose(x=x, y=y)

    def get_description(self) -> str:
        return f"Move {len(self._items)} item(s)"


class RotateSelectionCommand(Command):
    """
    Command to rotate the selection rigidly by ``steps`` * 45 degrees.

    Every anchor turns about the center of the selection's bounding box as
    it was when the command was built, and every entity's own rotation
    advances by ``steps``. Final states are precomputed so redo replays
    exactly the same poses.
    """

    def __init__(self, scene, steps: int):
        self.scene = scene
        self.steps = int(steps)
        self.center: Optional[tuple[float, float]] = None
        self._items: list[tuple[Entity, tuple, tuple]] = []

        selected = [e for e in scene.selection.get_all() if not e.locked]
        if not selected or self.steps % 8 == 0:
            return

        bounds = None
        for entity in selected:
            box = entity.get_bounds()
            bounds = box if bounds is None else bounds.union(box)
        cx, cy = bounds.center()
        self.center = (cx, cy)

        for entity in selected:
            x1, y1 = rotate_about(entity.x, entity.y, cx, cy, self.steps)
            before = (entity.x, entity.y, entity.rotation)
            after = (x1, y1, normalize_rotation(entity.rotation + self.steps))
            self._items.append((entity, before, after))

    def is_empty(self) -> bool:
        return not self._items

    def execute(self) -> None:
        for entity, _, (x, y, rotation) in self._items:
            entity.set_pose(x=x, y=y, rotation=rotation)

    def undo(self) -> None:
        for entity, (x, y, rotation), _ in self._items:
            entity.set_pose(x=x, y=y, rotation=rotation)

    def get_description(self) -> str:
        direction = "clockwise" if self.steps > 0 else "counter-clockwise"
        return f"Rotate {len(self._items)} item(s) {abs(self.steps) * 45} degrees {direction}"


class FlipSelectionCommand(Command):
    """Command to mirror every selected entity about its own anchor."""

    def __init__(self, scene, axis: str = "x"):
        self.scene = scene
        self.axis = str(axis).lower()
        if self.axis not in ("x", "y"):
            raise ValueError(f"Unknown flip axis {axis!r}; expected 'x' or 'y'.")
        self._entities = [e for e in scene.selection.get_all() if not e.locked]

    def is_empty(self) -> bool:
        return not self._entities

    def execute(self) -> None:
        for entity in self._entities:
            entity.flip(self.axis)

    def undo(self) -> None:
        """Flip back (toggle state)."""
        for entity in self._entities:
            entity.flip(self.axis)

    def get_description(self) -> str:
        direction = "horizontal" if self.axis == "x" else "vertical"
        return f"Flip {len(self._entities)} item(s) {direction}"


class PropertyChangeCommand(Command):
    """
    Command to patch properties on one or more entities.

    ``patches`` is a list of (entity, patch) pairs. Undo restores each
    entity's complete prior property bag, not just the patched keys.
    """

    def __init__(self, patches):
        self._items: list[tuple[Entity, dict, dict]] = []
        for entity, patch in patches or []:
            if entity is None or not isinstance(patch, Mapping):
                continue
            effective = _effective_patch(entity, patch)
            if not effective:
                continue
            before = dict(entity.properties)
            self._items.append((entity, effective, before))

    def is_empty(self) -> bool:
        return not self._items

    def execute(self) -> None:
        for entity, patch, _ in self._items:
            entity.set_properties(patch)

    def undo(self) -> None:
        for entity, _, before in self._items:
            entity.replace_properties(before)

    def get_description(self) -> str:
        keys = sorted({key for _, patch, _ in self._items for key in patch})
        return f"Change {', '.join(keys)}"


class CompoundCommand(Command):
    """Command that groups multiple commands into a single undo step."""

    def __init__(self, commands: list[Command], description: str = "Multiple actions"):
        self.commands = commands
        self.description = description

    def is_empty(self) -> bool:
        return all(command.is_empty() for command in self.commands)

    def execute(self) -> None:
        """Execute all commands in order."""
        for command in self.commands:
            command.execute()

    def undo(self) -> None:
        """Undo all commands in reverse order."""
        for command in reversed(self.commands):
            command.undo()

    def get_description(self) -> str:
        return self.description


def _effective_patch(entity: Entity, patch: Mapping) -> dict:
    """The fields of ``patch`` that ``Entity.set_properties`` would change."""
    effective = {}
    for key, value in patch.items():
        if not isinstance(key, str):
            continue
        if value is not None and not isinstance(value, PRIMITIVE_TYPES):
            continue
        old = entity.properties.get(key)
        if key in entity.properties and old == value and type(old) is type(value):
            continue
        effective[key] = value
    return effective
