"""
Entity - Pure Python base model for placed schematic elements.

This module contains no Qt dependencies. An entity has a pose (anchor,
45 degree rotation step, optional flips), an open property bag with
permissive schema validation, and an ordered set of terminals. Concrete
element kinds live in ``models.elements``.
"""

import logging
import numbers
import weakref
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Callable, Optional

from .geometry import Bounds, normalize_rotation, plain_number
from .terminal import Terminal

logger = logging.getLogger(__name__)

PRIMITIVE_TYPES = (str, int, float, bool)

# Schema "type" names -> accepted Python types
_SCHEMA_TYPES = {
    "string": (str,),
    "number": (int, float),
    "integer": (int,),
    "boolean": (bool,),
}

PropertyListener = Callable[["Entity", dict], None]


class EntityError(ValueError):
    """Raised for invalid entity construction or terminal definitions."""


def _is_number(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def check_property(key: str, value: Any, rule: Mapping) -> list[str]:
    """
    Check one property value against its schema rule.

    Returns:
        List of human-readable violations (empty when the value is valid).
    """
    problems = []
    if value is None or value == "":
        if rule.get("required"):
            problems.append(f"'{key}' is required")
        return problems

    expected = rule.get("type")
    if expected in _SCHEMA_TYPES:
        accepted = _SCHEMA_TYPES[expected]
        if isinstance(value, bool) and expected != "boolean":
            problems.append(f"'{key}' must be {expected}, got bool")
        elif not isinstance(value, accepted):
            problems.append(f"'{key}' must be {expected}, got {type(value).__name__}")

    choices = rule.get("enum")
    if choices is not None and value not in choices:
        problems.append(f"'{key}' must be one of {list(choices)}, got {value!r}")

    if _is_number(value):
        if "min" in rule and value < rule["min"]:
            problems.append(f"'{key}' must be >= {rule['min']}, got {value}")
        if "max" in rule and value > rule["max"]:
            problems.append(f"'{key}' must be <= {rule['max']}, got {value}")
    return problems


class Entity(ABC):
    """
    Base class for every placed schematic element.

    Subclasses set ``type_tag`` and ``id_prefix``, declare their terminals
    in ``__init__`` and implement ``to_netlist_entry``. Geometry queries
    (``get_bounds``, ``near``) have envelope-based defaults that concrete
    kinds may override.

    The ``scene`` attribute is a weak, non-owning back reference set while
    the entity is attached; it is used only to push coincidence-index
    updates.
    """

    type_tag = "entity"
    id_prefix = "E"
    bounds_padding = 8.0
    default_box = 12.0
    # Take the scene-assigned id as the "name" property when none is given
    auto_name = False
    default_properties: dict[str, Any] = {}
    schema: dict[str, dict] = {}

    def __init__(
        self,
        x: float,
        y: float,
        rotation: int = 0,
        properties: Optional[Mapping] = None,
        *,
        entity_id: Optional[str] = None,
        flipped_x: bool = False,
        flipped_y: bool = False,
        type_tag: Optional[str] = None,
    ):
        tag = type_tag if type_tag is not None else self.type_tag
        if not isinstance(tag, str) or not tag.strip():
            raise EntityError("Entity type tag is required.")
        if not _is_number(x) or not _is_number(y):
            raise EntityError(f"Entity position must be numeric, got ({x!r}, {y!r}).")
        if isinstance(rotation, bool) or not isinstance(rotation, numbers.Integral):
            raise EntityError(f"Entity rotation must be an integer step, got {rotation!r}.")

        self.type_tag = tag.strip().lower()
        self.entity_id = entity_id
        self.order: Optional[int] = None
        self.x = x
        self.y = y
        self.rotation = normalize_rotation(int(rotation))
        self.flipped_x = bool(flipped_x)
        self.flipped_y = bool(flipped_y)

        self.z_index = 0
        self.visible = True
        self.locked = False
        self.selected = False

        self.properties: dict[str, Any] = dict(self.default_properties)
        self._terminals: dict[str, Terminal] = {}
        self._scene_ref: Optional[weakref.ref] = None
        self._property_listeners: list[PropertyListener] = []
        self.bounding_box = Bounds(x - self.default_box, y - self.default_box,
                                   self.default_box * 2, self.default_box * 2)

        if properties:
            self.set_properties(properties)

    # --- Scene back-reference ---

    @property
    def scene(self):
        """Owning scene, or None when detached."""
        return self._scene_ref() if self._scene_ref is not None else None

    def attach(self, scene) -> None:
        self._scene_ref = weakref.ref(scene)

    def detach(self) -> None:
        self._scene_ref = None

    # --- Terminals ---

    def add_terminal(self, name: str, offset_x: float, offset_y: float) -> Terminal:
        """
        Add a named terminal at a local offset.

        Raises:
            EntityError: If the name is already used on this entity.
        """
        if name in self._terminals:
            raise EntityError(f"Terminal '{name}' already exists on {self.type_tag}.")
        terminal = Terminal(self, name, offset_x, offset_y)
        self._terminals[name] = terminal
        scene = self.scene
        if scene is not None:
            scene.update_coincidence(terminal)
        self._update_bounds()
        return terminal

    def get_terminal(self, name: str) -> Optional[Terminal]:
        return self._terminals.get(name)

    @property
    def terminals(self) -> list[Terminal]:
        """Terminals in declaration order (the netlist pin order)."""
        return list(self._terminals.values())

    @property
    def terminal_names(self) -> list[str]:
        return list(self._terminals)

    def pin_positions(self) -> list[list]:
        return [[plain_number(t.x), plain_number(t.y)] for t in self._terminals.values()]

    # --- Pose ---

    def update_coords(self) -> None:
        """Recompute terminal world positions (re-indexing them) and bounds."""
        for terminal in self._terminals.values():
            terminal.update_location()
        self._update_bounds()

    def move(self, dx: float, dy: float) -> None:
        """Translate the anchor; ignored while locked."""
        if self.locked:
            return
        self.x += dx
        self.y += dy
        self.update_coords()

    def rotate(self, steps: int = 1) -> None:
        """Rotate by 45 degree steps (negative turns counter-clockwise); ignored while locked."""
        if self.locked:
            return
        self.rotation = normalize_rotation(self.rotation + steps)
        self.update_coords()

    def flip(self, axis: str) -> None:
        """
        Toggle the flip flag for ``axis`` ("x" or "y").

        Raises:
            EntityError: For any other axis name.
        """
        axis = str(axis).lower()
        if axis == "x":
            self.flipped_x = not self.flipped_x
        elif axis == "y":
            self.flipped_y = not self.flipped_y
        else:
            raise EntityError(f"Unknown flip axis {axis!r}; expected 'x' or 'y'.")
        self.update_coords()

    def set_pose(
        self,
        x: Optional[float] = None,
        y: Optional[float] = None,
        rotation: Optional[int] = None,
        flipped_x: Optional[bool] = None,
        flipped_y: Optional[bool] = None,
    ) -> None:
        """Assign an absolute pose. Used by commands and import; ignores ``locked``."""
        if x is not None:
            self.x = x
        if y is not None:
            self.y = y
        if rotation is not None:
            self.rotation = normalize_rotation(rotation)
        if flipped_x is not None:
            self.flipped_x = bool(flipped_x)
        if flipped_y is not None:
            self.flipped_y = bool(flipped_y)
        self.update_coords()

    def pose(self) -> tuple:
        return (self.x, self.y, self.rotation, self.flipped_x, self.flipped_y)

    # --- Properties ---

    def add_property_listener(self, callback: PropertyListener) -> None:
        if callback not in self._property_listeners:
            self._property_listeners.append(callback)

    def remove_property_listener(self, callback: PropertyListener) -> None:
        if callback in self._property_listeners:
            self._property_listeners.remove(callback)

    def set_properties(self, patch: Mapping) -> dict[str, tuple[Any, Any]]:
        """
        Merge ``patch`` into the property bag.

        Validation is permissive: schema violations are logged as warnings
        and the value is still assigned. Fields with a non-string key or a
        non-primitive value are skipped individually.

        Returns:
            Mapping of changed keys to (old, new) values.
        """
        if not isinstance(patch, Mapping):
            logger.warning("Ignoring property patch on %s: expected a mapping, got %s",
                           self.describe(), type(patch).__name__)
            return {}

        changes = {}
        for key, value in patch.items():
            if not isinstance(key, str):
                logger.warning("Ignoring property with non-string key %r on %s", key, self.describe())
                continue
            if value is not None and not isinstance(value, PRIMITIVE_TYPES):
                logger.warning("Ignoring non-primitive value for '%s' on %s: %r", key, self.describe(), value)
                continue

            rule = self.schema.get(key)
            if rule is not None:
                for problem in check_property(key, value, rule):
                    logger.warning("Property validation on %s: %s", self.describe(), problem)

            old = self.properties.get(key)
            if key in self.properties and old == value and type(old) is type(value):
                continue
            self.properties[key] = value
            changes[key] = (old, value)

        if changes:
            self._notify_properties(changes)
        return changes

    def replace_properties(self, bag: Mapping) -> dict[str, tuple[Any, Any]]:
        """Replace the whole property bag (exact restore, no validation)."""
        new_bag = dict(bag)
        changes = {}
        for key in set(self.properties) | set(new_bag):
            old = self.properties.get(key)
            new = new_bag.get(key)
            if old != new or (key in self.properties) != (key in new_bag):
                changes[key] = (old, new)
        self.properties = new_bag
        if changes:
            self._notify_properties(changes)
        return changes

    def validate_properties(self) -> list[str]:
        """Check the whole bag against the schema; returns warnings, never raises."""
        problems = []
        for key, rule in self.schema.items():
            problems.extend(check_property(key, self.properties.get(key), rule))
        return problems

    def _notify_properties(self, changes: dict) -> None:
        for listener in list(self._property_listeners):
            try:
                listener(self, changes)
            except (TypeError, AttributeError, RuntimeError) as e:
                logger.error("Error notifying property listener: %s", e)

    # --- Geometry queries ---

    def _update_bounds(self) -> None:
        self.bounding_box = self.get_bounds()

    def get_bounds(self) -> Bounds:
        """World AABB: padded envelope of terminals, or a default box around the anchor."""
        if not self._terminals:
            box = self.default_box
            return Bounds(self.x - box, self.y - box, box * 2, box * 2)
        return Bounds.from_points((t.position for t in self._terminals.values()), self.bounds_padding)

    def near(self, x: float, y: float, tolerance: float = 5.0) -> bool:
        """Default hit test: point inside the bounds inflated by ``tolerance``."""
        return self.bounding_box.inflate(tolerance).contains(x, y)

    # --- Connectivity hooks ---

    def on_terminal_label(self, terminal: Terminal, label: str) -> list[Terminal]:
        """Return terminals the label flows to through this entity's body (none by default)."""
        return []

    # --- Serialization ---

    @abstractmethod
    def to_netlist_entry(self) -> tuple[str, dict]:
        """Return (kind, payload) for the netlist export."""

    def project_extras(self) -> dict:
        """Type-specific keys added to the project-form entry."""
        return {}

    def to_project_entry(self) -> dict:
        entry = {
            "type": self.type_tag,
            "x": plain_number(self.x),
            "y": plain_number(self.y),
            "rotation": self.rotation,
            "properties": dict(self.properties),
        }
        if self.flipped_x:
            entry["flippedX"] = True
        if self.flipped_y:
            entry["flippedY"] = True
        entry.update(self.project_extras())
        return entry

    def describe(self) -> str:
        return self.entity_id or self.type_tag

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(id={self.entity_id!r}, pos=({self.x}, {self.y}), "
            f"rot={self.rotation}, props={self.properties!r})"
        )
