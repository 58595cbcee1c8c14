"""
Scene - Central data store for the schematic graph.

This module contains no Qt dependencies. The scene owns the ordered
entity list, the selection set and the coincidence index that maps a
world position to the terminals located there. Every structural change
goes through the scene so the index always matches the current terminal
positions.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .entity import Entity
from .geometry import Bounds, plain_number, position_key
from .hit_test import HitTestStrategy
from .selection import SelectionSet
from .terminal import GROUND_LABEL, Terminal

logger = logging.getLogger(__name__)

DEFAULT_GRID = 8

PositionKey = tuple[float, float]


@dataclass
class IdGenerator:
    """
    Hands out per-prefix sequential ids (R1, R2, W1, ...).

    Owned by a scene rather than kept at module level, so two scenes (or
    two tests) never share counters.
    """

    counters: dict[str, int] = field(default_factory=dict)

    def next_id(self, prefix: str, taken: Iterable[str] = ()) -> str:
        taken = set(taken)
        while True:
            count = self.counters.get(prefix, 0) + 1
            self.counters[prefix] = count
            candidate = f"{prefix}{count}"
            if candidate not in taken:
                return candidate

    def reset(self) -> None:
        self.counters.clear()


def _as_bounds(rect) -> Bounds:
    """Accept Bounds, (x, y, w, h) or {"x", "y", "w", "h"}; negative sizes are normalized."""
    if isinstance(rect, Mapping):
        x, y, w, h = rect["x"], rect["y"], rect["w"], rect["h"]
    else:
        x, y, w, h = rect
    if w < 0:
        x, w = x + w, -w
    if h < 0:
        y, h = y + h, -h
    return Bounds(x, y, w, h)


@dataclass(eq=False)
class Scene:
    """
    Graph model of a schematic.

    Attributes:
        grid: Snap-to-grid spacing.
        entities: Entities in insertion order (default draw order for ties).
        coincidence: Position key -> terminals located there.
        selection: The selection set.
        ids: Id generator used for entities added without an id.
    """

    grid: float = DEFAULT_GRID
    entities: list[Entity] = field(default_factory=list)
    coincidence: dict[PositionKey, list[Terminal]] = field(default_factory=dict)
    selection: SelectionSet = field(default_factory=SelectionSet)
    ids: IdGenerator = field(default_factory=IdGenerator)
    _next_order: int = field(default=0, init=False, repr=False)

    # --- Entity operations ---

    def add(self, entity: Entity, index: Optional[int] = None) -> Entity:
        """
        Attach an entity and index its terminals.

        Args:
            entity: The entity to add. Entities without an id get one from
                ``ids``.
            index: Optional list position (defaults to appending on top).

        Returns:
            The entity.
        """
        if entity in self.entities:
            return entity
        current = entity.scene
        if current is not None and current is not self:
            current.remove(entity)

        if entity.entity_id is None:
            entity.entity_id = self.ids.next_id(entity.id_prefix, (e.entity_id for e in self.entities))
        if entity.order is None:
            entity.order = self._next_order
            self._next_order += 1

        if index is None or index >= len(self.entities):
            self.entities.append(entity)
        else:
            self.entities.insert(max(index, 0), entity)

        entity.attach(self)
        entity.update_coords()
        return entity

    def remove(self, entity: Entity) -> bool:
        """Detach an entity, de-index its terminals and drop it from the selection."""
        if entity not in self.entities:
            return False
        for terminal in entity.terminals:
            self._unindex(terminal, terminal.key)
        self.entities.remove(entity)
        self.selection.remove(entity)
        entity.detach()
        return True

    def clear(self) -> None:
        """Remove everything: entities, coincidence index and selection."""
        self.selection.clear()
        for entity in self.entities:
            entity.detach()
        self.entities.clear()
        self.coincidence.clear()
        self.ids.reset()
        self._next_order = 0

    def get(self, entity_id: str) -> Optional[Entity]:
        for entity in self.entities:
            if entity.entity_id == entity_id:
                return entity
        return None

    def index_of(self, entity: Entity) -> int:
        """List position of ``entity`` or -1."""
        for i, candidate in enumerate(self.entities):
            if candidate is entity:
                return i
        return -1

    def __len__(self) -> int:
        return len(self.entities)

    def __iter__(self):
        return iter(list(self.entities))

    def __contains__(self, entity) -> bool:
        return entity in self.entities

    # --- Coincidence index ---

    def _unindex(self, terminal: Terminal, key: PositionKey) -> None:
        bucket = self.coincidence.get(key)
        if not bucket:
            return
        if terminal in bucket:
            bucket.remove(terminal)
        if not bucket:
            del self.coincidence[key]

    def update_coincidence(self, terminal: Terminal, old_key: Optional[PositionKey] = None) -> None:
        """Move ``terminal`` from its old bucket (if given) into the bucket of its current position."""
        if old_key is not None:
            self._unindex(terminal, old_key)
        bucket = self.coincidence.setdefault(terminal.key, [])
        if terminal not in bucket:
            bucket.append(terminal)

    def find_coincident(self, x: float, y: float) -> list[Terminal]:
        return list(self.coincidence.get(position_key(x, y), ()))

    def coincident_with(self, terminal: Terminal) -> list[Terminal]:
        """Other terminals at the same world position as ``terminal``."""
        return [t for t in self.coincidence.get(terminal.key, ()) if t is not terminal]

    # --- Net labels ---

    def clear_net_labels(self) -> None:
        for entity in self.entities:
            for terminal in entity.terminals:
                terminal.clear_label()

    def assign_net_labels(self) -> dict[PositionKey, str]:
        """
        Name every node of directly touching pins.

        Ground pins seed "0"; every other unlabeled terminal starts a new
        node N1, N2, ... in entity order. Labels flood through coincident
        pins and along wires.

        Returns:
            Position key -> net label for every indexed position.
        """
        self.clear_net_labels()
        for entity in self.entities:
            if entity.type_tag == "ground":
                for terminal in entity.terminals:
                    terminal.propagate_label(GROUND_LABEL)

        counter = 0
        for entity in self.entities:
            for terminal in entity.terminals:
                if terminal.label is None:
                    counter += 1
                    terminal.propagate_label(f"N{counter}")

        labels = {}
        for key, bucket in self.coincidence.items():
            for terminal in bucket:
                if terminal.label is not None:
                    labels[key] = terminal.label
                    break
        return labels

    # --- Queries ---

    def iter_z_order(self) -> list[Entity]:
        """Entities bottom-to-top: by ``z_index``, then insertion ``order``."""
        return sorted(self.entities, key=lambda e: (e.z_index, e.order))

    def hit_test(self, x: float, y: float, strategy: Optional[HitTestStrategy] = None) -> Optional[Entity]:
        """Return the topmost entity under (x, y), or None."""
        strategy = strategy or HitTestStrategy()
        for entity in reversed(self.iter_z_order()):
            if strategy.hit(entity, x, y):
                return entity
        return None

    def entities_in_rect(self, rect) -> list[Entity]:
        """Entities whose bounding box intersects ``rect`` (insertion order)."""
        area = _as_bounds(rect)
        return [e for e in self.entities if e.get_bounds().intersects(area)]

    def selection_bounds(self) -> Optional[Bounds]:
        bounds = None
        for entity in self.selection.get_all():
            box = entity.get_bounds()
            bounds = box if bounds is None else bounds.union(box)
        return bounds

    # --- Serialization ---

    def to_project_form(self) -> dict:
        """Serialize to the project schema ``{grid, entities: [...]}``."""
        return {
            "grid": plain_number(self.grid),
            "entities": [e.to_project_entry() for e in self.entities],
        }

    def __repr__(self) -> str:
        return f"Scene(grid={self.grid}, entities={len(self.entities)}, positions={len(self.coincidence)})"
