"""
Terminal - Pure Python model for an entity's connection point.

A terminal is a named pin owned by exactly one entity. Its world position
is always derived from the owner's pose; whenever the pose changes the
terminal recomputes its location and pushes the move into the owning
scene's coincidence index.
"""

import logging
from collections import deque
from typing import Optional

from .geometry import position_key, transform

logger = logging.getLogger(__name__)

GROUND_LABEL = "0"


class Terminal:
    """A named electrical port with a local offset and a derived world position."""

    def __init__(self, owner, name: str, offset_x: float, offset_y: float):
        self.owner = owner
        self.name = name
        self.offset_x = offset_x
        self.offset_y = offset_y
        self.label: Optional[str] = None
        self.x = 0.0
        self.y = 0.0
        self._compute_location()

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)

    @property
    def key(self) -> tuple[float, float]:
        """Coincidence-index key for the current world position."""
        return position_key(self.x, self.y)

    def _compute_location(self) -> None:
        owner = self.owner
        dx, dy = transform(self.offset_x, self.offset_y, owner.rotation, owner.flipped_x, owner.flipped_y)
        self.x = owner.x + dx
        self.y = owner.y + dy

    def update_location(self) -> None:
        """Recompute the world position and re-index it when attached."""
        old_key = self.key
        self._compute_location()
        scene = self.owner.scene
        if scene is not None:
            scene.update_coincidence(self, old_key)

    def coincident(self, x: float, y: float) -> bool:
        return self.key == position_key(x, y)

    def clear_label(self) -> None:
        self.label = None

    def _accept_label(self, label: str) -> bool:
        """Apply the label policy; return True when the label was taken."""
        if self.label == label:
            return False
        if self.label == GROUND_LABEL:
            return False
        if self.label is not None:
            # Last write wins for non-ground conflicts
            logger.warning(
                "Net label conflict at %s on %s.%s: %r overwritten by %r",
                self.key, self.owner.entity_id, self.name, self.label, label,
            )
        self.label = label
        return True

    def propagate_label(self, label: str) -> int:
        """
        Assign a net label and flood it across directly touching pins.

        The flood visits terminals coincident with each newly labelled
        terminal, and lets the owning entity forward the label through its
        body (wires are conductive, other parts are not). A terminal that
        already carries the same label stops the flood, so it terminates.

        Returns:
            Number of terminals whose label changed.
        """
        changed = 0
        queue = deque([self])
        while queue:
            terminal = queue.popleft()
            if not terminal._accept_label(label):
                continue
            changed += 1

            scene = terminal.owner.scene
            if scene is not None:
                for other in scene.coincident_with(terminal):
                    if other.label != label:
                        queue.append(other)

            for other in terminal.owner.on_terminal_label(terminal, label):
                if other.label != label:
                    queue.append(other)
        return changed

    def __repr__(self) -> str:
        return f"Terminal({self.owner.type_tag}.{self.name} @ ({self.x}, {self.y}), label={self.label!r})"
