"""
UndoManager - Linear edit history for the schematic controller.

Commands are executed here and kept on a "done" stack. Undoing moves a
command to the "undone" stack; executing anything new empties it. The
done stack is capped, and past the cap the oldest edit falls off.
"""

import logging
from typing import Optional

from controllers.commands import Command

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 500


class UndoManager:
    """
    Two-stack command history with a depth cap.

    Only objects with callable ``execute`` and ``undo`` are accepted.
    Inert commands are filtered by the caller, not here.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        """
        Args:
            max_depth: Number of edits that stay undoable (default 500)
        """
        self.max_depth = max_depth
        self._done: list[Command] = []
        self._undone: list[Command] = []

    def push_and_execute(self, command: Command) -> None:
        """
        Run ``command`` and record it as the newest edit.

        Anything waiting to be redone is discarded.

        Raises:
            TypeError: If the object does not provide callable execute/undo.
        """
        if not callable(getattr(command, "execute", None)) or not callable(getattr(command, "undo", None)):
            raise TypeError(f"Not a command: {command!r}")

        command.execute()
        self._done.append(command)
        if len(self._done) > self.max_depth:
            dropped = self._done.pop(0)
            logger.debug("Undo history full, dropped %s", _describe(dropped))
        self._undone.clear()

    def undo(self) -> bool:
        """Reverse the newest edit. False when there is nothing to undo."""
        if not self._done:
            return False
        command = self._done.pop()
        command.undo()
        self._undone.append(command)
        return True

    def redo(self) -> bool:
        """Re-run the most recently undone edit. False when there is none."""
        if not self._undone:
            return False
        command = self._undone.pop()
        command.execute()
        self._done.append(command)
        return True

    def can_undo(self) -> bool:
        return bool(self._done)

    def can_redo(self) -> bool:
        return bool(self._undone)

    def get_undo_description(self) -> Optional[str]:
        return _describe(self._done[-1]) if self._done else None

    def get_redo_description(self) -> Optional[str]:
        return _describe(self._undone[-1]) if self._undone else None

    def clear(self) -> None:
        """Forget the whole history, e.g. after a load or a new scene."""
        self._done.clear()
        self._undone.clear()

    def get_undo_count(self) -> int:
        return len(self._done)

    def get_redo_count(self) -> int:
        return len(self._undone)


def _describe(command) -> str:
    describe = getattr(command, "get_description", None)
    return describe() if callable(describe) else command.__class__.__name__
