"""
SelectionSet - the entities currently marked as selected.

This is the single source of truth for multi-select operations; it keeps
each entity's ``selected`` flag in sync and nothing else writes that flag.
"""


class SelectionSet:
    """Unordered set of selected entities."""

    def __init__(self):
        self._items = set()

    def set(self, items) -> None:
        """Replace the whole selection."""
        self.clear()
        for item in items:
            self.add(item)

    def add(self, item) -> None:
        if item is None:
            return
        item.selected = True
        self._items.add(item)

    def remove(self, item) -> None:
        if item is None:
            return
        item.selected = False
        self._items.discard(item)

    def toggle(self, item) -> None:
        if item is None:
            return
        if item in self._items:
            self.remove(item)
        else:
            self.add(item)

    def clear(self) -> None:
        for item in self._items:
            item.selected = False
        self._items.clear()

    def get_all(self) -> list:
        """Snapshot list, safe to iterate while the selection changes."""
        return list(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def __contains__(self, item) -> bool:
        return item in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self.get_all())

    def __repr__(self) -> str:
        return f"SelectionSet({len(self._items)} selected)"
