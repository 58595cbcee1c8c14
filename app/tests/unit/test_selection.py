"""Tests for SelectionSet."""

from models.elements import ResistorElement
from models.selection import SelectionSet


def _parts(n):
    return [ResistorElement(i * 8, 0) for i in range(n)]


class TestSelectionSet:
    def test_add_sets_flag(self):
        selection = SelectionSet()
        (r,) = _parts(1)
        selection.add(r)
        assert r in selection
        assert r.selected

    def test_set_replaces(self):
        selection = SelectionSet()
        a, b, c = _parts(3)
        selection.set([a, b])
        selection.set([c])
        assert selection.get_all() == [c]
        assert not a.selected and not b.selected

    def test_toggle(self):
        selection = SelectionSet()
        (r,) = _parts(1)
        selection.toggle(r)
        assert r.selected
        selection.toggle(r)
        assert not r.selected
        assert selection.is_empty()

    def test_remove_missing_is_safe(self):
        selection = SelectionSet()
        (r,) = _parts(1)
        selection.remove(r)
        assert len(selection) == 0

    def test_none_ignored(self):
        selection = SelectionSet()
        selection.add(None)
        selection.toggle(None)
        assert len(selection) == 0

    def test_get_all_is_a_snapshot(self):
        selection = SelectionSet()
        parts = _parts(3)
        selection.set(parts)
        for item in selection.get_all():
            selection.remove(item)
        assert selection.is_empty()

    def test_clear(self):
        selection = SelectionSet()
        parts = _parts(2)
        selection.set(parts)
        selection.clear()
        assert not any(p.selected for p in parts)
