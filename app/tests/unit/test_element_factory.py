"""Tests for ElementFactory."""

import pytest
from controllers.element_factory import (
    ElementFactory,
    UnknownElementError,
    create_default_factory,
    element_factory,
)
from models.elements import GroundElement, ResistorElement, WireElement
from models.entity import EntityError


class TestDefaultFactory:
    def test_builtin_kinds_registered(self, factory):
        assert sorted(factory.list_types()) == [
            "ammeter", "capacitor", "ground", "label", "probe", "resistor", "source", "wire",
        ]

    def test_module_table_is_populated(self):
        assert element_factory.has("resistor")

    def test_create_resistor(self, factory):
        r = factory.create("resistor", 160, 80, properties={"name": "R1", "value": "1k"})
        assert isinstance(r, ResistorElement)
        assert r.pin_positions() == [[160, 80], [160, 128]]
        assert r.scene is None

    def test_tags_are_case_insensitive(self, factory):
        assert isinstance(factory.create("Ground", 0, 0), GroundElement)
        assert factory.has(" WIRE ")

    def test_extras_reach_the_constructor(self, factory):
        w = factory.create("wire", 16, 16, end=(80, 16))
        assert isinstance(w, WireElement)
        assert w.endpoints == ((16, 16), (80, 16))

    def test_rotation_passed_through(self, factory):
        assert factory.create("capacitor", 0, 0, rotation=3).rotation == 3

    def test_invalid_arguments_raise_entity_error(self, factory):
        with pytest.raises(EntityError):
            factory.create("resistor", "left", 0)


class TestUnknownTypes:
    def test_unknown_tag_raises(self, factory):
        with pytest.raises(UnknownElementError) as exc_info:
            factory.create("transistor", 0, 0)
        assert exc_info.value.type_tag == "transistor"
        assert "transistor" in str(exc_info.value)

    def test_unknown_error_is_key_error(self):
        assert issubclass(UnknownElementError, KeyError)

    def test_has_rejects_non_strings(self, factory):
        assert not factory.has(None)
        assert not factory.has(3)


class TestRegistration:
    def test_register_custom_kind(self, factory):
        class InductorElement(ResistorElement):
            type_tag = "inductor"
            id_prefix = "L"
            netlist_kind = "l"
            default_properties = {"value": "1m", "name": "L1"}

        factory.register("inductor", InductorElement)
        part = factory.create("inductor", 0, 0)
        assert part.to_netlist_entry()[0] == "l"
        assert "inductor" in factory.list_types()

    def test_register_replaces(self, factory):
        made = []

        def maker(x, y, rotation=0, properties=None, **extras):
            made.append((x, y))
            return ResistorElement(x, y, rotation, properties)

        factory.register("resistor", maker)
        factory.create("resistor", 1, 2)
        assert made == [(1, 2)]

    def test_empty_tag_rejected(self):
        with pytest.raises(ValueError):
            ElementFactory().register("  ", ResistorElement)

    def test_unregister(self, factory):
        factory.unregister("probe")
        assert not factory.has("probe")
        factory.unregister("probe")

    def test_private_factories_are_independent(self):
        one = create_default_factory()
        two = create_default_factory()
        one.unregister("wire")
        assert two.has("wire")
