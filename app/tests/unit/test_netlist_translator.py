"""Tests for netlist/project export and import."""

import json
import logging

import pytest
from models.elements import GroundElement, LabelElement, ResistorElement, SourceElement, WireElement
from models.scene import Scene
from netlist.netlist_translator import (
    SCHEMA_NETLIST,
    SCHEMA_PROJECT,
    SchematicImportError,
    detect_schema,
    export_netlist,
    import_any,
    import_netlist,
    import_project,
    parse_document,
)


@pytest.fixture
def resistor_and_wire(scene, factory):
    scene.add(factory.create("resistor", 160, 80, properties={"name": "R1", "value": "1k"}))
    scene.add(factory.create("wire", 16, 16, end=(80, 16)))
    return scene


class TestExport:
    def test_resistor_and_wire(self, resistor_and_wire):
        netlist = export_netlist(resistor_and_wire)
        assert netlist == {
            "grid": 8,
            "components": [{"kind": "r", "name": "R1", "value": "1k", "pins": [[160, 80], [160, 128]]}],
            "wires": [{"a": [16, 16], "b": [80, 16]}],
        }

    def test_export_is_json_serializable(self, divider_scene):
        scene, _ = divider_scene
        text = json.dumps(export_netlist(scene))
        assert json.loads(text)["components"][0]["kind"] == "v"

    def test_components_follow_scene_order(self, divider_scene):
        scene, _ = divider_scene
        kinds = [c["kind"] for c in export_netlist(scene)["components"]]
        assert kinds == ["v", "r", "r", "gnd"]

    def test_labels_exported_as_components(self, scene):
        scene.add(LabelElement(8, 8, properties={"text": "Vout"}))
        assert export_netlist(scene)["components"] == [{"kind": "label", "text": "Vout", "at": [8, 8]}]


class TestDetectSchema:
    def test_project(self):
        assert detect_schema({"grid": 8, "entities": []}) == SCHEMA_PROJECT

    def test_legacy_elements_key(self):
        assert detect_schema({"elements": []}) == SCHEMA_PROJECT

    def test_netlist(self):
        assert detect_schema({"components": []}) == SCHEMA_NETLIST
        assert detect_schema({"wires": []}) == SCHEMA_NETLIST

    @pytest.mark.parametrize("data", [
        [],
        "text",
        {"grid": 8},
        {"entities": {}},
        {"components": "r1"},
    ])
    def test_unrecognized(self, data):
        with pytest.raises(SchematicImportError):
            detect_schema(data)

    def test_malformed_json(self):
        with pytest.raises(SchematicImportError):
            parse_document("{not json")

    def test_import_error_is_value_error(self):
        assert issubclass(SchematicImportError, ValueError)


class TestProjectImport:
    def test_round_trip(self, divider_scene, factory):
        scene, parts = divider_scene
        parts["R2"].flip("x")
        form = scene.to_project_form()

        copy = Scene()
        import_project(copy, json.loads(json.dumps(form)), factory)

        assert copy.to_project_form() == form
        assert [type(e) for e in copy.entities] == [type(e) for e in scene.entities]
        assert copy.assign_net_labels() == scene.assign_net_labels()

    def test_replaces_existing_content(self, scene, factory):
        scene.add(ResistorElement(0, 0))
        import_project(scene, {"entities": [{"type": "ground", "x": 8, "y": 8}]}, factory)
        assert [e.type_tag for e in scene.entities] == ["ground"]

    def test_unknown_type_skipped(self, scene, factory, caplog):
        data = {"entities": [
            {"type": "transistor", "x": 0, "y": 0},
            {"type": "resistor", "x": 0, "y": 0, "rotation": 2, "properties": {"value": "2k"}},
        ]}
        with caplog.at_level(logging.WARNING):
            created = import_project(scene, data, factory)
        assert len(created) == 1
        assert created[0].rotation == 2
        assert created[0].properties["value"] == "2k"
        assert "transistor" in caplog.text

    def test_malformed_entries_skipped(self, scene, factory):
        data = {"entities": [
            "resistor",
            {"type": "resistor", "x": "far", "y": 0},
            {"type": "capacitor", "x": 0, "y": 0, "rotation": "up"},
        ]}
        created = import_project(scene, data, factory)
        assert [e.type_tag for e in created] == ["capacitor"]
        assert created[0].rotation == 0

    def test_grid_applied(self, scene, factory):
        import_project(scene, {"grid": 10, "entities": []}, factory)
        assert scene.grid == 10

    def test_bad_grid_leaves_scene_untouched(self, scene, factory):
        r = scene.add(ResistorElement(0, 0))
        with pytest.raises(SchematicImportError):
            import_project(scene, {"grid": -1, "entities": []}, factory)
        assert scene.entities == [r]

    def test_wire_offsets_restored(self, scene, factory):
        import_project(scene, {"entities": [{"type": "wire", "x": 16, "y": 16, "dx": 0, "dy": 32}]}, factory)
        assert scene.entities[0].endpoints == ((16, 16), (16, 48))

    def test_netlist_document_rejected(self, scene, factory):
        with pytest.raises(SchematicImportError):
            import_project(scene, {"components": []}, factory)


class TestNetlistImport:
    def test_vertical_pins_give_rotation_zero(self, scene, factory):
        data = {"components": [{"kind": "r", "name": "R1", "value": "1k", "pins": [[0, 0], [0, 48]]}]}
        (r,) = import_netlist(scene, data, factory)
        assert isinstance(r, ResistorElement)
        assert r.rotation == 0
        assert (r.x, r.y) == (0, 0)

    def test_horizontal_pins(self, scene, factory):
        data = {"components": [{"kind": "res", "pins": [[0, 0], [48, 0]]}]}
        (r,) = import_netlist(scene, data, factory)
        assert r.rotation == 6
        assert r.pin_positions() == [[0, 0], [48, 0]]

    def test_round_trip_through_netlist(self, divider_scene, factory):
        scene, _ = divider_scene
        netlist = export_netlist(scene)
        copy = Scene()
        import_netlist(copy, netlist, factory)
        assert export_netlist(copy) == netlist

    def test_aliases(self, scene, factory):
        data = {"components": [
            {"kind": "CAP", "pins": [[0, 0], [0, 48]]},
            {"kind": "i", "name": "I1", "value": "1mA", "pins": [[48, 0], [48, 48]]},
            {"kind": "am", "pins": [[96, 0], [96, 48]]},
            {"kind": "vprobe", "pins": [[0, 96]]},
        ]}
        created = import_netlist(scene, data, factory)
        assert [e.type_tag for e in created] == ["capacitor", "source", "ammeter", "probe"]
        assert created[1].properties["kind"] == "I"
        assert created[1].properties["value"] == "1mA"

    def test_one_pin_parts_place_at_pin(self, scene, factory):
        data = {"components": [
            {"kind": "gnd", "pins": [[40, 40]]},
            {"kind": "ground", "pin": [80, 40]},
        ]}
        created = import_netlist(scene, data, factory)
        assert all(isinstance(e, GroundElement) for e in created)
        assert [(e.x, e.y) for e in created] == [(40, 40), (80, 40)]

    def test_label_at(self, scene, factory):
        (label,) = import_netlist(scene, {"components": [{"kind": "label", "text": "Vout", "at": [8, 16]}]}, factory)
        assert (label.x, label.y) == (8, 16)
        assert label.properties["text"] == "Vout"

    def test_wire_as_component(self, scene, factory):
        (w,) = import_netlist(scene, {"components": [{"kind": "w", "pins": [[0, 0], [0, 64]]}]}, factory)
        assert isinstance(w, WireElement)
        assert w.endpoints == ((0, 0), (0, 64))

    def test_wires_list(self, scene, factory):
        created = import_netlist(scene, {"wires": [{"a": [16, 16], "b": [80, 16]}]}, factory)
        assert created[0].endpoints == ((16, 16), (80, 16))

    def test_bad_entries_skipped(self, scene, factory, caplog):
        data = {
            "components": [
                {"kind": "transistor", "pins": [[0, 0], [0, 48]]},
                {"kind": "r", "pins": []},
                {"kind": "r", "pins": [[0, "x"], [0, 48]]},
                {"kind": "label"},
                7,
                {"kind": "v", "pins": [[0, 0], [0, 48]]},
            ],
            "wires": [{"a": [0, 0]}, "w"],
        }
        with caplog.at_level(logging.WARNING):
            created = import_netlist(scene, data, factory)
        assert [type(e) for e in created] == [SourceElement]
        assert "transistor" in caplog.text

    def test_custom_kind_by_type_tag(self, scene, factory):
        class InductorElement(ResistorElement):
            type_tag = "inductor"
            netlist_kind = "l"

        factory.register("inductor", InductorElement)
        (part,) = import_netlist(scene, {"components": [{"kind": "inductor", "pins": [[0, 0], [0, 48]]}]}, factory)
        assert isinstance(part, InductorElement)


class TestImportAny:
    def test_text_project(self, scene, factory):
        text = json.dumps({"grid": 8, "entities": [{"type": "resistor", "x": 0, "y": 0}]})
        assert import_any(scene, text, factory) == SCHEMA_PROJECT
        assert len(scene) == 1

    def test_text_netlist(self, scene, factory):
        text = json.dumps({"components": [{"kind": "gnd", "pins": [[0, 0]]}]})
        assert import_any(scene, text, factory) == SCHEMA_NETLIST

    def test_failure_keeps_scene(self, resistor_and_wire, factory):
        before = resistor_and_wire.to_project_form()
        for bad in ("[1, 2", "[]", json.dumps({"nothing": True})):
            with pytest.raises(SchematicImportError):
                import_any(resistor_and_wire, bad, factory)
        assert resistor_and_wire.to_project_form() == before

    def test_default_factory_used(self, scene):
        import_any(scene, {"entities": [{"type": "source", "x": 0, "y": 0}]})
        assert isinstance(scene.entities[0], SourceElement)
