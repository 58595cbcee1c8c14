"""
netlist/netlist_translator.py

Converts a Scene to and from its two JSON schemas:

* project: ``{grid, entities: [{type, x, y, rotation, properties}]}``
* netlist: ``{grid, components: [{kind, name, value, pins}], wires: [{a, b}]}``

Imports are replace-only. The top-level shape is validated before the
scene is cleared, so a rejected document leaves the scene untouched.
Individual entries that cannot be rebuilt are skipped with a warning.
"""

import json
import logging
from collections.abc import Mapping
from typing import Optional

from controllers.element_factory import ElementFactory, UnknownElementError, element_factory
from models.entity import EntityError
from models.geometry import plain_number, rot_from_pins

logger = logging.getLogger(__name__)

SCHEMA_PROJECT = "project"
SCHEMA_NETLIST = "netlist"

# Netlist component kind -> factory type tag
KIND_ALIASES = {
    "w": "wire",
    "wire": "wire",
    "r": "resistor",
    "res": "resistor",
    "resistor": "resistor",
    "c": "capacitor",
    "cap": "capacitor",
    "capacitor": "capacitor",
    "gnd": "ground",
    "ground": "ground",
    "v": "source",
    "i": "source",
    "source": "source",
    "ammeter": "ammeter",
    "am": "ammeter",
    "probe": "probe",
    "vprobe": "probe",
    "label": "label",
}

ONE_PIN_TYPES = ("ground", "probe")


class SchematicImportError(ValueError):
    """Raised when a document is not valid JSON or matches neither schema."""


# --- Export ---

def export_netlist(scene) -> dict:
    """
    Walk the scene in list order and build the netlist form.

    Wires go to ``wires`` as ``{a, b}`` pairs; every other entity
    contributes ``{kind, **payload}`` to ``components``.
    """
    components = []
    wires = []
    for entity in scene.entities:
        kind, payload = entity.to_netlist_entry()
        if kind == "w":
            wires.append({"a": payload["a"], "b": payload["b"]})
        else:
            components.append({"kind": kind, **payload})
    return {"grid": plain_number(scene.grid), "components": components, "wires": wires}


def export_project(scene) -> dict:
    return scene.to_project_form()


# --- Schema detection ---

def parse_document(source):
    """Accept JSON text (str/bytes) or an already-decoded mapping."""
    if isinstance(source, (str, bytes, bytearray)):
        try:
            return json.loads(source)
        except ValueError as e:
            raise SchematicImportError(f"Malformed JSON: {e}") from e
    return source


def detect_schema(data) -> str:
    """
    Identify which schema ``data`` uses.

    Raises:
        SchematicImportError: If ``data`` is not an object or its
            collections are missing or not lists.
    """
    if not isinstance(data, Mapping):
        raise SchematicImportError("Top-level JSON value must be an object.")

    entities = data.get("entities", data.get("elements"))
    if entities is not None:
        if not isinstance(entities, list):
            raise SchematicImportError("'entities' must be a list.")
        return SCHEMA_PROJECT

    if "components" in data or "wires" in data:
        for key in ("components", "wires"):
            if key in data and not isinstance(data[key], list):
                raise SchematicImportError(f"'{key}' must be a list.")
        return SCHEMA_NETLIST

    raise SchematicImportError("Document matches neither the project nor the netlist schema.")


def _check_grid(data: Mapping) -> Optional[float]:
    if "grid" not in data:
        return None
    grid = data["grid"]
    if isinstance(grid, bool) or not isinstance(grid, (int, float)) or grid <= 0:
        raise SchematicImportError(f"'grid' must be a positive number, got {grid!r}.")
    return grid


def _point(value) -> Optional[tuple[float, float]]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None
    x, y = value
    for coord in (x, y):
        if isinstance(coord, bool) or not isinstance(coord, (int, float)):
            return None
    return (x, y)


def _pins(entry: Mapping) -> list[tuple[float, float]]:
    raw = entry.get("pins")
    if raw is None and "pin" in entry:
        raw = [entry["pin"]]
    if not isinstance(raw, list):
        return []
    points = [_point(p) for p in raw]
    if any(p is None for p in points):
        return []
    return points


def _reset(scene, data: Mapping) -> None:
    grid = _check_grid(data)
    scene.clear()
    if grid is not None:
        scene.grid = grid


# --- Project import ---

def _project_entity(entry, factory: ElementFactory):
    if not isinstance(entry, Mapping):
        raise EntityError(f"entry is not an object: {entry!r}")
    type_tag = entry.get("type")
    if not factory.has(type_tag):
        raise UnknownElementError(type_tag)

    rotation = entry.get("rotation", 0)
    if isinstance(rotation, bool) or not isinstance(rotation, int):
        if isinstance(rotation, float) and rotation.is_integer():
            rotation = int(rotation)
        else:
            logger.warning("Entity %r has invalid rotation %r, using 0", type_tag, rotation)
            rotation = 0

    properties = entry.get("properties")
    if properties is not None and not isinstance(properties, Mapping):
        logger.warning("Entity %r has invalid properties %r, using defaults", type_tag, properties)
        properties = None

    extras = {key: entry[key] for key in ("dx", "dy") if key in entry and str(type_tag).lower() == "wire"}
    if entry.get("flippedX"):
        extras["flipped_x"] = True
    if entry.get("flippedY"):
        extras["flipped_y"] = True
    return factory.create(type_tag, entry.get("x"), entry.get("y"),
                          rotation=rotation, properties=properties, **extras)


def import_project(scene, data: Mapping, factory: Optional[ElementFactory] = None) -> list:
    """
    Replace the scene's content with the entities of a project document.

    Returns:
        The entities that were rebuilt, in document order.
    """
    factory = factory or element_factory
    if detect_schema(data) != SCHEMA_PROJECT:
        raise SchematicImportError("Document is not a project.")
    entries = data.get("entities", data.get("elements"))
    _reset(scene, data)

    created = []
    for i, entry in enumerate(entries):
        try:
            entity = _project_entity(entry, factory)
        except UnknownElementError as e:
            logger.warning("Skipping entity %d: %s", i, e)
            continue
        except (EntityError, TypeError) as e:
            logger.warning("Skipping malformed entity %d: %s", i, e)
            continue
        scene.add(entity)
        created.append(entity)
    logger.info("Imported %d of %d project entities", len(created), len(entries))
    return created


# --- Netlist import ---

def _component_properties(kind: str, type_tag: str, entry: Mapping) -> dict:
    properties = {}
    for key in ("name", "value"):
        if entry.get(key) is not None:
            properties[key] = str(entry[key])
    if type_tag == "source" and kind in ("v", "i"):
        properties["kind"] = kind.upper()
    if type_tag == "label":
        text = entry.get("text", entry.get("name"))
        properties = {"text": str(text)} if text is not None else {}
    return properties


def _netlist_component(entry, factory: ElementFactory):
    if not isinstance(entry, Mapping):
        raise EntityError(f"component is not an object: {entry!r}")
    kind = str(entry.get("kind", "")).strip().lower()
    type_tag = KIND_ALIASES.get(kind)
    if type_tag is None:
        if not factory.has(kind):
            raise UnknownElementError(kind)
        type_tag = kind

    properties = _component_properties(kind, type_tag, entry)

    if type_tag == "label":
        at = _point(entry.get("at"))
        if at is None:
            raise EntityError(f"label needs an 'at' point, got {entry.get('at')!r}")
        return factory.create(type_tag, at[0], at[1], properties=properties)

    pins = _pins(entry)
    if type_tag == "wire":
        ends = [_point(entry.get("a")), _point(entry.get("b"))]
        if None in ends:
            ends = pins[:2]
        if len(ends) < 2:
            raise EntityError("wire component needs two endpoints")
        return factory.create("wire", ends[0][0], ends[0][1], end=ends[1])

    if not pins:
        raise EntityError(f"{kind!r} component has no usable pins")
    if type_tag in ONE_PIN_TYPES or len(pins) < 2:
        return factory.create(type_tag, pins[0][0], pins[0][1], properties=properties)

    rotation = rot_from_pins(pins[0], pins[1])
    return factory.create(type_tag, pins[0][0], pins[0][1], rotation=rotation, properties=properties)


def import_netlist(scene, data: Mapping, factory: Optional[ElementFactory] = None) -> list:
    """
    Replace the scene's content with the parts of a netlist document.

    Two-pin parts are anchored at their first pin and rotated to point at
    the second. Wires come from the ``wires`` list.

    Returns:
        The entities that were rebuilt (components first, then wires).
    """
    factory = factory or element_factory
    if detect_schema(data) != SCHEMA_NETLIST:
        raise SchematicImportError("Document is not a netlist.")
    components = data.get("components") or []
    wires = data.get("wires") or []
    _reset(scene, data)

    created = []
    for i, entry in enumerate(components):
        try:
            entity = _netlist_component(entry, factory)
        except UnknownElementError as e:
            logger.warning("Skipping component %d: %s", i, e)
            continue
        except (EntityError, TypeError) as e:
            logger.warning("Skipping malformed component %d: %s", i, e)
            continue
        scene.add(entity)
        created.append(entity)

    for i, entry in enumerate(wires):
        a = _point(entry.get("a")) if isinstance(entry, Mapping) else None
        b = _point(entry.get("b")) if isinstance(entry, Mapping) else None
        if a is None or b is None:
            logger.warning("Skipping malformed wire %d: %r", i, entry)
            continue
        created.append(scene.add(factory.create("wire", a[0], a[1], end=b)))

    logger.info("Imported %d netlist entities", len(created))
    return created


def import_any(scene, source, factory: Optional[ElementFactory] = None) -> str:
    """
    Import JSON text or a decoded document of either schema.

    Returns:
        The detected schema name ("project" or "netlist").

    Raises:
        SchematicImportError: If the document is malformed. The scene is
            left unchanged in that case.
    """
    data = parse_document(source)
    schema = detect_schema(data)
    if schema == SCHEMA_PROJECT:
        import_project(scene, data, factory)
    else:
        import_netlist(scene, data, factory)
    return schema
