"""
Netlist package - conversion between a Scene and its JSON schemas.
"""

from .netlist_translator import (
    SCHEMA_NETLIST,
    SCHEMA_PROJECT,
    SchematicImportError,
    detect_schema,
    export_netlist,
    export_project,
    import_any,
    import_netlist,
    import_project,
    parse_document,
)

__all__ = [
    "SCHEMA_NETLIST",
    "SCHEMA_PROJECT",
    "SchematicImportError",
    "detect_schema",
    "export_netlist",
    "export_project",
    "import_any",
    "import_netlist",
    "import_project",
    "parse_document",
]
