"""
Command-line interface for schematic batch operations.

Convert, validate, and export schematics without the editor.

Usage::

    python -m cli netlist schematic.json
    python -m cli netlist schematic.json --output netlist.json
    python -m cli convert netlist.json --to project --output schematic.json
    python -m cli validate schematic.json
    python -m cli --verbose validate schematic.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from controllers.element_factory import element_factory
from models.scene import Scene
from netlist.netlist_translator import SchematicImportError, export_netlist, import_any

logger = logging.getLogger(__name__)


def try_load_scene(filepath: str) -> tuple[Scene | None, str, str]:
    """Load a project or netlist JSON file without exiting.

    Args:
        filepath: Path to the JSON file.

    Returns:
        (scene, schema, "") on success, or (None, "", error_message) on failure.
    """
    path = Path(filepath)
    if not path.exists():
        return None, "", f"file not found: {filepath}"

    try:
        text = path.read_text()
    except OSError as e:
        return None, "", f"cannot read {filepath}: {e}"

    scene = Scene()
    try:
        schema = import_any(scene, text, element_factory)
    except SchematicImportError as e:
        return None, "", f"invalid schematic file: {e}"

    return scene, schema, ""


def _write_output(text: str, output: str | None, label: str) -> None:
    if output:
        Path(output).write_text(text)
        print(f"{label} written to {output}", file=sys.stderr)
    else:
        print(text)


def cmd_netlist(args: argparse.Namespace) -> int:
    """Export the netlist form of a schematic."""
    scene, _, error = try_load_scene(args.file)
    if scene is None:
        print(f"Error: {error}", file=sys.stderr)
        return 1

    _write_output(json.dumps(export_netlist(scene), indent=2), args.output, "Netlist")
    return 0


def cmd_convert(args: argparse.Namespace) -> int:
    """Convert between the project and netlist schemas."""
    scene, schema, error = try_load_scene(args.file)
    if scene is None:
        print(f"Error: {error}", file=sys.stderr)
        return 1

    if schema == args.to:
        logger.info("%s is already in %s form; re-serializing", args.file, args.to)

    data = scene.to_project_form() if args.to == "project" else export_netlist(scene)
    _write_output(json.dumps(data, indent=2), args.output, args.to.capitalize())
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Load a schematic and report property problems."""
    scene, schema, error = try_load_scene(args.file)
    if scene is None:
        print(f"Schematic has errors: {args.file}", file=sys.stderr)
        print(f"  - {error}", file=sys.stderr)
        return 1

    problems = []
    for entity in scene:
        for problem in entity.validate_properties():
            problems.append(f"{entity.describe()}: {problem}")

    nets = set(scene.assign_net_labels().values())
    print(f"Schematic is valid: {args.file} ({schema}, {len(scene)} entities, {len(nets)} nets)")
    for problem in problems:
        print(f"  Warning: {problem}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="schemcap",
        description="Schematic batch operations: export netlists, convert, and validate schematics.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # netlist
    net_parser = subparsers.add_parser("netlist", help="Export the netlist JSON of a schematic")
    net_parser.add_argument("file", help="Path to a project or netlist JSON file")
    net_parser.add_argument("--output", "-o", help="Write output to file instead of stdout")

    # convert
    conv_parser = subparsers.add_parser("convert", help="Convert between project and netlist JSON")
    conv_parser.add_argument("file", help="Path to a project or netlist JSON file")
    conv_parser.add_argument("--to", choices=["project", "netlist"], required=True, help="Target schema")
    conv_parser.add_argument("--output", "-o", help="Write output to file instead of stdout")

    # validate
    val_parser = subparsers.add_parser("validate", help="Check a schematic file for errors")
    val_parser.add_argument("file", help="Path to a project or netlist JSON file")

    return parser


def main(argv=None) -> int:
    """CLI entry point. Returns exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    handlers = {
        "netlist": cmd_netlist,
        "convert": cmd_convert,
        "validate": cmd_validate,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
