# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the InfraSynth command-line interface."""

import argparse
import logging
import sys
from pathlib import Path

from infrasynth.errors import SynthesisError
from infrasynth.registry import architectures, components, load_builtins, resource_kinds
from infrasynth.synthesis.document import write_document
from infrasynth.template import synthesize
from infrasynth.workspace.config import TemplateConfigError, find_template, load_template_config

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the InfraSynth CLI."""
    parser = argparse.ArgumentParser(
        prog="infrasynth",
        description="InfraSynth: synthesize infrastructure definitions from typed architectures",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # synth subcommand
    synth_parser = subparsers.add_parser(
        "synth",
        help="Synthesize a template into a JSON document",
        description="Build every architecture of a template and write the synthesized document.",
    )
    synth_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Template file, or a directory containing infrasynth.yaml (default: current directory)",
    )
    synth_parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="Output file (default: the template's 'output' field)",
    )
    synth_parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log debug messages to stderr",
    )

    # list subcommand
    subparsers.add_parser(
        "list",
        help="List registered resource kinds, components, and architectures",
        description="Print every bundled resource kind, component, and architecture.",
    )

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    sys.exit(_dispatch(args))


# ################
# Implementation
# ################


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    if args.command == "synth":
        return _cmd_synth(args)
    if args.command == "list":
        return _cmd_list(args)
    return 0


def _cmd_synth(args: argparse.Namespace) -> int:
    """Handle the synth subcommand."""
    template_file = find_template(Path(args.path).resolve())
    try:
        config = load_template_config(template_file)
    except TemplateConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    try:
        document = synthesize(config)
    except SynthesisError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    output = Path(args.output) if args.output else config.output_path
    try:
        write_document(document, output)
    except OSError as exc:
        print(f"Error: cannot write '{output}': {exc}", file=sys.stderr)
        return 1

    print(f"Synthesized {document.resource_count()} resource(s) into '{output}'.")
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    """Handle the list subcommand."""
    load_builtins()
    for title, registry in (
        ("Resource kinds", resource_kinds),
        ("Components", components),
        ("Architectures", architectures),
    ):
        print(f"{title}:")
        for name in sorted(registry.names()):
            print(f"  {name}")
    return 0
