# SPDX-License-Identifier: MIT
"""Command-line interface for pbxphase."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pbxphase.core.errors import PhaseError
from pbxphase.phase.environment import (
    BuildEnvironment,
    PhaseEnvironment,
    TargetEnvironment,
)
from pbxphase.phase.sources import SourcesResolver
from pbxphase.project.loader import load_project
from pbxphase.util.hmap import HeaderMap

logger = logging.getLogger("pbxphase")


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
        fmt = "%(levelname)s: %(name)s: %(message)s"
    elif verbose:
        level = logging.INFO
        fmt = "%(levelname)s: %(message)s"
    else:
        level = logging.WARNING
        fmt = "%(levelname)s: %(message)s"

    logging.basicConfig(level=level, format=fmt)


def _resolver_to_dict(target: str, resolver: SourcesResolver) -> dict[str, Any]:
    return {
        "target": target,
        "invocations": [inv.to_dict() for inv in resolver.invocations],
        "variants": {
            f"{variant}/{arch}": [inv.to_dict() for inv in invocations]
            for (variant, arch), invocations in resolver.variant_architecture_invocations.items()
        },
        "linker_driver": resolver.linker_driver,
        "linker_arguments": sorted(resolver.linker_arguments),
    }


def _print_resolver(target: str, resolver: SourcesResolver) -> None:
    print(f"Target {target}:")
    for invocation in resolver.invocations:
        print(f"  {invocation.command_line() or invocation.description}")
    if resolver.linker_driver:
        print(f"  link driver: {resolver.linker_driver}")
    if resolver.linker_arguments:
        print(f"  link arguments: {' '.join(sorted(resolver.linker_arguments))}")


def cmd_resolve(args: argparse.Namespace) -> int:
    """Resolve the sources phases of a project's targets and print them."""
    setup_logging(args.verbose, args.debug)

    try:
        project = load_project(args.project)
        if args.target:
            target = project.target(args.target)
            if target is None:
                logger.error("No target named '%s' in %s", args.target, project.name)
                return 1
            targets = [target]
        else:
            targets = project.targets

        build_environment = BuildEnvironment.default()
        results: list[dict[str, Any]] = []
        for target in targets:
            target_environment = TargetEnvironment.create(
                build_environment, project, target, args.configuration
            )
            phase_environment = PhaseEnvironment(build_environment, target_environment)
            for phase in target.sources_phases:
                resolver = SourcesResolver.create(phase_environment, phase)
                if args.json:
                    results.append(_resolver_to_dict(target.name, resolver))
                else:
                    _print_resolver(target.name, resolver)
    except PhaseError as e:
        logger.error("%s", e.message)
        return 1

    if args.json:
        print(json.dumps(results, indent=2))
    return 0


def cmd_dump_headermap(args: argparse.Namespace) -> int:
    """Print the entries of a headermap file."""
    setup_logging(args.verbose, args.debug)

    path = Path(args.file)
    try:
        hmap = HeaderMap.decode(path.read_bytes())
    except OSError as e:
        logger.error("Cannot read %s: %s", path, e)
        return 1
    except ValueError as e:
        logger.error("Invalid headermap %s: %s", path, e)
        return 1

    for entry in hmap.entries:
        print(f"{entry.key} -> {entry.path}")
    return 0


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add arguments common to all commands."""
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the pbxphase CLI."""
    parser = argparse.ArgumentParser(
        prog="pbxphase",
        description="Resolve the sources phases of Xcode projects into tool invocations.",
        epilog="Run 'pbxphase <command> --help' for command-specific help.",
    )
    from pbxphase import __version__

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # pbxphase resolve
    resolve_parser = subparsers.add_parser(
        "resolve", help="Print the invocations building a project's sources"
    )
    add_common_args(resolve_parser)
    resolve_parser.add_argument("project", help="Path to a .xcodeproj bundle")
    resolve_parser.add_argument("-t", "--target", help="Only resolve this target")
    resolve_parser.add_argument(
        "-c", "--configuration", help="Build configuration (default: project default)"
    )
    resolve_parser.add_argument(
        "--json", action="store_true", help="Print the plan as JSON"
    )
    resolve_parser.set_defaults(func=cmd_resolve)

    # pbxphase dump-headermap
    hmap_parser = subparsers.add_parser(
        "dump-headermap", help="Print the entries of a headermap file"
    )
    add_common_args(hmap_parser)
    hmap_parser.add_argument("file", help="Path to a .hmap file")
    hmap_parser.set_defaults(func=cmd_dump_headermap)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
