"""
Command line interface: validate JSON input for a record type and print the
payload for the update connector.

Usage:
    update-connector KnSubject subject.json --action insert --format xml --pretty
    cat lines.json | update-connector FbSales - --action insert
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from afas_schema.afas_registry import create_afas_registry

from .behavior import ChangeBehavior, OutputOptions, ValidationBehavior
from .connector_env import ConnectorEnv
from .connector_logging import PACKAGE_LOGGER, create_logger
from .errors import DefinitionError, InputError, ValidationError

logger = logging.getLogger(__name__)

# Packages whose log messages the command shows.
LOGGED_PACKAGES = (PACKAGE_LOGGER, "afas_schema")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="update-connector",
        description="Validate record input and print the update connector payload"
    )
    parser.add_argument(
        "type",
        help="Record type, e.g. KnSubject"
    )
    parser.add_argument(
        "input",
        help="Path to a JSON file with the element(s), or '-' for stdin"
    )
    parser.add_argument(
        "--action",
        default="",
        help="Action for all elements: insert, update or delete"
    )
    parser.add_argument(
        "--format",
        choices=["json", "xml"],
        help="Output format (default: $UPDATE_CONNECTOR_FORMAT or json)"
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        default=None,
        help="Pretty-print the output"
    )
    parser.add_argument(
        "--indent",
        type=int,
        help="Indent size for pretty output"
    )
    parser.add_argument(
        "--overrides",
        type=str,
        help="Path to a JSON file with definition overrides (default: $UPDATE_CONNECTOR_OVERRIDES)"
    )
    parser.add_argument(
        "--no-defaults",
        action="store_true",
        help="Do not fill in default values"
    )
    parser.add_argument(
        "--no-required",
        action="store_true",
        help="Do not check required fields (fields required 'always' are still checked)"
    )
    parser.add_argument(
        "--env-file",
        type=str,
        help="Path to a .env file"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    return parser


def _read_input(path: str):
    if path == "-":
        return json.load(sys.stdin)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for command-line interface. Returns the exit code."""
    args = build_parser().parse_args(argv)

    try:
        ConnectorEnv.load_env(args.env_file)
        output_format = args.format or ConnectorEnv.get_format()
        env_options = ConnectorEnv.get_output_options()
        options = OutputOptions(
            pretty=env_options.pretty if args.pretty is None else args.pretty,
            indent_size=env_options.indent_size if args.indent is None else args.indent,
        )
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    # After loading the env file, which can set LOGGER_LEVEL.
    for package in LOGGED_PACKAGES:
        create_logger(package, logging.DEBUG if args.verbose else None)

    try:
        data = _read_input(args.input)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Cannot read input {args.input}: {e}", file=sys.stderr)
        return 1

    change = ChangeBehavior(
        allow_defaults_on_insert=not args.no_defaults,
        allow_defaults_on_update=False,
    )
    validation = ValidationBehavior(required=not args.no_required)

    try:
        registry = create_afas_registry()
        overrides_file = args.overrides or ConnectorEnv.get_overrides_file()
        if overrides_file:
            registry.load_overrides(overrides_file)
        registry.build()
        container = registry.create(args.type, data, args.action)
        print(container.output(output_format, options, change, validation))
    except (InputError, ValidationError) as e:
        logger.debug(f"{args.type} input rejected with {len(e.messages)} error(s)")
        for message in e.messages:
            print(message, file=sys.stderr)
        return 1
    except (DefinitionError, OSError) as e:
        print(f"Definition error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
