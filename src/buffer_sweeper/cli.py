"""CLI entry point for buffer-sweeper.

Usage:
    buffer-sweeper validate CONFIG   # Load a config file and print the rule chain
    buffer-sweeper show-defaults     # Print the default configuration as YAML
    buffer-sweeper --version         # Show version
"""

import argparse
import logging
import sys

import yaml

from buffer_sweeper import __version__
from buffer_sweeper.config import SweeperConfig, load_config
from buffer_sweeper.rules.types import ConfigurationError


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="buffer-sweeper",
        description="buffer-sweeper - rule-driven reclamation of idle resources",
    )
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command")

    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a configuration file and print the resolved rule chain",
    )
    validate_parser.add_argument("config", help="Path to the YAML configuration file")
    validate_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show detailed output",
    )

    subparsers.add_parser(
        "show-defaults",
        help="Print the default configuration as YAML",
    )

    args = parser.parse_args(argv)

    if args.command == "validate":
        return run_validate(args.config, verbose=args.verbose)
    elif args.command == "show-defaults":
        return show_defaults()
    else:
        parser.print_help()
        return 0


def run_validate(path: str, verbose: bool = False) -> int:
    """Load a configuration file and print what it resolves to."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        config = load_config(path)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"inactivity threshold: {config.inactivity_threshold_seconds}s")
    print(f"sweep interval: {config.sweep_interval_seconds}s")
    print("rules:")
    for index, rule in enumerate(config.rules, start=1):
        print(f"  {index}. {rule.describe()}")
    return 0


def show_defaults() -> int:
    """Print the default configuration."""
    print(yaml.safe_dump({"sweeper": SweeperConfig().to_dict()}, sort_keys=False), end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())
