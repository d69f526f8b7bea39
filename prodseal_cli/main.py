"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m prodseal_cli commit <id> --name N --mdate D --batch B [--json]
    python -m prodseal_cli verify <id> [--json] [--debug]
    python -m prodseal_cli reconcile [<id> ...] [--range START END] [--all] [--json]
    python -m prodseal_cli config --init

Environment Variables:
    PRODSEAL_BACKEND            Collaborator backend: memory, local, live
    PRODSEAL_DATA_DIR           Base directory for local backend files
    PRODSEAL_LOG_LEVEL          Log level (default: INFO)
    RPC_URL, CONTRACT_ADDRESS, PRIVATE_KEY      Ledger contract (live)
    PINATA_API_KEY, PINATA_API_SECRET           Content store (live)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from prodseal_cli.commands import commit, reconcile, verify
from prodseal_cli.config import get_default_config_template, load_config


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_TAMPERED = 2
EXIT_FATAL = 3


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="prodseal",
        description="Prodseal CLI - Commit product records and verify them against anchored roots.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file, JSON or YAML (default: ./prodseal.json)",
    )
    parser.add_argument(
        "--backend",
        type=str,
        choices=["memory", "local", "live"],
        default=None,
        help="Collaborator backend (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- commit command ---
    commit_parser = subparsers.add_parser(
        "commit",
        help="Commit a product record",
        description="Salt and hash the product fields, store them, and anchor the root.",
    )
    commit_parser.add_argument("product_id", type=int, help="Product identifier")
    commit_parser.add_argument("--name", type=str, default=None, help="Product name")
    commit_parser.add_argument("--mdate", type=str, default=None, help="Manufacturing date")
    commit_parser.add_argument("--batch", type=str, default=None, help="Batch code")
    commit_parser.add_argument(
        "--fields",
        type=str,
        default=None,
        help="JSON file with all product fields (instead of --name/--mdate/--batch)",
    )
    commit_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON",
    )
    commit_parser.set_defaults(func=commit.commit_cmd)

    # --- verify command ---
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify a committed product",
        description="Recompute the root from stored content and salts and compare with the ledger.",
    )
    verify_parser.add_argument("product_id", type=int, help="Product identifier")
    verify_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON report",
    )
    verify_parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Include detailed checks",
    )
    verify_parser.set_defaults(func=verify.verify_cmd)

    # --- reconcile command ---
    reconcile_parser = subparsers.add_parser(
        "reconcile",
        help="Find anchored records whose salts are missing",
        description="Compare ledger entries against the salt store.",
    )
    reconcile_parser.add_argument("product_ids", type=int, nargs="*", help="Product identifiers")
    reconcile_parser.add_argument(
        "--range",
        type=int,
        nargs=2,
        metavar=("START", "END"),
        default=None,
        help="Check an inclusive id range",
    )
    reconcile_parser.add_argument(
        "--all",
        action="store_true",
        default=False,
        help="Check every id the ledger knows (local/memory backends)",
    )
    reconcile_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="JSON output",
    )
    reconcile_parser.set_defaults(func=reconcile.reconcile_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
        description="Create or show configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show current configuration (secrets masked)",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default="prodseal.json",
        help="Path for config file (default: prodseal.json)",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print("Secrets (PRIVATE_KEY, PINATA_API_SECRET) belong in the environment or .env.")
        return EXIT_SUCCESS

    if args.show:
        config = args.cli_config
        config_dict = {
            "log_level": config.log_level,
            "log_file": config.log_file,
            **config.runtime.to_dict(),
        }
        print(json.dumps(config_dict, indent=2))
        return EXIT_SUCCESS

    print("Usage: prodseal config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=tampered, 3=fatal inconsistency)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    try:
        config = load_config(args.config)
        if args.backend:
            config.runtime.backend = args.backend
    except (OSError, ValueError, TypeError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    log_level = args.log_level or config.log_level
    setup_logging(level=log_level, log_file=config.log_file)

    # Attach config to args for commands to use
    args.cli_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if getattr(args, "debug", False):
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
