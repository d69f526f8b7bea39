"""
CLI Commit Command

Commit a product record: salted leaves, content upload, ledger anchor,
salt persistence.

Usage:
    prodseal commit 1 --name Widget --mdate 2024-01-01 --batch B7 [--json]
    prodseal commit 1 --fields product.json
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path
from typing import Any

from core.schemas.errors import ProdsealException
from prodseal_cli.config import open_engines


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_FATAL = 3


def collect_fields(args: Namespace) -> dict[str, Any]:
    """Build the product fields from --fields or the individual flags."""
    if args.fields:
        with open(Path(args.fields)) as f:
            fields = json.load(f)
        if not isinstance(fields, dict):
            raise ValueError(f"{args.fields} must contain a JSON object")
        fields.setdefault("product_id", args.product_id)
        if str(fields["product_id"]) != str(args.product_id):
            raise ValueError(
                f"{args.fields} has product_id {fields['product_id']!r}, "
                f"expected {args.product_id}"
            )
        return fields

    missing = [flag for flag in ("name", "mdate", "batch") if getattr(args, flag) is None]
    if missing:
        raise ValueError(f"Missing required options: {', '.join('--' + m for m in missing)}")
    return {
        "product_id": args.product_id,
        "product_name": args.name,
        "product_mdate": args.mdate,
        "product_batch": args.batch,
    }


def print_error(exc: ProdsealException, output_json: bool) -> None:
    if output_json:
        print(json.dumps({"ok": False, "error": exc.to_error_model().model_dump()}, indent=2))
        return
    print(f"Error [{exc.code}]: {exc.message}", file=sys.stderr)
    for key, value in exc.details.items():
        print(f"  {key}: {value}", file=sys.stderr)


def commit_cmd(args: Namespace) -> int:
    """
    Execute the commit command.

    Returns:
        Exit code (0=committed, 1=error, 3=fatal: root may be anchored
        without usable salts)
    """
    try:
        fields = collect_fields(args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    runtime = args.cli_config.runtime
    if runtime.backend == "memory":
        logger.warning("memory backend: the committed record will not outlive this process")

    with open_engines(runtime) as engines:
        try:
            record = engines.committer.commit(
                args.product_id,
                fields,
                deadline=engines.deadline(),
            )
        except ProdsealException as e:
            print_error(e, args.json)
            return EXIT_FATAL if e.fatal else EXIT_RUNTIME_ERROR

    if args.json:
        print(json.dumps(
            {"ok": True, "record": record.model_dump(mode="json", exclude={"salts"})},
            indent=2,
        ))
    else:
        print(f"product_id: {record.record_id}")
        print(f"root: {record.root}")
        print(f"content_ref: {record.content_ref}")
        print("Data added")
    return EXIT_SUCCESS
