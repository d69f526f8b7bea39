"""
CLI Reconcile Command

List records that are anchored on the ledger but have no salts, i.e. the
leftovers of commits that failed with SaltPersistFailure.

Usage:
    prodseal reconcile 1 2 3
    prodseal reconcile --range 1 500
    prodseal reconcile --all        (ledgers that can enumerate ids)
"""

from __future__ import annotations

import json
import sys
from argparse import Namespace
from dataclasses import asdict

from core.commitment.reconcile import find_unverifiable
from core.schemas.errors import ProdsealException
from prodseal_cli.commands.commit import print_error
from prodseal_cli.config import open_engines


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_FATAL = 3


def reconcile_cmd(args: Namespace) -> int:
    """
    Execute the reconcile command.

    Returns:
        Exit code (0=all anchored records verifiable, 1=error, 3=found unverifiable records)
    """
    with open_engines(args.cli_config.runtime) as engines:
        ledger = engines.collaborators.ledger
        if args.all:
            if not hasattr(ledger, "record_ids"):
                print("Error: this ledger cannot enumerate records; pass ids or --range", file=sys.stderr)
                return EXIT_RUNTIME_ERROR
            record_ids = ledger.record_ids()
        elif args.range:
            start, end = args.range
            record_ids = list(range(start, end + 1))
        else:
            record_ids = args.product_ids

        if not record_ids:
            print("Error: no product ids given", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        try:
            unverifiable = find_unverifiable(
                record_ids,
                ledger,
                engines.collaborators.salt_store,
            )
        except ProdsealException as e:
            print_error(e, args.json)
            return EXIT_RUNTIME_ERROR

    if args.json:
        print(json.dumps({
            "checked": len(record_ids),
            "unverifiable": [asdict(r) for r in unverifiable],
        }, indent=2))
    else:
        print(f"checked: {len(record_ids)}")
        print(f"unverifiable: {len(unverifiable)}")
        for record in unverifiable:
            print(f"  ✗ {record.record_id} root={record.root} content_ref={record.content_ref}")

    return EXIT_FATAL if unverifiable else EXIT_SUCCESS
