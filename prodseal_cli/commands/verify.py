"""
CLI Verify Command

Verify a committed product against the root anchored on the ledger.

Usage:
    prodseal verify 1 [--json] [--debug]
"""

from __future__ import annotations

import json
import logging
from argparse import Namespace

from core.schemas.errors import ProdsealException
from core.schemas.verification import VerificationReport
from prodseal_cli.commands.commit import print_error
from prodseal_cli.config import open_engines


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_TAMPERED = 2
EXIT_FATAL = 3


def print_report_human(report: VerificationReport, debug: bool = False) -> None:
    """Print report in human-readable format."""
    print("Authentic Product" if report.is_authentic else "Tampered Product")
    print(f"product_id: {report.record_id}")
    print(f"anchored_root: {report.anchored_root}")
    print(f"recomputed_root: {report.recomputed_root or '(not computed)'}")
    print(f"content_ref: {report.content_ref}")
    if report.reason:
        print(f"reason: {report.reason}")

    if debug:
        passed = sum(1 for c in report.checks if c.ok)
        print(f"\nchecks: {passed} passed, {len(report.checks) - passed} failed")
        for check in report.checks:
            status = "✓" if check.ok else "✗"
            print(f"  {status} {check.check_id}: {check.message}")


def verify_cmd(args: Namespace) -> int:
    """
    Execute the verify command.

    Returns:
        Exit code (0=authentic, 1=error, 2=tampered, 3=fatal inconsistency)
    """
    with open_engines(args.cli_config.runtime) as engines:
        try:
            report = engines.verifier.verify(args.product_id, deadline=engines.deadline())
        except ProdsealException as e:
            print_error(e, args.json)
            return EXIT_FATAL if e.fatal else EXIT_RUNTIME_ERROR

    if args.json:
        data = report.model_dump(mode="json")
        if not args.debug:
            data.pop("checks")
        print(json.dumps(data, indent=2))
    else:
        print_report_human(report, debug=args.debug)

    if report.is_authentic:
        logger.info("Verification passed")
        return EXIT_SUCCESS
    logger.warning("Verification failed: product tampered")
    return EXIT_TAMPERED
