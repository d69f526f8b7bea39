"""
CLI command modules.
"""

from prodseal_cli.commands import commit, verify, reconcile

__all__ = ["commit", "verify", "reconcile"]
