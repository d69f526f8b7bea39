"""
Prodseal CLI

Command-line interface for committing and verifying product records.

Usage:
    python -m prodseal_cli commit 1 --name Widget --mdate 2024-01-01 --batch B7
    python -m prodseal_cli verify 1
    python -m prodseal_cli reconcile --all
    python -m prodseal_cli config --init
"""

__version__ = "0.1.0"
