"""
Module execution entry point.

Allows running with: python -m prodseal_cli
"""

import sys
from prodseal_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
