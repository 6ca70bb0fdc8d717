"""
Run the Curbside command line.

Usage:
    python -m curbside run --persona savvy
"""

import sys

from .interface.cli import main

sys.exit(main())
