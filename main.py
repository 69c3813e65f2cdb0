#!/usr/bin/env python3
"""
Main Entry Point

Belief meta-analysis pipeline: effect-size harmonization and random-effects synthesis.
"""

import sys

from beliefmeta.main import main

if __name__ == "__main__":
    sys.exit(main())
