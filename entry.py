#!/usr/bin/env python3
"""Run SourceMind from a checkout: `python entry.py owner/name`."""
import sys

from sourcemind.main import main

if __name__ == "__main__":
    sys.exit(main())
