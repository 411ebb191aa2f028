#!/usr/bin/env python3
"""
jobhub CLI entry point.

Allows running: python -m jobhub <command>
"""

from jobhub.cli import main

if __name__ == "__main__":
    main()
