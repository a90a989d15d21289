#!/usr/bin/env python
"""
FormPilot CLI entry point.

Usage:
    python cli.py run applicant.yaml          # Run a test case file
    python cli.py run-stored <test-case-id>   # Run a test case stored in Redis
    python cli.py keys "Ctrl+S" --mac         # Show shortcut normalization
    python cli.py resolve first-name          # Show selector resolution
"""

from formpilot.cli.app import main

if __name__ == "__main__":
    main()
