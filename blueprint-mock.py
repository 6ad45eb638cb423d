#!/usr/bin/env python3
"""
blueprintmock - mock HTTP server for API Blueprints

This is a convenience wrapper that calls the packaged implementation.
The actual implementation is in src/blueprintmock/cli.py

Usage:
    python blueprint-mock.py -d ./api -p 3000

For more information, see README.md
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / 'src'))

from blueprintmock.cli import main

if __name__ == '__main__':
    main()
