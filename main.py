#!/usr/bin/env python3
"""
Tableau API Client - Entry Point
A thin client for the Tableau Server REST API.
"""

import sys

# Add package directory to path for proper imports
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent))

from tableau_client.cli import main

if __name__ == '__main__':
    sys.exit(main())
