#!/usr/bin/env python
"""
taskloop - Startup Script

Runs every pending task in taskloop.json from the console, printing the
progress transcript. Accepts the same options as ``taskloop run``.

Usage:
    python start_agent.py
    python start_agent.py --provider kimi --max-iterations 5
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from taskloop.cli import main


if __name__ == "__main__":
    sys.exit(main(["run"] + sys.argv[1:]))
