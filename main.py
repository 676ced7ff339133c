#!/usr/bin/env python3
"""Entry point for the network receipt printer client."""

import sys

from ticketprint.app.config import load_env_from_files

# Environment from .env-like files must be loaded before settings are read
load_env_from_files(override=False)

from ticketprint.app.main import run

if __name__ == "__main__":
    sys.exit(run())
