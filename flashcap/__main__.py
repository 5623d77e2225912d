#!/usr/bin/env python3
"""
Run FlashCap with ``python -m flashcap``.

    python3 -m flashcap --screenshot              # select and capture
    python3 -m flashcap --timer --json            # delayed capture, JSON result
    python3 -m flashcap --write copy.png < data   # base64 data into the save directory
    python3 -m flashcap --info                    # resolved settings

Argument handling lives in flashcap.cli.
"""

import sys

from flashcap.cli import main

if __name__ == "__main__":
    sys.exit(main())
