#!/usr/bin/env python3
"""Launcher script py2app bundles into MiniMax Meter.app."""

import sys

from minimax_meter.__main__ import main

if __name__ == "__main__":
    sys.exit(main())
