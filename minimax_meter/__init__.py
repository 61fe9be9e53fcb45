"""MiniMax Meter — Mac menu bar app showing MiniMax coding plan usage."""

__version__ = "1.0.0"
