"""Pawlog - puppy care event log with session reconstruction and potty predictions."""

__version__ = "0.1.0"
