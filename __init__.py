"""Rawfeed: a small feed of fresh, low-view YouTube footage."""

__version__ = "1.0.0"
