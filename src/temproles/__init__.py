"""Temporary reaction roles for Discord."""

__version__ = "0.1.0"
