"""Polling synchronization and read-state engine for one-to-one private chat."""

__version__ = "0.1.0"
