"""Automatic file snapshot history reconciled against git commits."""

__version__ = "0.1.0"
