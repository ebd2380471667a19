"""Rulebook Extractor - turn tabletop RPG rulebooks into structured records."""

__version__ = "0.1.0"
