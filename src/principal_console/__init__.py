"""Hierarchical principal tree controller for security administration consoles."""

__version__ = "0.1.0"
