"""Command line interface for portlease."""

__version__ = "0.1.0"
