"""Shared utilities for portlease packages."""
