"""CLI services."""

from .process_launcher import LaunchedProcess, ProcessLauncher

__all__ = ["LaunchedProcess", "ProcessLauncher"]
