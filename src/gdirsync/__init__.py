"""Declarative Google Workspace directory reconciliation."""

__version__ = "0.1.0"
