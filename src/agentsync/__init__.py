"""Declarative agent and action reconciliation."""

__version__ = "0.1.0"
