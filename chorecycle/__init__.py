"""Recurring-task lifecycle engine for shared household chore lists."""

__version__ = "0.1.0"
