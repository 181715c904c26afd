"""Removes the unregistered taint from nodes that have proven stable readiness."""

__version__ = "0.1.0"
