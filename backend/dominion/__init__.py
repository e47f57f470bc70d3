"""Dominion Ops - proposal lifecycle backend for the operations dashboard."""

__version__ = "0.1.0"
