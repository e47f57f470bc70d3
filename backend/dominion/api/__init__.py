"""Dominion Ops API package."""
