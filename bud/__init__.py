"""Bud application services."""
