"""Collector endpoint modules."""
