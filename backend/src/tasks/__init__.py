"""Maintenance tasks runnable as scripts (python -m tasks.<name>)."""
