"""Logging, I/O and visualization helpers."""
