"""Descriptor matching and the multi-family match handler."""
