"""Keypoint detectors."""
