"""Geometry, text metrics, history and logging helpers."""
