"""Yellowstone proto definitions."""
