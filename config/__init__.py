"""Configuration for Geyserwatch."""
