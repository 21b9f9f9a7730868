"""Core functionality for dory."""
