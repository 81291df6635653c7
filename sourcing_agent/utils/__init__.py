"""Utility functions, constants and prompts."""
