"""Permission catalog module."""
