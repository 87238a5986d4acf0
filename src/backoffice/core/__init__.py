"""Core infrastructure shared by all feature modules."""
