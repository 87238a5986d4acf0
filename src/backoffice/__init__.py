"""School back-office: authorization and membership core."""

__version__ = "0.1.0"
