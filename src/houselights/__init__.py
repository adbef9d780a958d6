"""Live guest counts for every screening at one cinema."""

__version__ = "0.1.0"
