"""Version information for callpath."""

__version__ = "0.1.0"
