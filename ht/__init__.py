"""ht - a command-line HTTP client."""

__version__ = "0.3.0"
