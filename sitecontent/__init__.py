"""Content storage for a content-managed site."""

__version__ = "0.1.0"
