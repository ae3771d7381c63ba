"""Structured logging with call-site and trace context enrichment."""

__version__ = "0.1.0"
