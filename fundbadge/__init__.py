"""Funding progress badges backed by GitHub Sponsors."""

__version__ = "1.0.0"
