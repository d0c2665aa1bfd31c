"""Ballot API: election administration with atomic ballot submission."""

__version__ = "0.1.0"
