"""Charon: dataset and narrative resolution across Nextstrain sources."""

__version__ = "0.1.0"
