"""Balanced team generation and team completion for rated participants."""

__version__ = "0.1.0"
