"""Trace-driven simulator of a BTB with two-bit branch predictors."""

__version__ = "0.1.0"

__all__ = ["__version__"]