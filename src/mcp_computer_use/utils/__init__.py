"""Utility functions."""

from .retry import retry_op

__all__ = ["retry_op"]
