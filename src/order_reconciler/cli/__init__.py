"""
CLI interface for the order reconciler.
"""

from .main import main


__all__ = ["main"]
