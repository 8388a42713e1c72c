"""
Git history access
"""
from .history import GitHistoryProvider

__all__ = ["GitHistoryProvider"]
