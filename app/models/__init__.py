"""
Models package

- titles.py: canonical catalog records
- cachestatus.py: per-region refresh state
"""

from .titles import Titles
from .cachestatus import CacheStatus

__all__ = [
    "Titles",
    "CacheStatus",
]
