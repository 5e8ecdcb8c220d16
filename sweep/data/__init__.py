# Sweep Data Module
# =================
"""
Raw dictionary loading.

This module provides:
- CsvRowLoader: Reads dictionary-*.csv files as string rows, with caching
- LoadResult: Outcome of loading one file
"""

from .csv_loader import CsvRowLoader, LoadResult

__all__ = [
    'CsvRowLoader',
    'LoadResult',
]
