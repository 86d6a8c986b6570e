"""
Filter plugins for the Huge Transfer Strategy.

Filters decide which unmatched transfers are worth reporting.
"""

from tokenwatch.strategies.huge_transfer.filters.base import BaseFilter
from tokenwatch.strategies.huge_transfer.filters.materiality import MaterialityFilter

__all__ = [
    'BaseFilter',
    'MaterialityFilter',
]
