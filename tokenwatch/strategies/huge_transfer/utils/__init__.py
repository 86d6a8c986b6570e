"""
Utility helpers for the Huge Transfer Strategy.
"""

from tokenwatch.strategies.huge_transfer.utils.address_utils import AddressUtils
from tokenwatch.strategies.huge_transfer.utils.token_utils import TokenUtils

__all__ = ['AddressUtils', 'TokenUtils']
