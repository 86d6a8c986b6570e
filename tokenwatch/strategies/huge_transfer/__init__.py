"""
Huge Transfer Strategy Package

This package contains the Huge Transfer Strategy, which correlates the
transfers of monitored tokens inside each transaction into one narrative
and watches vault balances for large drifts between sampling windows.

Correlation is implemented as a chain of matchers followed by a
materiality filter; each stage only sees what earlier stages left over.
"""

from tokenwatch.strategies.huge_transfer.core.strategy import HugeTransferStrategy

__all__ = ['HugeTransferStrategy']
