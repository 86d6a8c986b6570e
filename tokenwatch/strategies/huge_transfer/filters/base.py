"""
Base filter class for the Huge Transfer Strategy.
"""
from abc import ABC, abstractmethod

from tokenwatch.strategies.huge_transfer.normalizer import TransferEvent
from tokenwatch.strategies.huge_transfer.registry import Registry


class BaseFilter(ABC):
    """
    Base class for all transfer filters.

    Filters are responsible for determining whether a transfer left over
    by the matchers should be dropped.
    """

    def __init__(self, registry: Registry):
        """
        Initialize the filter with the shared registry.

        Args:
            registry: Immutable token tables
        """
        self.registry = registry

    @abstractmethod
    def should_filter(self, transfer: TransferEvent) -> bool:
        """
        Determine if a transfer should be filtered (ignored).

        Args:
            transfer: The transfer to check

        Returns:
            bool: True if the transfer should be dropped, False otherwise
        """
        pass
