"""
Base matcher class for the Huge Transfer Strategy.
"""
from abc import ABC, abstractmethod
from typing import AbstractSet, FrozenSet, List, Sequence, Tuple

from pydantic import BaseModel

from tokenwatch.core.events import TransactionEvent
from tokenwatch.strategies.huge_transfer.narrative import TransferEventMetadata, TransferText
from tokenwatch.strategies.huge_transfer.normalizer import TransferEvent
from tokenwatch.strategies.huge_transfer.registry import Registry


class MatchResult(BaseModel):
    """
    Outcome of one matcher pass

    ``consumed`` holds indexes into the working set the matcher was given.
    """
    consumed: FrozenSet[int] = frozenset()
    texts: Tuple[TransferText, ...] = ()
    metadata: Tuple[TransferEventMetadata, ...] = ()

    class Config:
        frozen = True


def exclude(
    working_set: Sequence[TransferEvent], consumed: AbstractSet[int]
) -> Tuple[TransferEvent, ...]:
    """Remaining working set, original order kept."""
    return tuple(t for i, t in enumerate(working_set) if i not in consumed)


def log_order(working_set: Sequence[TransferEvent]) -> List[int]:
    """Indexes of the working set in ascending log index order."""
    return sorted(range(len(working_set)), key=lambda i: working_set[i].log_index)


class BaseMatcher(ABC):
    """
    Base class for all pattern matchers.

    A matcher never mutates the working set; it returns the indexes it
    consumed and the caller builds the next working set with ``exclude``.
    """

    def __init__(self, registry: Registry):
        """
        Initialize the matcher with the shared registry.

        Args:
            registry: Immutable token / template / venue tables
        """
        self.registry = registry

    @abstractmethod
    def match(
        self, working_set: Sequence[TransferEvent], tx: TransactionEvent
    ) -> MatchResult:
        """
        Find patterns in the working set.

        Args:
            working_set: Transfers not yet claimed by an earlier stage
            tx: Transaction the transfers belong to

        Returns:
            MatchResult: Consumed indexes with their narratives and metadata
        """
        pass
