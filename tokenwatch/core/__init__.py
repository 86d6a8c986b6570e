from .base import Collector, Executor, Strategy
from .events import BlockEvent, Event, TransactionEvent
from .findings import Finding, FindingSeverity, FindingType

__all__ = [
    "Collector",
    "Strategy",
    "Executor",
    "Event",
    "BlockEvent",
    "TransactionEvent",
    "Finding",
    "FindingSeverity",
    "FindingType",
]
