from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from .web3.base import TRANSFER_EVENT_TOPIC, decode_transfer_log, to_hex_str


class Event(BaseModel):
    """Base class for all events"""
    type: str = Field(...)  # Required field

    class Config:
        """Pydantic configuration"""
        frozen = True  # Make Event instances immutable
        arbitrary_types_allowed = True  # Allow Web3 types


class BlockEvent(Event):
    """
    A new block delivered by a collector

    Only the height is required by the strategies; hash and timestamp
    are carried for logging.
    """
    type: str = "block"
    block_number: int
    block_hash: Optional[str] = None
    timestamp: Optional[datetime] = None

    def __str__(self) -> str:
        return f"Block Event: #{self.block_number} ({self.block_hash})"


class TransactionEvent(Event):
    """
    Event class for blockchain transactions

    Carries the raw receipt logs of the transaction and exposes a query
    returning the decoded Transfer logs among them.
    """
    type: str = "transaction"
    hash: str
    block_number: int
    from_address: Optional[str] = None  # Transaction originator
    to_address: Optional[str] = None
    logs: List[Dict[str, Any]] = Field(default_factory=list)
    timestamp: Optional[datetime] = None

    def filter_log(
        self,
        event_topic: str = TRANSFER_EVENT_TOPIC,
        addresses: Optional[Iterable[str]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Decode the Transfer logs of this transaction

        Args:
            event_topic: Topic0 of the wanted event, only Transfer is decodable
            addresses: Emitting contract addresses to keep, all if omitted

        Returns:
            List[Dict[str, Any]]: Decoded logs in receipt order

        Raises:
            ValueError: If event_topic is not the Transfer topic
            MalformedTransferError: If a matching log cannot be decoded
        """
        if event_topic.lower() != TRANSFER_EVENT_TOPIC:
            raise ValueError(f"Unsupported event topic: {event_topic}")

        wanted = {a.lower() for a in addresses} if addresses is not None else None
        decoded = []
        for log in self.logs:
            topics = log.get("topics") or []
            if not topics or to_hex_str(topics[0]) != TRANSFER_EVENT_TOPIC:
                continue
            if wanted is not None and str(log.get("address", "")).lower() not in wanted:
                continue
            decoded.append(decode_transfer_log({"transactionHash": self.hash, **log}))
        return decoded

    def __str__(self) -> str:
        return (
            f"Transaction Event:\n"
            f"  Hash: {self.hash}\n"
            f"  Block: {self.block_number}\n"
            f"  From: {self.from_address}\n"
            f"  To: {self.to_address or 'Contract Creation'}\n"
            f"  Logs: {len(self.logs)}"
        )
