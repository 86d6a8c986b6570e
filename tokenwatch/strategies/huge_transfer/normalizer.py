"""
Transfer event normalizer for the Huge Transfer Strategy.
"""
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel

from tokenwatch.core.web3.base import MalformedTransferError, format_token_amount, to_base_units
from tokenwatch.strategies.huge_transfer.registry import Registry


class TransferEvent(BaseModel):
    """
    One ERC20 transfer of a registered token inside a transaction

    ``token`` is the lowercase contract address used as registry key.
    """
    token: str
    symbol: str
    from_address: str
    to_address: str
    value: int  # Raw amount in base units
    formatted_value: float  # Amount adjusted by token decimals, display only
    log_index: int
    transaction_hash: str
    decimals: int = 18

    class Config:
        frozen = True

    def exceeds(self, amount: float) -> bool:
        """Whether the exact amount is strictly above a decimal-adjusted one"""
        return self.value > to_base_units(amount, self.decimals)

    def below(self, amount: float) -> bool:
        return self.value < to_base_units(amount, self.decimals)

    def __str__(self) -> str:
        return (
            f"Transfer #{self.log_index}: {self.formatted_value} {self.symbol} "
            f"{self.from_address} -> {self.to_address}"
        )


def normalize_transfer(log: Dict[str, Any], registry: Registry) -> TransferEvent:
    """
    Turn a decoded Transfer log into a TransferEvent

    Args:
        log: Decoded log with ``address``, ``logIndex``, ``transactionHash``
            and ``args`` {from, to, value}
        registry: Token registry providing symbol and decimals

    Returns:
        TransferEvent: Normalized transfer

    Raises:
        MalformedTransferError: If the log is missing fields, carries
            unexpected argument types, or comes from an unregistered token
    """
    try:
        address = log["address"]
        args = log["args"]
        from_address = args["from"]
        to_address = args["to"]
        value = args["value"]
        log_index = log["logIndex"]
        tx_hash = log["transactionHash"]
    except (KeyError, TypeError) as e:
        raise MalformedTransferError(f"Transfer log is missing field {e}: {log}") from e

    if not isinstance(from_address, str) or not isinstance(to_address, str):
        raise MalformedTransferError(f"Transfer parties must be addresses: {args}")
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise MalformedTransferError(f"Transfer value must be a non-negative integer: {value!r}")
    if isinstance(log_index, bool) or not isinstance(log_index, int):
        raise MalformedTransferError(f"Log index must be an integer: {log_index!r}")

    info = registry.token(str(address))
    if info is None:
        raise MalformedTransferError(f"Transfer log from unregistered token {address}")

    return TransferEvent(
        token=info.address.lower(),
        symbol=info.symbol,
        from_address=from_address,
        to_address=to_address,
        value=value,
        formatted_value=format_token_amount(value, info.decimals),
        log_index=log_index,
        transaction_hash=str(tx_hash),
        decimals=info.decimals,
    )


def normalize_transfers(
    logs: List[Dict[str, Any]], registry: Registry
) -> Tuple[TransferEvent, ...]:
    """Normalize decoded logs into a working set ordered by log index."""
    transfers = [normalize_transfer(log, registry) for log in logs]
    return tuple(sorted(transfers, key=lambda t: t.log_index))
