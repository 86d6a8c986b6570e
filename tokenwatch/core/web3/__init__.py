from .base import (
    ERC20_ABI,
    TRANSFER_EVENT_TOPIC,
    ZERO_ADDRESS,
    MalformedTransferError,
    decode_transfer_log,
    format_token_amount,
    to_base_units,
    to_hex_str,
)
from .erc20_token import AsyncERC20Token, Web3BalanceReader

__all__ = [
    "AsyncERC20Token",
    "Web3BalanceReader",
    "ERC20_ABI",
    "TRANSFER_EVENT_TOPIC",
    "ZERO_ADDRESS",
    "MalformedTransferError",
    "decode_transfer_log",
    "format_token_amount",
    "to_base_units",
    "to_hex_str",
]
