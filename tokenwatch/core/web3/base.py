from decimal import Decimal
from typing import Any, Dict, Union

from web3 import Web3

TRANSFER_EVENT_SIGNATURE = "Transfer(address,address,uint256)"
TRANSFER_EVENT_TOPIC = "0x" + bytes(Web3.keccak(text=TRANSFER_EVENT_SIGNATURE)).hex()

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Minimal ERC20 ABI: balance reads only
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "payable": False,
        "stateMutability": "view",
        "type": "function",
    },
]


class MalformedTransferError(ValueError):
    """Raised when a transfer log does not have the expected shape"""


def to_hex_str(value: Any) -> str:
    """Normalize bytes / HexBytes / str to a lowercase 0x-prefixed hex string."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, str):
        value = value.lower()
        return value if value.startswith("0x") else "0x" + value
    raise TypeError(f"Cannot convert {type(value).__name__} to hex string")


def format_token_amount(amount: int, decimals: int) -> float:
    """Format token amount from base units to human readable format."""
    return amount / (10**decimals)


def to_base_units(amount: Union[int, float, str], decimals: int) -> int:
    """Convert a human readable amount to exact base units."""
    return int(Decimal(str(amount)).scaleb(decimals))


def decode_transfer_log(log: Dict[str, Any]) -> Dict[str, Any]:
    """
    Decode a raw ERC20 Transfer log entry

    Topics[1] and topics[2] hold the indexed sender and recipient,
    data holds the uint256 value.

    Args:
        log: Raw log entry as returned by eth_getLogs / receipts

    Returns:
        Dict containing the decoded event

    Raises:
        MalformedTransferError: If the log is not an ERC20 Transfer
    """
    try:
        topics = [to_hex_str(topic) for topic in log["topics"]]
        if len(topics) != 3 or topics[0] != TRANSFER_EVENT_TOPIC:
            raise MalformedTransferError(
                f"Unexpected topics for Transfer log: {topics}"
            )

        data = to_hex_str(log["data"])
        if len(data) != 66:
            raise MalformedTransferError(f"Unexpected data for Transfer log: {data}")

        return {
            "event": "Transfer",
            "logIndex": int(log["logIndex"]),
            "transactionHash": to_hex_str(log["transactionHash"]),
            "blockNumber": log.get("blockNumber"),
            "address": Web3.to_checksum_address(log["address"]),
            "args": {
                "from": Web3.to_checksum_address("0x" + topics[1][-40:]),
                "to": Web3.to_checksum_address("0x" + topics[2][-40:]),
                "value": int(data, 16),
            },
        }
    except MalformedTransferError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedTransferError(f"Cannot decode Transfer log: {e}") from e
