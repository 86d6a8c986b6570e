import asyncio
from decimal import Decimal

import pytest
from hexbytes import HexBytes

from tokenwatch.core.events import TransactionEvent
from tokenwatch.core.web3.base import TRANSFER_EVENT_TOPIC
from tokenwatch.strategies.huge_transfer.normalizer import normalize_transfers
from tokenwatch.strategies.huge_transfer.registry import (
    AAVE_VAULT_ADDRESS,
    WSTETH_A_VAULT_ADDRESS,
    WSTETH_B_VAULT_ADDRESS,
    build_registry,
)

TX_HASH = "0x" + "ab" * 32


def address_topic(address: str) -> HexBytes:
    return HexBytes("0x" + "00" * 12 + address[2:].lower())


def raw_transfer_log(token, sender, recipient, amount, log_index, decimals=18, tx_hash=TX_HASH):
    """Raw Transfer log as a node returns it"""
    value = int(Decimal(str(amount)) * (10 ** decimals))
    return {
        "address": token,
        "topics": [
            HexBytes(TRANSFER_EVENT_TOPIC),
            address_topic(sender),
            address_topic(recipient),
        ],
        "data": HexBytes(value.to_bytes(32, "big")),
        "logIndex": log_index,
        "transactionHash": HexBytes(tx_hash),
        "blockNumber": 100,
    }


class FakeBalanceReader:
    """Balance reader returning configurable balances per vault holder"""

    def __init__(self, balances=None, block_number=690):
        self.balances = {k.lower(): v for k, v in (balances or {}).items()}
        self.block_number = block_number
        self.calls = []
        self.error = None

    async def get_balance(self, token_address, holder, block_number, decimals):
        self.calls.append((token_address, holder, block_number))
        await asyncio.sleep(0)
        if self.error:
            raise self.error
        return self.balances[holder.lower()]

    async def get_block_number(self):
        return self.block_number

    def set(self, aave=None, maker_a=None, maker_b=None):
        for holder, value in (
            (AAVE_VAULT_ADDRESS, aave),
            (WSTETH_A_VAULT_ADDRESS, maker_a),
            (WSTETH_B_VAULT_ADDRESS, maker_b),
        ):
            if value is not None:
                self.balances[holder.lower()] = value


@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def transfer_log():
    """Factory for raw Transfer logs"""
    return raw_transfer_log


@pytest.fixture
def make_tx():
    """Factory for transaction events"""
    def _make_tx(logs, from_address="0x1111111111111111111111111111111111111111", tx_hash=TX_HASH):
        return TransactionEvent(
            hash=tx_hash, block_number=100, from_address=from_address, logs=logs
        )
    return _make_tx


@pytest.fixture
def working_set(registry):
    """Factory turning transaction events into normalized working sets"""
    def _working_set(tx):
        return normalize_transfers(tx.filter_log(addresses=registry.monitored_addresses), registry)
    return _working_set


@pytest.fixture
def balance_reader():
    reader = FakeBalanceReader()
    reader.set(aave=1000, maker_a=2000, maker_b=3000)
    return reader
