import pytest

from tokenwatch.core.web3.base import MalformedTransferError, decode_transfer_log, to_base_units
from tokenwatch.strategies.huge_transfer.normalizer import normalize_transfer, normalize_transfers
from tokenwatch.strategies.huge_transfer.registry import (
    LDO_TOKEN_ADDRESS,
    STETH_TOKEN_ADDRESS,
    WSTETH_TOKEN_ADDRESS,
)

USER = "0x1111111111111111111111111111111111111111"
OTHER = "0x2222222222222222222222222222222222222222"
UNKNOWN_TOKEN = "0x9999999999999999999999999999999999999999"


def test_decode_transfer_log(transfer_log):
    """Indexed parties come from the topics and the value from data"""
    decoded = decode_transfer_log(transfer_log(STETH_TOKEN_ADDRESS, USER, OTHER, 1.5, 7))

    assert decoded["event"] == "Transfer"
    assert decoded["logIndex"] == 7
    assert decoded["args"]["from"].lower() == USER
    assert decoded["args"]["to"].lower() == OTHER
    assert decoded["args"]["value"] == 15 * 10**17
    assert decoded["transactionHash"] == "0x" + "ab" * 32


def test_decode_rejects_wrong_topic_count(transfer_log):
    log = transfer_log(STETH_TOKEN_ADDRESS, USER, OTHER, 1, 0)
    log["topics"] = log["topics"][:2]

    with pytest.raises(MalformedTransferError):
        decode_transfer_log(log)


def test_decode_rejects_bad_data(transfer_log):
    log = transfer_log(STETH_TOKEN_ADDRESS, USER, OTHER, 1, 0)
    log["data"] = "0x1234"

    with pytest.raises(MalformedTransferError):
        decode_transfer_log(log)


def test_normalize_transfer(registry, transfer_log):
    decoded = decode_transfer_log(transfer_log(WSTETH_TOKEN_ADDRESS, USER, OTHER, 6000, 3))
    transfer = normalize_transfer(decoded, registry)

    assert transfer.token == WSTETH_TOKEN_ADDRESS
    assert transfer.symbol == "wstETH"
    assert transfer.value == 6000 * 10**18
    assert transfer.formatted_value == 6000.0
    assert transfer.log_index == 3


@pytest.mark.parametrize("args", [
    {"from": USER, "to": OTHER},
    {"from": USER, "to": OTHER, "value": -1},
    {"from": USER, "to": OTHER, "value": "100"},
    {"from": None, "to": OTHER, "value": 100},
])
def test_normalize_rejects_malformed_args(registry, args):
    log = {
        "address": STETH_TOKEN_ADDRESS,
        "logIndex": 0,
        "transactionHash": "0x" + "ab" * 32,
        "args": args,
    }

    with pytest.raises(MalformedTransferError):
        normalize_transfer(log, registry)


def test_normalize_rejects_unregistered_token(registry, transfer_log):
    decoded = decode_transfer_log(transfer_log(UNKNOWN_TOKEN, USER, OTHER, 1, 0))

    with pytest.raises(MalformedTransferError):
        normalize_transfer(decoded, registry)


def test_malformed_transfer_is_value_error():
    assert issubclass(MalformedTransferError, ValueError)


def test_transfer_compares_amounts_in_base_units(registry, transfer_log):
    transfer = normalize_transfer(
        decode_transfer_log(transfer_log(STETH_TOKEN_ADDRESS, USER, OTHER, 5000, 0)), registry
    )

    assert to_base_units(5000.0, 18) == 5000 * 10**18
    assert to_base_units("0.1", 6) == 100000
    assert transfer.decimals == 18
    assert not transfer.exceeds(5000)
    assert not transfer.below(5000)
    assert transfer.exceeds(4999.999)
    assert transfer.below(5000.001)


def test_normalize_transfers_orders_by_log_index(registry, transfer_log):
    logs = [
        decode_transfer_log(transfer_log(STETH_TOKEN_ADDRESS, USER, OTHER, 1, 9)),
        decode_transfer_log(transfer_log(LDO_TOKEN_ADDRESS, USER, OTHER, 2, 2)),
        decode_transfer_log(transfer_log(WSTETH_TOKEN_ADDRESS, USER, OTHER, 3, 5)),
    ]

    working_set = normalize_transfers(logs, registry)

    assert isinstance(working_set, tuple)
    assert [t.log_index for t in working_set] == [2, 5, 9]


def test_filter_log_keeps_monitored_transfers(registry, transfer_log, make_tx):
    tx = make_tx([
        transfer_log(STETH_TOKEN_ADDRESS, USER, OTHER, 1, 0),
        transfer_log(UNKNOWN_TOKEN, USER, OTHER, 1, 1),
        {"address": STETH_TOKEN_ADDRESS, "topics": ["0x" + "12" * 32], "data": "0x", "logIndex": 2},
    ])

    logs = tx.filter_log(addresses=registry.monitored_addresses)

    assert [log["logIndex"] for log in logs] == [0]
    assert len(tx.filter_log()) == 2


def test_filter_log_rejects_other_topics(make_tx):
    with pytest.raises(ValueError):
        make_tx([]).filter_log(event_topic="0x" + "12" * 32)
