import asyncio

import pytest

from tokenwatch.strategies.huge_transfer.vault_drift import (
    VAULT_BALANCE_CHANGE_ALERT_ID,
    VaultDriftMonitor,
    compute_window_size,
    get_diff_percents,
)

START_BLOCK = 690  # multiple of the default 69 block window


@pytest.fixture
def monitor(registry, balance_reader):
    return VaultDriftMonitor(registry, balance_reader)


def test_window_size():
    assert compute_window_size(15, 13) == 69
    assert compute_window_size(15, 12) == 75
    assert compute_window_size(1, 120) == 1


def test_window_size_rejects_bad_block_time():
    with pytest.raises(ValueError):
        compute_window_size(15, 0)


def test_diff_percents():
    assert get_diff_percents(100, 120) == pytest.approx(20.0)
    assert get_diff_percents(100, 80) == pytest.approx(-20.0)
    assert get_diff_percents(0, 10) is None


@pytest.mark.asyncio
async def test_initialize_returns_snapshot(monitor, balance_reader):
    snapshot = await monitor.initialize(START_BLOCK)

    assert snapshot == {
        "aaveVaultBalance": "1000",
        "makerAVaultBalance": "2000",
        "makerBVaultBalance": "3000",
        "poolBlockWindow": "69",
    }
    assert monitor.sample.block_number == START_BLOCK
    assert all(call[2] == START_BLOCK for call in balance_reader.calls)


@pytest.mark.asyncio
async def test_drift_reported_for_one_vault(monitor, balance_reader):
    await monitor.initialize(START_BLOCK)
    balance_reader.set(aave=1170)

    findings = await monitor.handle_block(START_BLOCK + 69)

    assert len(findings) == 1
    finding = findings[0]
    assert finding.alert_id == VAULT_BALANCE_CHANGE_ALERT_ID
    assert finding.name == "Huge change in AAVE vault balance"
    assert finding.description == (
        "AAVE vault balance has increased by 17.00% during last 15 min.\n"
        "Previous balance: 1000.00 stETH\n"
        "Current balance: 1170.00 stETH\n"
    )
    assert monitor.sample.block_number == START_BLOCK + 69
    assert monitor.sample.balances["aaveVaultBalance"] == 1170


@pytest.mark.asyncio
async def test_float_window_minutes_print_whole(registry, balance_reader):
    monitor = VaultDriftMonitor(registry, balance_reader, window_minutes=15.0, block_time=13.0)
    await monitor.initialize(START_BLOCK)
    balance_reader.set(aave=1170)

    (finding,) = await monitor.handle_block(START_BLOCK + 69)

    assert "during last 15 min.\n" in finding.description


@pytest.mark.asyncio
async def test_threshold_is_exclusive(registry, balance_reader):
    balance_reader.set(aave=100)
    monitor = VaultDriftMonitor(registry, balance_reader, threshold=20.0)
    await monitor.initialize(START_BLOCK)
    balance_reader.set(aave=120)

    assert await monitor.handle_block(START_BLOCK + 69) == []


@pytest.mark.asyncio
async def test_decrease_reported(registry, balance_reader):
    balance_reader.set(aave=100)
    monitor = VaultDriftMonitor(registry, balance_reader, threshold=15.0)
    await monitor.initialize(START_BLOCK)
    balance_reader.set(aave=80)

    findings = await monitor.handle_block(START_BLOCK + 69)

    assert len(findings) == 1
    assert "decreased by 20.00%" in findings[0].description
    assert findings[0].metadata["change"] == "decreased"


@pytest.mark.asyncio
async def test_off_window_blocks_are_ignored(monitor, balance_reader):
    await monitor.initialize(START_BLOCK)
    reads = len(balance_reader.calls)

    assert await monitor.handle_block(START_BLOCK + 1) == []
    assert len(balance_reader.calls) == reads


@pytest.mark.asyncio
async def test_old_windows_are_ignored(monitor, balance_reader):
    await monitor.initialize(START_BLOCK)
    reads = len(balance_reader.calls)

    assert await monitor.handle_block(START_BLOCK) == []
    assert await monitor.handle_block(START_BLOCK - 69) == []
    assert len(balance_reader.calls) == reads


@pytest.mark.asyncio
async def test_uninitialized_monitor_raises(monitor):
    with pytest.raises(RuntimeError):
        await monitor.handle_block(START_BLOCK)


@pytest.mark.asyncio
async def test_read_failure_keeps_previous_sample(monitor, balance_reader):
    await monitor.initialize(START_BLOCK)
    balance_reader.error = ConnectionError("node down")

    with pytest.raises(ConnectionError):
        await monitor.handle_block(START_BLOCK + 69)

    assert monitor.sample.block_number == START_BLOCK

    # The next window compares against the retained sample
    balance_reader.error = None
    balance_reader.set(aave=1170)
    findings = await monitor.handle_block(START_BLOCK + 138)
    assert len(findings) == 1
    assert "Previous balance: 1000.00 stETH" in findings[0].description


@pytest.mark.asyncio
async def test_zero_baseline_is_skipped(monitor, balance_reader):
    balance_reader.set(aave=0)
    await monitor.initialize(START_BLOCK)
    balance_reader.set(aave=500)

    assert await monitor.handle_block(START_BLOCK + 69) == []
    assert monitor.sample.balances["aaveVaultBalance"] == 500


@pytest.mark.asyncio
async def test_concurrent_deliveries_sample_once(monitor, balance_reader):
    await monitor.initialize(START_BLOCK)
    balance_reader.set(aave=1170)
    reads = len(balance_reader.calls)

    results = await asyncio.gather(
        monitor.handle_block(START_BLOCK + 69),
        monitor.handle_block(START_BLOCK + 69),
    )

    assert sorted(len(findings) for findings in results) == [0, 1]
    assert len(balance_reader.calls) - reads == 3
