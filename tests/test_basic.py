"""
Basic test suite for tokenwatch

Tests:
- Basic event flow through the watcher
- Strategy initialization and failure isolation
- Configuration loading
- Building a watcher from configuration
"""

import asyncio
import tempfile

import pytest
import tomli_w

from tokenwatch.collectors import ChainCollector
from tokenwatch.config import Config
from tokenwatch.core.builder import WatcherBuilder
from tokenwatch.core.base import Strategy
from tokenwatch.core.events import BlockEvent, Event, TransactionEvent
from tokenwatch.core.findings import Finding
from tokenwatch.core.watcher import Watcher
from tokenwatch.executors import LoggerExecutor
from tokenwatch.strategies import HugeTransferStrategy

TX_HASH = "0x" + "12" * 32

executed_findings = []


async def simple_collector():
    yield BlockEvent(block_number=1000)
    for i in range(3):
        yield TransactionEvent(hash=TX_HASH, block_number=1000, logs=[])


async def mock_strategy(event: Event) -> list:
    """One finding per transaction event"""
    if event.type != "transaction":
        return []
    return [Finding(name="test", description=event.hash, alert_id="TEST-ALERT")]


async def mock_executor(finding: Finding):
    executed_findings.append(finding)


async def failing_strategy(event: Event) -> list:
    raise RuntimeError("strategy failure")


class RecordingStrategy(Strategy):
    """Strategy recording initialization before any event"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.initialized = False
        self.events = []

    async def initialize(self, current_block=None):
        if self.fail:
            raise ConnectionError("node down")
        self.initialized = True
        return {"ready": "yes"}

    async def process_event(self, event):
        assert self.initialized
        self.events.append(event)
        return []


@pytest.fixture(autouse=True)
def clear_executed_findings():
    executed_findings.clear()
    yield


async def run_briefly(watcher: Watcher, seconds: float = 1.0):
    try:
        await asyncio.wait_for(watcher.start(), timeout=2.0)
        await asyncio.sleep(seconds)
        await asyncio.wait_for(watcher.stop(grace_period=1.0), timeout=5.0)
    except asyncio.TimeoutError:
        await watcher.stop(grace_period=0.1)
        assert False, "Test timed out, execution took too long"


@pytest.mark.asyncio
async def test_basic_flow():
    """Events flow from collector through strategy to executor"""
    watcher = Watcher()
    watcher.add_collector(simple_collector)
    watcher.add_strategy(mock_strategy)
    watcher.add_executor(mock_executor)

    await run_briefly(watcher)

    assert len(executed_findings) == 3
    assert all(f.alert_id == "TEST-ALERT" for f in executed_findings)
    assert watcher.stats.total_findings_executed == 3


@pytest.mark.asyncio
async def test_strategies_initialized_before_events():
    strategy = RecordingStrategy()
    watcher = Watcher()
    watcher.add_collector(simple_collector)
    watcher.add_strategy(strategy)

    await run_briefly(watcher)

    assert strategy.initialized
    assert [e.type for e in strategy.events] == ["block", "transaction", "transaction", "transaction"]


@pytest.mark.asyncio
async def test_initialization_failure_stops_start():
    watcher = Watcher()
    watcher.add_collector(simple_collector)
    watcher.add_strategy(RecordingStrategy(fail=True))

    with pytest.raises(ConnectionError):
        await watcher.start()

    assert not watcher.running


@pytest.mark.asyncio
async def test_strategy_failure_does_not_stop_pipeline():
    watcher = Watcher()
    watcher.add_collector(simple_collector)
    watcher.add_strategy(failing_strategy)
    watcher.add_strategy(mock_strategy)
    watcher.add_executor(mock_executor)

    await run_briefly(watcher)

    assert len(executed_findings) == 3
    assert watcher.stats.strategy_errors == 4


def write_config(config_data) -> str:
    with tempfile.NamedTemporaryFile(mode='wb', suffix='.toml', delete=False) as f:
        tomli_w.dump(config_data, f)
        return f.name


CONFIG_DATA = {
    "watcher": {"stats_interval": 30},
    "collectors": {
        "enabled": ["web3_chain"],
        "web3_chain": {"rpc_url": "http://localhost:8545", "block_time": 12},
    },
    "strategies": {
        "enabled": ["huge_transfer"],
        "huge_transfer": {
            "rpc_url": "http://localhost:8545",
            "drift_threshold": 10.0,
            "thresholds": {"stETH": 1000},
        },
    },
    "executors": {"enabled": ["logger"]},
}


def test_config_loading():
    config = Config(write_config(CONFIG_DATA))

    assert config.collectors == ["web3_chain"]
    assert config.strategies == ["huge_transfer"]
    assert config.executors == ["logger"]
    assert config.get("strategies.huge_transfer.thresholds.stETH") == 1000
    assert config.get("strategies.huge_transfer.missing", "default") == "default"
    assert config.get_component_config("collectors", "web3_chain")["rpc_url"] == "http://localhost:8545"
    assert config.get_component_config("executors", "logger") == {}


def test_missing_config_is_empty():
    config = Config("does-not-exist.toml")

    assert config.config == {}
    assert config.collectors == []


def test_builder_creates_components():
    watcher = (WatcherBuilder(Config(write_config(CONFIG_DATA)))
               .build_collectors()
               .build_strategies()
               .build_executors()
               .build())

    assert isinstance(watcher.collectors[0], ChainCollector)
    assert isinstance(watcher.strategies[0], HugeTransferStrategy)
    assert isinstance(watcher.executors[0], LoggerExecutor)
    assert watcher.strategies[0].vault_monitor.threshold == 10.0
    assert watcher.stats.stats_interval == 30


def test_unknown_component_name():
    with pytest.raises(ValueError):
        Strategy.create("does_not_exist")
