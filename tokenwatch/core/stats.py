import asyncio
import time
from typing import Callable, Optional

from ..logger import logger


class StatsManager:
    """
    Throughput statistics for the watcher pipeline

    Handles:
    - Counting blocks, transactions and findings
    - Calculating throughput rates per interval
    - Monitoring component idle times
    - Periodic stats logging
    """

    def __init__(
        self,
        stats_interval: int = 60,
        get_event_queue_size: Optional[Callable[[], int]] = None,
        get_finding_queue_size: Optional[Callable[[], int]] = None
    ):
        """
        Initialize stats manager

        Args:
            stats_interval: How often to log statistics (in seconds)
            get_event_queue_size: Function returning the event queue size
            get_finding_queue_size: Function returning the finding queue size
        """
        self.stats_interval = stats_interval
        self.get_event_queue_size = get_event_queue_size
        self.get_finding_queue_size = get_finding_queue_size

        # Counters for the current interval
        self.blocks_processed = 0
        self.transactions_processed = 0
        self.findings_generated = 0
        self.findings_executed = 0
        self.strategy_errors = 0
        self.last_stats_time = time.time()

        self.total_findings_generated = 0
        self.total_findings_executed = 0

        self.last_collector_active = time.time()
        self.last_strategy_active = time.time()
        self.last_executor_active = time.time()

        self.running = False
        self._task = None

    def on_event_collected(self):
        self.last_collector_active = time.time()

    def on_block_processed(self):
        self.blocks_processed += 1
        self.last_strategy_active = time.time()

    def on_transaction_processed(self):
        self.transactions_processed += 1
        self.last_strategy_active = time.time()

    def on_strategy_error(self):
        self.strategy_errors += 1

    def on_finding_generated(self):
        self.findings_generated += 1
        self.total_findings_generated += 1

    def on_finding_executed(self):
        self.findings_executed += 1
        self.total_findings_executed += 1
        self.last_executor_active = time.time()

    async def start(self):
        """Start the stats logging task"""
        self.running = True
        self._task = asyncio.create_task(self._log_stats(), name="stats_manager")
        return self._task

    async def stop(self):
        """Stop the stats logging task"""
        self.running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        logger.info(
            f"Final stats - Findings: generated={self.total_findings_generated}, "
            f"executed={self.total_findings_executed}"
        )

    def log_stats(self):
        """Log and reset the counters of the current interval"""
        now = time.time()
        elapsed = now - self.last_stats_time

        block_rate = self.blocks_processed / elapsed if elapsed > 0 else 0
        tx_rate = self.transactions_processed / elapsed if elapsed > 0 else 0

        events_queued = self.get_event_queue_size() if self.get_event_queue_size else 0
        findings_queued = self.get_finding_queue_size() if self.get_finding_queue_size else 0

        collector_idle = now - self.last_collector_active

        logger.info(
            f"Stats - Blocks: {self.blocks_processed} ({block_rate:.2f}/s), "
            f"Transactions: {self.transactions_processed} ({tx_rate:.2f}/s), "
            f"events queued={events_queued} | "
            f"Findings: generated={self.findings_generated}, "
            f"executed={self.findings_executed}, queued={findings_queued} | "
            f"Strategy errors: {self.strategy_errors}"
        )

        # Blocks arrive every few seconds, a silent collector means a stuck node
        if collector_idle > 60:
            logger.warning(f"Collector has been idle for {collector_idle:.1f} seconds")

        self.blocks_processed = 0
        self.transactions_processed = 0
        self.findings_generated = 0
        self.findings_executed = 0
        self.strategy_errors = 0
        self.last_stats_time = now

    async def _log_stats(self):
        while self.running:
            await asyncio.sleep(int(self.stats_interval))
            try:
                self.log_stats()
            except Exception as e:
                logger.error(f"Error logging stats: {e}")
