import asyncio
import time
from typing import Any, AsyncIterable, Awaitable, Callable, List, Optional, Union

from ..logger import logger
from .base import (
    Collector,
    Executor,
    FunctionCollector,
    FunctionExecutor,
    FunctionStrategy,
    Strategy,
)
from .events import BlockEvent, Event, TransactionEvent
from .findings import Finding
from .stats import StatsManager

# Queue reads time out so the running flag is checked regularly
QUEUE_TIMEOUT = 2.0


class Watcher:
    """
    Main application class that manages the event processing pipeline

    Handles:
    - Component lifecycle management
    - Strategy initialization before any event is collected
    - Event processing and finding delivery through in-memory queues
    - Error handling and recovery
    """

    def __init__(self, stats_interval: int = 60, max_queue_size: int = 0):
        """
        Initialize Watcher instance

        Args:
            stats_interval: How often to log statistics (in seconds)
            max_queue_size: Bound of the event and finding queues, 0 for unbounded
        """
        self.collectors: List[Collector] = []
        self.strategies: List[Strategy] = []
        self.executors: List[Executor] = []
        self.running: bool = False

        self.event_queue: "asyncio.Queue[Event]" = asyncio.Queue(maxsize=max_queue_size)
        self.finding_queue: "asyncio.Queue[Finding]" = asyncio.Queue(maxsize=max_queue_size)

        self._tasks: Optional[List[asyncio.Task[Any]]] = None

        self.stats = StatsManager(
            stats_interval=stats_interval,
            get_event_queue_size=self.event_queue.qsize,
            get_finding_queue_size=self.finding_queue.qsize,
        )

    def add_collector(
        self, collector: Union[Collector, Callable[[], AsyncIterable[Event]]]
    ):
        """
        Add event collector to the pipeline

        Args:
            collector: Collector instance or async generator function
        """
        if isinstance(collector, Collector):
            self.collectors.append(collector)
        else:
            self.collectors.append(FunctionCollector(collector))
        logger.info(f"Added collector: {collector.__class__.__name__}")

    def add_strategy(
        self, strategy: Union[Strategy, Callable[[Event], Awaitable[List[Finding]]]]
    ):
        """
        Add event processing strategy to the pipeline

        Args:
            strategy: Strategy instance or async function
        """
        if isinstance(strategy, Strategy):
            self.strategies.append(strategy)
        else:
            self.strategies.append(FunctionStrategy(strategy))
        logger.info(f"Added strategy: {strategy.__class__.__name__}")

    def add_executor(
        self, executor: Union[Executor, Callable[[Finding], Awaitable[None]]]
    ):
        """
        Add finding executor to the pipeline

        Args:
            executor: Executor instance or async function
        """
        if isinstance(executor, Executor):
            self.executors.append(executor)
        else:
            self.executors.append(FunctionExecutor(executor))
        logger.info(f"Added executor: {executor.__class__.__name__}")

    async def initialize_strategies(self):
        """
        Initialize every strategy, in order

        Raises:
            Exception: Any initialization failure, the watcher cannot start
        """
        for strategy in self.strategies:
            snapshot = await strategy.initialize()
            if snapshot:
                logger.info(f"Strategy {strategy.__class__.__name__} initialized: {snapshot}")

    async def start(self):
        """
        Initialize strategies, start all components and begin processing

        Raises:
            Exception: If any component fails to initialize or start
        """
        self.running = True

        try:
            await self.initialize_strategies()

            await asyncio.gather(*(collector.start() for collector in self.collectors))

            self._tasks = []
            for i, collector in enumerate(self.collectors):
                self._tasks.append(
                    asyncio.create_task(self._run_collector(collector), name=f"collector_{i}")
                )

            self._tasks.extend([
                asyncio.create_task(self._run_strategies(), name="strategies"),
                asyncio.create_task(self._run_executors(), name="executors"),
            ])

            self._tasks.append(await self.stats.start())

            logger.info(
                f"Started {len(self.collectors)} collectors, {len(self.strategies)} strategies, "
                f"{len(self.executors)} executors"
            )

        except Exception as e:
            logger.error(f"Error starting components: {e}")
            await self.stop()
            raise

    async def stop(self, grace_period: float = 5.0, force_timeout: float = 15.0):
        """
        Stop all components gracefully with a forced timeout

        Queued events and findings are drained for up to grace_period
        seconds; shutdown is guaranteed within force_timeout seconds.

        Args:
            grace_period: Time in seconds to wait for queues to drain
            force_timeout: Maximum time to wait before forcing shutdown
        """
        if not self.running:
            logger.info("Stop called on already stopped Watcher")
            return

        logger.info("Stopping Watcher...")

        try:
            await asyncio.wait_for(self._graceful_shutdown(grace_period), timeout=force_timeout)
            logger.info("Graceful shutdown completed")
        except asyncio.TimeoutError:
            logger.warning(
                f"Graceful shutdown timed out after {force_timeout}s, forcing immediate shutdown"
            )

        self.running = False

        if self._tasks:
            for task in self._tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*self._tasks, return_exceptions=True)
            self._tasks = None

        logger.info("Watcher shutdown complete")

    async def join(self):
        """
        Wait until the core processing tasks finish

        Used by the CLI to keep running until a signal arrives. Tests should
        use start() and stop() directly.
        """
        if not self._tasks:
            logger.warning("Watcher.join() called before start() or after stop()")
            return

        core_tasks = [
            task for task in self._tasks if task.get_name() in ("strategies", "executors")
        ]
        done, _ = await asyncio.wait(core_tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            if not task.cancelled() and task.exception():
                logger.error(f"Task {task.get_name()} failed with exception: {task.exception()}")

    async def _graceful_shutdown(self, grace_period: float):
        # Stop collectors first to prevent new events
        if self.collectors:
            logger.info(f"Stopping {len(self.collectors)} collectors...")
            await asyncio.gather(
                *(collector.stop() for collector in self.collectors), return_exceptions=True
            )

        deadline = time.time() + grace_period
        while time.time() < deadline:
            if self.event_queue.empty() and self.finding_queue.empty():
                break
            await asyncio.sleep(0.1)

        logger.info(
            f"Shutdown progress: {self.event_queue.qsize()} events and "
            f"{self.finding_queue.qsize()} findings remaining"
        )

        await self.stats.stop()

    async def _run_collector(self, collector: Collector):
        collector_name = collector.__class__.__name__
        logger.info(f"Starting collector: {collector_name}")

        try:
            async for event in collector.events():
                if not self.running:
                    break
                await self.event_queue.put(event)
                self.stats.on_event_collected()

            if self.running:
                logger.warning(f"Collector {collector_name} events stream ended")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error in collector {collector_name}: {e}")

    async def _process_event(self, event: Event):
        """Run every strategy on one event and queue their findings"""
        for strategy in self.strategies:
            strategy_name = strategy.__class__.__name__
            try:
                findings = await strategy.process_event(event)
            except Exception as e:
                self.stats.on_strategy_error()
                logger.opt(exception=e).error(f"Error in strategy {strategy_name}: {e}")
                continue

            for finding in findings:
                await self.finding_queue.put(finding)
                self.stats.on_finding_generated()

        if isinstance(event, BlockEvent):
            self.stats.on_block_processed()
        elif isinstance(event, TransactionEvent):
            self.stats.on_transaction_processed()

    async def _run_strategies(self):
        logger.info("Starting strategy processor")
        try:
            while self.running:
                try:
                    event = await asyncio.wait_for(self.event_queue.get(), timeout=QUEUE_TIMEOUT)
                except asyncio.TimeoutError:
                    continue

                start_time = time.time()
                await self._process_event(event)
                self.event_queue.task_done()

                latency = time.time() - start_time
                if latency > 1.0:
                    logger.warning(f"Slow event processing: {latency:.2f}s for {event.type} event")
        except asyncio.CancelledError:
            logger.info("Strategy processor task cancelled, shutting down...")
        finally:
            logger.info("Strategy processor stopped")

    async def _run_executors(self):
        logger.info("Starting finding executor")
        try:
            while self.running:
                try:
                    finding = await asyncio.wait_for(self.finding_queue.get(), timeout=QUEUE_TIMEOUT)
                except asyncio.TimeoutError:
                    continue

                results = await asyncio.gather(
                    *(executor.execute(finding) for executor in self.executors),
                    return_exceptions=True,
                )
                for executor, result in zip(self.executors, results):
                    if isinstance(result, Exception):
                        logger.error(f"Error in executor {executor.__class__.__name__}: {result}")

                self.finding_queue.task_done()
                self.stats.on_finding_executed()
        except asyncio.CancelledError:
            logger.info("Finding executor task cancelled, shutting down...")
        finally:
            logger.info("Finding executor stopped")
