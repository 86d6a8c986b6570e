from typing import List

from ..config import Config
from ..logger import logger
from .base import Collector, Executor, Strategy
from .watcher import Watcher


class WatcherBuilder:
    """Builds a Watcher from the enabled components of a configuration"""

    def __init__(self, config: Config):
        self.config = config

        watcher_config = config.get("watcher", {})
        self.watcher = Watcher(
            stats_interval=watcher_config.get("stats_interval", 60),
            max_queue_size=watcher_config.get("max_queue_size", 0),
        )

        self.collectors: List[Collector] = []
        self.strategies: List[Strategy] = []
        self.executors: List[Executor] = []

    def build_collectors(self) -> "WatcherBuilder":
        """Build all enabled collectors"""
        collectors = self.config.collectors
        if not isinstance(collectors, list):
            raise ValueError("collectors.enabled must be a list")

        for name in collectors:
            collector = Collector.create(
                name, **self.config.get_component_config("collectors", name)
            )
            self.collectors.append(collector)
            logger.info(f"Added collector: {name}")
        return self

    def build_strategies(self) -> "WatcherBuilder":
        """Build all enabled strategies"""
        strategies = self.config.strategies
        if not isinstance(strategies, list):
            raise ValueError("strategies.enabled must be a list")

        for name in strategies:
            strategy = Strategy.create(
                name, **self.config.get_component_config("strategies", name)
            )
            self.strategies.append(strategy)
            logger.info(f"Added strategy: {name}")
        return self

    def build_executors(self) -> "WatcherBuilder":
        """Build all enabled executors"""
        executors = self.config.executors
        if not isinstance(executors, list):
            raise ValueError("executors.enabled must be a list")

        for name in executors:
            executor = Executor.create(
                name, **self.config.get_component_config("executors", name)
            )
            self.executors.append(executor)
            logger.info(f"Added executor: {name}")
        return self

    def build(self) -> Watcher:
        """Build the final Watcher instance"""
        for collector in self.collectors:
            self.watcher.add_collector(collector)

        for strategy in self.strategies:
            self.watcher.add_strategy(strategy)

        for executor in self.executors:
            self.watcher.add_executor(executor)

        return self.watcher
