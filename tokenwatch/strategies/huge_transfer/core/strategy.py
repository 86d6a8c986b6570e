"""
Core strategy class for the Huge Transfer Strategy.
"""
from typing import Dict, List, Optional

from tokenwatch.core.base import Strategy
from tokenwatch.core.events import BlockEvent, Event, TransactionEvent
from tokenwatch.core.findings import Finding
from tokenwatch.core.web3 import TRANSFER_EVENT_TOPIC, Web3BalanceReader
from tokenwatch.logger import logger

from tokenwatch.strategies.huge_transfer.filters.materiality import MaterialityFilter
from tokenwatch.strategies.huge_transfer.matchers.base import BaseMatcher, exclude
from tokenwatch.strategies.huge_transfer.matchers.exchange import ExchangeMatcher
from tokenwatch.strategies.huge_transfer.matchers.template import TemplateMatcher
from tokenwatch.strategies.huge_transfer.narrative import NarrativeAggregator
from tokenwatch.strategies.huge_transfer.normalizer import normalize_transfers
from tokenwatch.strategies.huge_transfer.registry import Registry, build_registry
from tokenwatch.strategies.huge_transfer.utils.address_utils import AddressUtils
from tokenwatch.strategies.huge_transfer.vault_drift import BalanceReader, VaultDriftMonitor


class HugeTransferStrategy(Strategy):
    """
    Huge Transfer Strategy

    Watches transfers of a fixed set of tokens and reports, per transaction:
    - Swaps through registered exchange venues
    - Complex multi-leg transfers (wrap, unwrap, deposits, withdrawals)
    - Remaining single transfers above their token threshold

    Everything found in one transaction is reported as one narrative finding
    plus one technical finding per structured record. Independently, a set of
    vault balances is sampled every window of blocks and large relative
    changes between samples are reported.

    Matchers run in a fixed order and each one only sees the transfers no
    earlier stage consumed, so a transfer is described at most once.
    """

    __component_name__ = "huge_transfer"

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        window_minutes: float = 15,
        block_time: float = 13,
        drift_threshold: float = 15.0,
        explorer_url: str = AddressUtils.DEFAULT_EXPLORER_URL,
        thresholds: Optional[Dict[str, float]] = None,
        balance_reader: Optional[BalanceReader] = None,
        registry: Optional[Registry] = None,
    ):
        """
        Initialize Huge Transfer Strategy

        Args:
            rpc_url: Node used for vault balance reads when no reader is given
            window_minutes: Length of a vault sampling window
            block_time: Average block time in seconds
            drift_threshold: Relative vault change, in percent, worth reporting
            explorer_url: Block explorer base used for transaction links
            thresholds: Per-symbol materiality threshold overrides
            balance_reader: Balance query provider, built from rpc_url if omitted
            registry: Token / template / venue / vault tables, defaults if omitted

        Raises:
            ValueError: If neither rpc_url nor balance_reader is given
        """
        super().__init__()

        if registry is None:
            registry = build_registry(thresholds=thresholds)
        elif thresholds:
            logger.warning("Threshold overrides are ignored when a registry is supplied")
        self.registry = registry

        if balance_reader is None:
            if not rpc_url:
                raise ValueError("HugeTransferStrategy needs rpc_url or balance_reader")
            balance_reader = Web3BalanceReader(rpc_url)
        self.balance_reader = balance_reader

        self.matchers: List[BaseMatcher] = [ExchangeMatcher(self.registry)]
        self.matchers.extend(
            TemplateMatcher(self.registry, template) for template in self.registry.templates
        )
        self.materiality_filter = MaterialityFilter(self.registry)
        self.aggregator = NarrativeAggregator(explorer_url)
        self.vault_monitor = VaultDriftMonitor(
            self.registry,
            self.balance_reader,
            window_minutes=window_minutes,
            block_time=block_time,
            threshold=drift_threshold,
        )

        logger.info(
            f"HugeTransferStrategy initialized with {len(self.registry.tokens)} tokens, "
            f"{len(self.registry.templates)} templates, {len(self.registry.vaults)} vaults"
        )

    async def initialize(self, current_block: Optional[int] = None) -> Dict[str, str]:
        """
        Take the first vault sample

        Args:
            current_block: Chain height, queried from the balance reader if omitted

        Returns:
            Dict[str, str]: Vault balances and sampling window size
        """
        if current_block is None:
            current_block = await self.balance_reader.get_block_number()
        return await self.vault_monitor.initialize(current_block)

    async def handle_block(self, event: BlockEvent) -> List[Finding]:
        return await self.vault_monitor.handle_block(event.block_number)

    async def handle_transaction(self, event: TransactionEvent) -> List[Finding]:
        """
        Correlate the monitored transfers of one transaction

        Args:
            event: Transaction with its receipt logs

        Returns:
            List[Finding]: Narrative finding and technical findings, or nothing

        Raises:
            MalformedTransferError: If a monitored transfer log is malformed
        """
        logs = event.filter_log(TRANSFER_EVENT_TOPIC, self.registry.monitored_addresses)
        if not logs:
            return []

        working_set = normalize_transfers(logs, self.registry)
        texts = []
        metadata = []

        for matcher in self.matchers:
            if not working_set:
                break
            result = matcher.match(working_set, event)
            if result.consumed:
                texts.extend(result.texts)
                metadata.extend(result.metadata)
                working_set = exclude(working_set, result.consumed)

        simple_texts, simple_metadata = self.materiality_filter.apply(working_set)
        texts.extend(simple_texts)
        metadata.extend(simple_metadata)

        findings = self.aggregator.aggregate(texts, metadata, event.hash)
        if findings:
            logger.info(f"Transaction {event.hash}: {len(findings)} findings")
        return findings

    async def process_event(self, event: Event) -> List[Finding]:
        """
        Dispatch an event to the block or transaction handler

        Args:
            event: Event to process

        Returns:
            List[Finding]: Findings generated from the event
        """
        if isinstance(event, BlockEvent):
            return await self.handle_block(event)
        if isinstance(event, TransactionEvent):
            return await self.handle_transaction(event)
        return []
