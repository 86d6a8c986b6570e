"""
Vault balance drift monitor for the Huge Transfer Strategy.

Samples a fixed set of custodial balances every window of blocks and
reports vaults whose balance moved more than a threshold since the
previous sample.
"""
import asyncio
import math
from typing import Dict, List, Optional, Protocol

from pydantic import BaseModel

from tokenwatch.core.findings import Finding, FindingSeverity, FindingType
from tokenwatch.logger import logger
from tokenwatch.strategies.huge_transfer.registry import Registry
from tokenwatch.strategies.huge_transfer.utils.token_utils import TokenUtils

VAULT_BALANCE_CHANGE_ALERT_ID = "HUGE-VAULT-BALANCE-CHANGE"

WINDOW_SIZE_KEY = "poolBlockWindow"


class BalanceReader(Protocol):
    async def get_balance(
        self, token_address: str, holder: str, block_number: int, decimals: int
    ) -> float:
        ...

    async def get_block_number(self) -> int:
        ...


class VaultSample(BaseModel):
    """Balances of every monitored vault at one block"""
    balances: Dict[str, float]
    block_number: int

    class Config:
        frozen = True


def compute_window_size(window_minutes: float, block_time: float) -> int:
    """Blocks per sampling window, rounded half up."""
    if block_time <= 0:
        raise ValueError(f"block_time must be positive, got {block_time}")
    return max(1, math.floor(window_minutes * 60 / block_time + 0.5))


def get_diff_percents(before: float, after: float) -> Optional[float]:
    """Percentage change from before to after, None for a zero baseline."""
    if before == 0:
        return None
    return (after - before) / before * 100


class VaultDriftMonitor:
    """
    Owner of the current vault sample

    The sample is replaced as a whole after every evaluated window. Sampling
    runs under a lock and windows at or below the stored block are ignored,
    so concurrent deliveries cannot interleave or go backwards.
    """

    def __init__(
        self,
        registry: Registry,
        balance_reader: BalanceReader,
        window_minutes: float = 15,
        block_time: float = 13,
        threshold: float = 15.0,
    ):
        self.registry = registry
        self.balance_reader = balance_reader
        self.window_minutes = window_minutes
        self.window_size = compute_window_size(window_minutes, block_time)
        self.threshold = threshold
        self._sample: Optional[VaultSample] = None
        self._lock = asyncio.Lock()

    @property
    def sample(self) -> Optional[VaultSample]:
        return self._sample

    async def read_sample(self, block_number: int) -> VaultSample:
        """
        Read every vault balance at a block height

        Raises:
            Exception: Whatever the balance reader raised; no retry
        """
        vaults = self.registry.vaults
        balances = await asyncio.gather(
            *(
                self.balance_reader.get_balance(
                    self.registry.token_by_symbol(vault.token).address,
                    vault.holder,
                    block_number,
                    self.registry.token_by_symbol(vault.token).decimals,
                )
                for vault in vaults
            )
        )
        return VaultSample(
            balances={vault.key: float(balance) for vault, balance in zip(vaults, balances)},
            block_number=block_number,
        )

    async def initialize(self, block_number: int) -> Dict[str, str]:
        """
        Take the first sample

        Args:
            block_number: Current chain height

        Returns:
            Dict[str, str]: Stringified balance per vault key plus the window size
        """
        async with self._lock:
            self._sample = await self.read_sample(block_number)

        snapshot = {
            key: TokenUtils.to_fixed(balance)
            for key, balance in self._sample.balances.items()
        }
        snapshot[WINDOW_SIZE_KEY] = str(self.window_size)
        logger.info(f"Vault balances at block {block_number}: {snapshot}")
        return snapshot

    def evaluate(self, previous: VaultSample, current: VaultSample) -> List[Finding]:
        """Findings for every vault whose drift exceeds the threshold."""
        findings = []
        for vault in self.registry.vaults:
            before = previous.balances.get(vault.key)
            after = current.balances[vault.key]
            if before is None:
                continue

            diff = get_diff_percents(before, after)
            if diff is None:
                logger.warning(
                    f"{vault.name} had zero balance at block {previous.block_number}, skipping drift check"
                )
                continue

            if abs(diff) > self.threshold:
                change_text = "increased" if diff > 0 else "decreased"
                findings.append(
                    Finding(
                        name=f"Huge change in {vault.name} balance",
                        description=(
                            f"{vault.name} balance has "
                            f"{change_text} by {abs(diff):.2f}% "
                            f"during last {self.window_minutes:g} min.\n"
                            f"Previous balance: {before:.2f} {vault.token}\n"
                            f"Current balance: {after:.2f} {vault.token}\n"
                        ),
                        alert_id=VAULT_BALANCE_CHANGE_ALERT_ID,
                        severity=FindingSeverity.INFO,
                        type=FindingType.INFO,
                        metadata={
                            "vault": vault.name,
                            "vault_address": vault.holder,
                            "change": change_text,
                            "percent": f"{abs(diff):.2f}",
                            "previous_balance": TokenUtils.to_fixed(before),
                            "current_balance": TokenUtils.to_fixed(after),
                        },
                    )
                )
        return findings

    async def handle_block(self, block_number: int) -> List[Finding]:
        """
        Sample and evaluate when the block closes a window

        Args:
            block_number: Height of the delivered block

        Returns:
            List[Finding]: Drift findings, empty off-window

        Raises:
            RuntimeError: If called before initialize()
            Exception: Balance read failures, stored sample left untouched
        """
        if self._sample is None:
            raise RuntimeError("Vault drift monitor used before initialization")
        if block_number % self.window_size != 0:
            return []

        async with self._lock:
            previous = self._sample
            if block_number <= previous.block_number:
                logger.warning(
                    f"Ignoring vault window at block {block_number}, "
                    f"already sampled at block {previous.block_number}"
                )
                return []

            current = await self.read_sample(block_number)
            findings = self.evaluate(previous, current)
            self._sample = current

        logger.debug(f"Vault sample replaced at block {block_number}")
        return findings
