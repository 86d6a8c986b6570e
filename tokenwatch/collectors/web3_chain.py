import asyncio
from collections import OrderedDict
from datetime import datetime
from typing import Any, AsyncGenerator, Dict, List, Optional, Union

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.types import BlockData

from ..core.base import Collector
from ..core.events import BlockEvent, Event, TransactionEvent
from ..core.web3.base import TRANSFER_EVENT_TOPIC, to_hex_str
from ..logger import logger
from ..strategies.huge_transfer.registry import DEFAULT_TOKENS


class ChainCollector(Collector):
    """
    Block and transfer collector

    Polls a node for new blocks. For every block it yields a BlockEvent,
    then one TransactionEvent per transaction that emitted a Transfer log
    from one of the watched token contracts.
    """

    __component_name__ = "web3_chain"

    def __init__(
        self,
        rpc_url: str,
        token_addresses: Optional[List[str]] = None,
        start_block: Optional[int] = None,
        block_time: int = 12,
        max_blocks_per_batch: int = 100,
        retry_interval: int = 5,
        max_retries: int = 3,
        w3: Optional[AsyncWeb3] = None,
    ):
        """
        Initialize chain collector

        Args:
            rpc_url: RPC node URL
            token_addresses: Token contracts whose Transfer logs are collected,
                the default monitored tokens if omitted
            start_block: First block to collect, latest block if omitted
            block_time: Expected block time in seconds, used as poll interval
            max_blocks_per_batch: Maximum number of blocks handled per poll
            retry_interval: Delay between retries in seconds
            max_retries: Maximum attempts for a single node request
            w3: Preconfigured web3 client, built from rpc_url if omitted
        """
        super().__init__()
        if not rpc_url and w3 is None:
            raise ValueError("RPC URL is required")

        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(rpc_url))
        if token_addresses is None:
            token_addresses = [token.address for token in DEFAULT_TOKENS]
        self.token_addresses = [Web3.to_checksum_address(a) for a in token_addresses]
        self.start_block = start_block
        self.block_time = block_time
        self.max_blocks_per_batch = max_blocks_per_batch
        self.retry_interval = retry_interval
        self.max_retries = max_retries
        self.last_processed_block: Optional[int] = None

    async def _start(self):
        if self.start_block is None:
            self.start_block = await self._get_latest_block_with_retry()
            logger.info(f"Starting from latest block: {self.start_block}")

        self.last_processed_block = self.start_block - 1
        logger.info(f"Initialized ChainCollector at block {self.last_processed_block}")

    async def events(self) -> AsyncGenerator[Event, None]:
        """Generate block and transaction events"""
        if not self._started:
            await self.start()

        while self._running:
            try:
                async for event in self._process_new_blocks():
                    yield event
                await asyncio.sleep(self.block_time)
            except Exception as e:
                logger.error(f"Error in events stream: {e}")
                await asyncio.sleep(self.retry_interval)

    async def _with_retry(self, description: str, request):
        for attempt in range(self.max_retries):
            try:
                return await request()
            except Exception as e:
                if attempt == self.max_retries - 1:
                    logger.error(f"Failed to {description} after {self.max_retries} attempts: {e}")
                    raise
                logger.warning(f"Failed to {description} (attempt {attempt + 1}): {e}")
                await asyncio.sleep(self.retry_interval)

    async def _get_latest_block_with_retry(self) -> int:
        return await self._with_retry(
            "get latest block number", lambda: self.w3.eth.block_number
        )

    async def _process_new_blocks(self) -> AsyncGenerator[Event, None]:
        latest_block = await self._get_latest_block_with_retry()

        if latest_block <= self.last_processed_block:
            return

        start_block = self.last_processed_block + 1
        end_block = min(latest_block, start_block + self.max_blocks_per_batch - 1)

        logger.debug(f"Processing blocks {start_block} to {end_block}")

        for block_number in range(start_block, end_block + 1):
            block = await self._with_retry(
                f"get block {block_number}", lambda: self.w3.eth.get_block(block_number)
            )
            async for event in self._process_block(block):
                yield event
            # A block is only done once all of its events went out
            self.last_processed_block = block_number

    async def _process_block(
        self, block: BlockData
    ) -> AsyncGenerator[Union[BlockEvent, TransactionEvent], None]:
        timestamp = datetime.fromtimestamp(block["timestamp"])
        block_number = block["number"]
        logger.debug(f"Processing block {block_number} ({timestamp})")

        yield BlockEvent(
            block_number=block_number,
            block_hash=to_hex_str(block["hash"]) if block.get("hash") else None,
            timestamp=timestamp,
        )

        logs = await self._with_retry(
            f"get transfer logs of block {block_number}",
            lambda: self.w3.eth.get_logs(
                {
                    "fromBlock": block_number,
                    "toBlock": block_number,
                    "address": self.token_addresses,
                    "topics": [TRANSFER_EVENT_TOPIC],
                }
            ),
        )

        for tx_hash, tx_logs in self._group_by_transaction(logs).items():
            tx = await self._with_retry(
                f"get transaction {tx_hash}",
                lambda: self.w3.eth.get_transaction(tx_hash),
            )
            yield TransactionEvent(
                hash=tx_hash,
                block_number=block_number,
                from_address=tx.get("from"),
                to_address=tx.get("to"),
                logs=tx_logs,
                timestamp=timestamp,
            )

    @staticmethod
    def _group_by_transaction(logs) -> "OrderedDict[str, List[Dict[str, Any]]]":
        """Group logs by transaction hash, keeping first-seen order"""
        grouped: "OrderedDict[str, List[Dict[str, Any]]]" = OrderedDict()
        for log in logs:
            tx_hash = to_hex_str(log["transactionHash"])
            grouped.setdefault(tx_hash, []).append(dict(log))
        return grouped
