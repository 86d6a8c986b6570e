"""
Materiality filter for the Huge Transfer Strategy.
"""
from typing import List, Sequence, Tuple

from tokenwatch.logger import logger
from tokenwatch.strategies.huge_transfer.filters.base import BaseFilter
from tokenwatch.strategies.huge_transfer.narrative import (
    TransferEventMetadata,
    TransferText,
    prepare_transfer_metadata,
    prepare_transfer_text,
)
from tokenwatch.strategies.huge_transfer.normalizer import TransferEvent
from tokenwatch.strategies.huge_transfer.registry import PARTIAL


class MaterialityFilter(BaseFilter):
    """
    Filter for transfers below their token's threshold.

    A transfer is material only when its amount strictly exceeds the
    threshold. Partially monitored tokens with watched parties additionally
    require the sender or recipient to be one of them.
    """

    def should_filter(self, transfer: TransferEvent) -> bool:
        info = self.registry.token(transfer.token)
        if info is None:
            return True

        if not transfer.exceeds(info.threshold):
            return True

        if info.tier == PARTIAL and info.watched_parties:
            watched = {p.lower() for p in info.watched_parties}
            if (
                transfer.from_address.lower() not in watched
                and transfer.to_address.lower() not in watched
            ):
                logger.debug(
                    f"Filtering {info.symbol} transfer #{transfer.log_index} outside watched parties"
                )
                return True

        return False

    def apply(
        self, working_set: Sequence[TransferEvent]
    ) -> Tuple[List[TransferText], List[TransferEventMetadata]]:
        """
        Report the material simple transfers of a working set

        Args:
            working_set: Transfers no matcher consumed

        Returns:
            Tuple of narrative lines and metadata records; the governance
            token yields lines only
        """
        texts = []
        metadata = []
        book = self.registry.address_book
        for transfer in working_set:
            if self.should_filter(transfer):
                continue
            text = prepare_transfer_text(transfer, book)
            texts.append(text)
            if transfer.token != self.registry.governance_token:
                metadata.append(prepare_transfer_metadata(transfer, book, text.text))
        return texts, metadata
