"""
Exchange matcher for the Huge Transfer Strategy.
"""
from typing import Optional, Sequence, Set

from tokenwatch.core.events import TransactionEvent
from tokenwatch.logger import logger
from tokenwatch.strategies.huge_transfer.matchers.base import BaseMatcher, MatchResult, log_order
from tokenwatch.strategies.huge_transfer.narrative import TransferEventMetadata, TransferText
from tokenwatch.strategies.huge_transfer.normalizer import TransferEvent
from tokenwatch.strategies.huge_transfer.registry import ExchangeVenue, Registry
from tokenwatch.strategies.huge_transfer.utils.address_utils import AddressUtils
from tokenwatch.strategies.huge_transfer.utils.token_utils import TokenUtils


class ExchangeMatcher(BaseMatcher):
    """
    Matcher for swaps through registered exchange venues.

    A swap is a sold leg (token X from a party to the venue) paired with a
    bought leg (a different linked token Y from the venue to the same party
    or to the transaction originator). Sold legs are resolved in log order,
    each taking the earliest free bought leg, so results are reproducible.
    """

    def __init__(self, registry: Registry):
        super().__init__(registry)
        self._venue_tokens = {
            venue.name: {registry.token_by_symbol(s).address.lower() for s in venue.tokens}
            for venue in registry.venues
        }

    def _find_bought_leg(
        self,
        working_set: Sequence[TransferEvent],
        sold_index: int,
        venue: ExchangeVenue,
        linked_parties: Set[str],
        consumed: Set[int],
    ) -> Optional[int]:
        sold = working_set[sold_index]
        venue_address = venue.address.lower()
        tokens = self._venue_tokens[venue.name]
        for j in log_order(working_set):
            if j == sold_index or j in consumed:
                continue
            bought = working_set[j]
            if (
                bought.token in tokens
                and bought.token != sold.token
                and bought.from_address.lower() == venue_address
                and bought.to_address.lower() in linked_parties
            ):
                return j
        return None

    def match(
        self, working_set: Sequence[TransferEvent], tx: TransactionEvent
    ) -> MatchResult:
        consumed: Set[int] = set()
        texts = []
        metadata = []
        book = self.registry.address_book

        for venue in self.registry.venues:
            venue_address = venue.address.lower()
            tokens = self._venue_tokens[venue.name]

            for i in log_order(working_set):
                if i in consumed:
                    continue
                sold = working_set[i]
                if (
                    sold.token not in tokens
                    or sold.to_address.lower() != venue_address
                    or sold.below(venue.min_amount)
                ):
                    continue

                linked_parties = {sold.from_address.lower()}
                if tx.from_address:
                    linked_parties.add(tx.from_address.lower())

                j = self._find_bought_leg(working_set, i, venue, linked_parties, consumed)
                if j is None:
                    continue

                bought = working_set[j]
                consumed.update((i, j))

                party = AddressUtils.display_name(sold.from_address, book)
                text = (
                    f"**{TokenUtils.format_amount(sold.formatted_value)} {sold.symbol}** "
                    f"exchanged for **{TokenUtils.format_amount(bought.formatted_value)} "
                    f"{bought.symbol}** by {party} on {venue.name}"
                )
                texts.append(
                    TransferText(log_index=min(sold.log_index, bought.log_index), text=text)
                )
                metadata.append(
                    TransferEventMetadata(
                        from_name=party,
                        from_address=sold.from_address,
                        to_name=AddressUtils.display_name(bought.to_address, book),
                        to_address=bought.to_address,
                        amount=TokenUtils.format_amount(sold.formatted_value),
                        token=sold.symbol,
                        comment=text,
                        extra={
                            "bought_amount": TokenUtils.format_amount(bought.formatted_value),
                            "bought_token": bought.symbol,
                            "venue": venue.name,
                            "venue_address": venue.address,
                        },
                    )
                )
                logger.debug(
                    f"Exchange on {venue.name} in tx {tx.hash}: logs {sold.log_index}/{bought.log_index}"
                )

        return MatchResult(
            consumed=frozenset(consumed), texts=tuple(texts), metadata=tuple(metadata)
        )
