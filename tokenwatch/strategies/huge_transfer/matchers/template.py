"""
Complex transfer template matcher for the Huge Transfer Strategy.
"""
from typing import Dict, List, Optional, Sequence, Tuple

from tokenwatch.core.events import TransactionEvent
from tokenwatch.logger import logger
from tokenwatch.strategies.huge_transfer.matchers.base import BaseMatcher, MatchResult, log_order
from tokenwatch.strategies.huge_transfer.narrative import TransferEventMetadata, TransferText
from tokenwatch.strategies.huge_transfer.normalizer import TransferEvent
from tokenwatch.strategies.huge_transfer.registry import (
    ComplexTransferTemplate,
    LegPattern,
    Registry,
)
from tokenwatch.strategies.huge_transfer.utils.address_utils import AddressUtils
from tokenwatch.strategies.huge_transfer.utils.token_utils import TokenUtils

PARTY_PREFIX = "$"


def _bind(role: Optional[str], address: str, bindings: Dict[str, str]) -> bool:
    """
    Check one role of a leg against an address, binding party variables.

    Updates ``bindings`` in place when a new party variable is bound.
    """
    if role is None:
        return True
    address = address.lower()
    if role.startswith(PARTY_PREFIX):
        party = role[len(PARTY_PREFIX):]
        if party in bindings:
            return bindings[party] == address
        bindings[party] = address
        return True
    return role.lower() == address


class TemplateMatcher(BaseMatcher):
    """
    Matcher for one complex transfer template.

    Finds the first ordered subsequence of the working set satisfying every
    leg of the template. Candidates are explored in log order, so among
    overlapping candidates the one starting earliest wins.
    """

    def __init__(self, registry: Registry, template: ComplexTransferTemplate):
        super().__init__(registry)
        self.template = template
        self._leg_tokens = [
            {registry.token_by_symbol(s).address.lower() for s in leg.tokens}
            for leg in template.legs
        ]

    def _leg_matches(
        self,
        leg_no: int,
        transfer: TransferEvent,
        chosen: List[TransferEvent],
        bindings: Dict[str, str],
    ) -> Optional[Dict[str, str]]:
        """Return the extended bindings if ``transfer`` fits leg ``leg_no``."""
        leg: LegPattern = self.template.legs[leg_no]

        if transfer.token not in self._leg_tokens[leg_no]:
            return None
        if transfer.below(leg.min_amount):
            return None

        if leg.amount_of is not None:
            reference = chosen[leg.amount_of].formatted_value
            if abs(transfer.formatted_value - reference) > leg.amount_tolerance * reference:
                return None

        candidate = dict(bindings)
        if not _bind(leg.sender, transfer.from_address, candidate):
            return None
        if not _bind(leg.recipient, transfer.to_address, candidate):
            return None
        return candidate

    def _search(
        self,
        working_set: Sequence[TransferEvent],
        order: List[int],
        leg_no: int,
        start: int,
        chosen_indexes: List[int],
        bindings: Dict[str, str],
    ) -> Optional[Tuple[List[int], Dict[str, str]]]:
        if leg_no == len(self.template.legs):
            return chosen_indexes, bindings

        chosen = [working_set[i] for i in chosen_indexes]
        for pos in range(start, len(order)):
            index = order[pos]
            extended = self._leg_matches(leg_no, working_set[index], chosen, bindings)
            if extended is None:
                continue
            found = self._search(
                working_set, order, leg_no + 1, pos + 1, chosen_indexes + [index], extended
            )
            if found is not None:
                return found
        return None

    def _render(self, legs: List[TransferEvent], bindings: Dict[str, str]) -> str:
        book = self.registry.address_book
        context = {}
        for i, transfer in enumerate(legs):
            context[f"amount{i}"] = TokenUtils.format_amount(transfer.formatted_value)
            context[f"symbol{i}"] = transfer.symbol
            context[f"from{i}"] = AddressUtils.display_name(transfer.from_address, book)
            context[f"to{i}"] = AddressUtils.display_name(transfer.to_address, book)
        for party, address in bindings.items():
            context[party] = AddressUtils.display_name(address, book)
        return self.template.description.format_map(context)

    def _metadata(
        self, legs: List[TransferEvent], bindings: Dict[str, str], text: str
    ) -> TransferEventMetadata:
        book = self.registry.address_book
        patterns = self.template.legs

        # Parties come from the first leg sent by / last leg received by a party variable
        sender = next(
            (t.from_address for t, p in zip(legs, patterns)
             if p.sender and p.sender.startswith(PARTY_PREFIX)),
            legs[0].from_address,
        )
        recipient = next(
            (t.to_address for t, p in reversed(list(zip(legs, patterns)))
             if p.recipient and p.recipient.startswith(PARTY_PREFIX)),
            legs[-1].to_address,
        )
        # Principal leg: the first one carrying the highest amount floor
        principal = max(range(len(legs)), key=lambda i: (patterns[i].min_amount, -i))

        extra = {"template": self.template.name}
        for i, transfer in enumerate(legs):
            extra[f"leg{i}"] = (
                f"{TokenUtils.format_amount(transfer.formatted_value)} {transfer.symbol}"
            )
        for party, address in bindings.items():
            extra[f"party_{party}"] = address

        return TransferEventMetadata(
            from_name=AddressUtils.display_name(sender, book),
            from_address=sender,
            to_name=AddressUtils.display_name(recipient, book),
            to_address=recipient,
            amount=TokenUtils.format_amount(legs[principal].formatted_value),
            token=legs[principal].symbol,
            comment=text,
            extra=extra,
        )

    def match(
        self, working_set: Sequence[TransferEvent], tx: TransactionEvent
    ) -> MatchResult:
        found = self._search(working_set, log_order(working_set), 0, 0, [], {})
        if found is None:
            return MatchResult()

        indexes, bindings = found
        legs = [working_set[i] for i in indexes]
        text = self._render(legs, bindings)
        logger.debug(
            f"Template {self.template.name} matched in tx {tx.hash}: "
            f"logs {[t.log_index for t in legs]}"
        )
        return MatchResult(
            consumed=frozenset(indexes),
            texts=(TransferText(log_index=min(t.log_index for t in legs), text=text),),
            metadata=(self._metadata(legs, bindings, text),),
        )
