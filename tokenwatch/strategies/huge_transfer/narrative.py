"""
Narrative fragments and their aggregation into findings.
"""
from typing import Dict, Iterable, List, Mapping

from pydantic import BaseModel, Field

from tokenwatch.core.findings import Finding, FindingSeverity, FindingType
from tokenwatch.logger import logger
from tokenwatch.strategies.huge_transfer.normalizer import TransferEvent
from tokenwatch.strategies.huge_transfer.utils.address_utils import AddressUtils
from tokenwatch.strategies.huge_transfer.utils.token_utils import TokenUtils

HUGE_TRANSFERS_ALERT_ID = "HUGE-TOKEN-TRANSFERS-IN-SINGLE-TX"
HUGE_TRANSFERS_TECH_ALERT_ID = "HUGE-TOKEN-TRANSFERS-TECH"

TECH_ALERT_NOTE = "NOTE: This is tech alert. Do not route it to the alerts channel!"


class TransferText(BaseModel):
    """A narrative line positioned by the log index it describes"""
    log_index: int
    text: str

    class Config:
        frozen = True


class TransferEventMetadata(BaseModel):
    """
    Structured record of one reported transfer or pattern

    Every value is a string so the record can travel as finding metadata.
    """
    from_name: str
    from_address: str
    to_name: str
    to_address: str
    amount: str
    token: str
    comment: str
    extra: Dict[str, str] = Field(default_factory=dict)

    class Config:
        frozen = True

    def to_metadata(self) -> Dict[str, str]:
        metadata = {
            "from": self.from_name,
            "from_address": self.from_address,
            "to": self.to_name,
            "to_address": self.to_address,
            "amount": self.amount,
            "token": self.token,
            "comment": self.comment,
        }
        metadata.update(self.extra)
        return metadata


def prepare_transfer_text(
    transfer: TransferEvent, address_book: Mapping[str, str]
) -> TransferText:
    """Narrative line for a simple transfer."""
    text = (
        f"**{TokenUtils.format_amount(transfer.formatted_value)} {transfer.symbol}** "
        f"were transferred from {AddressUtils.display_name(transfer.from_address, address_book)} "
        f"to {AddressUtils.display_name(transfer.to_address, address_book)}"
    )
    return TransferText(log_index=transfer.log_index, text=text)


def prepare_transfer_metadata(
    transfer: TransferEvent,
    address_book: Mapping[str, str],
    comment: str,
    extra: Dict[str, str] = None,
) -> TransferEventMetadata:
    return TransferEventMetadata(
        from_name=AddressUtils.display_name(transfer.from_address, address_book),
        from_address=transfer.from_address,
        to_name=AddressUtils.display_name(transfer.to_address, address_book),
        to_address=transfer.to_address,
        amount=TokenUtils.format_amount(transfer.formatted_value),
        token=transfer.symbol,
        comment=comment,
        extra=extra or {},
    )


def tech_comment(comment: str) -> str:
    """First line of a narrative comment without ``*`` emphasis."""
    return comment.split("\n")[0].replace("*", "")


class NarrativeAggregator:
    """
    Builds the findings of one transaction

    One narrative finding joining every fragment in log order, plus one
    technical finding per metadata record.
    """

    def __init__(self, explorer_url: str = AddressUtils.DEFAULT_EXPLORER_URL):
        self.explorer_url = explorer_url

    def narrative(self, texts: Iterable[TransferText]) -> str:
        # sorted() is stable, equal log indexes keep production order
        ordered = sorted(texts, key=lambda t: t.log_index)
        return "\n".join(t.text for t in ordered)

    def aggregate(
        self,
        texts: Iterable[TransferText],
        metadata: Iterable[TransferEventMetadata],
        tx_hash: str,
    ) -> List[Finding]:
        """
        Build findings for one transaction

        Args:
            texts: Narrative fragments from every stage
            metadata: Structured records from every stage
            tx_hash: Transaction hash used for the explorer link

        Returns:
            List[Finding]: Narrative finding first, then technical findings
        """
        findings = []
        link = AddressUtils.tx_link(tx_hash, self.explorer_url)

        narrative = self.narrative(texts)
        if narrative:
            findings.append(
                Finding(
                    name="Huge token(s) transfer of Lido interest in a single TX",
                    description=f"{narrative}\n{link}",
                    alert_id=HUGE_TRANSFERS_ALERT_ID,
                    severity=FindingSeverity.INFO,
                    type=FindingType.INFO,
                )
            )

        for meta in metadata:
            comment = tech_comment(meta.comment)
            findings.append(
                Finding(
                    name="Huge token transfer of Lido interest (tech)",
                    description=f"{meta.comment}\n{link}\n{TECH_ALERT_NOTE}",
                    alert_id=HUGE_TRANSFERS_TECH_ALERT_ID,
                    severity=FindingSeverity.INFO,
                    type=FindingType.INFO,
                    metadata=meta.model_copy(update={"comment": comment}).to_metadata(),
                )
            )

        if findings:
            logger.debug(f"Aggregated {len(findings)} findings for tx {tx_hash}")
        return findings
