"""
Address helpers for the Huge Transfer Strategy.
"""
from typing import Mapping


class AddressUtils:
    """
    Rendering of addresses and transaction links for narratives.
    """

    DEFAULT_EXPLORER_URL = "https://etherscan.io"

    @staticmethod
    def short_address(address: str) -> str:
        """
        Shorten an address to 0x1234...abcd form

        Args:
            address: Address to shorten

        Returns:
            str: Shortened address
        """
        if len(address) <= 12:
            return address
        return f"{address[:6]}...{address[-4:]}"

    @staticmethod
    def display_name(address: str, address_book: Mapping[str, str]) -> str:
        """
        Get a human-readable name for an address

        Args:
            address: Address to render
            address_book: Known lowercase address -> name table

        Returns:
            str: Known name, or the shortened address
        """
        return address_book.get(address.lower(), AddressUtils.short_address(address))

    @staticmethod
    def tx_link(tx_hash: str, explorer_url: str = DEFAULT_EXPLORER_URL) -> str:
        """Block explorer link for a transaction hash."""
        return f"{explorer_url.rstrip('/')}/tx/{tx_hash}"
