"""
Amount formatting helpers for the Huge Transfer Strategy.
"""


class TokenUtils:
    """
    Amount rendering shared by narratives, findings and snapshots.
    """

    @staticmethod
    def format_amount(value: float) -> str:
        """Two-decimal amount used in narratives."""
        return f"{value:.2f}"

    @staticmethod
    def to_fixed(value: float) -> str:
        """
        Plain decimal string without exponent or trailing zeros

        Args:
            value: Amount to render

        Returns:
            str: e.g. "1000" for 1000.0, "1170.5" for 1170.5
        """
        text = f"{value:f}"
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return text
