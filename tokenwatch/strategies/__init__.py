from .huge_transfer import HugeTransferStrategy

__all__ = ["HugeTransferStrategy"]
