from .web3_chain import ChainCollector

__all__ = ["ChainCollector"]
