from typing import Dict, Union

from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.types import BlockIdentifier

from tokenwatch.core.web3.base import ERC20_ABI, format_token_amount


class AsyncERC20Token:
    """
    Async ERC20 Token Interface
    Simplified interface for reading ERC20 balances asynchronously
    """

    def __init__(self, web3: AsyncWeb3, address: str, decimals: int):
        """
        Initialize Async ERC20 Token interface

        Args:
            web3: AsyncWeb3 instance
            address: Token contract address
            decimals: Token decimals as registered
        """
        if not web3.is_address(address):
            raise ValueError(f"Invalid ERC20 token address: {address}")

        self.web3 = web3
        self.address = web3.to_checksum_address(address)
        self.contract = web3.eth.contract(address=self.address, abi=ERC20_ABI)
        self.decimals = decimals

    async def balance_of(
        self, address: str, block_identifier: BlockIdentifier = "latest"
    ) -> int:
        """
        Get token balance for an address

        Args:
            address: Address to query balance for
            block_identifier: Block height (or tag) to read the balance at

        Returns:
            int: Raw token balance (unformatted)
        """
        address = self.web3.to_checksum_address(address)
        return await self.contract.functions.balanceOf(address).call(
            block_identifier=block_identifier
        )

    async def formatted_balance_of(
        self, address: str, block_identifier: BlockIdentifier = "latest"
    ) -> float:
        """Balance of an address adjusted by the token decimals"""
        raw_balance = await self.balance_of(address, block_identifier)
        return format_token_amount(raw_balance, self.decimals)


class Web3BalanceReader:
    """
    Point-in-time balance lookups for (token, holder, block) triples

    Token contract wrappers are cached per address. Errors from the node
    propagate to the caller.
    """

    def __init__(self, web3: Union[AsyncWeb3, str]):
        if isinstance(web3, str):
            web3 = AsyncWeb3(AsyncHTTPProvider(web3))
        self.web3 = web3
        self._tokens: Dict[str, AsyncERC20Token] = {}

    def _get_token(self, token_address: str, decimals: int) -> AsyncERC20Token:
        key = token_address.lower()
        if key not in self._tokens:
            self._tokens[key] = AsyncERC20Token(self.web3, token_address, decimals)
        return self._tokens[key]

    async def get_balance(
        self,
        token_address: str,
        holder: str,
        block_number: int,
        decimals: int,
    ) -> float:
        """
        Read a decimal-adjusted balance at a given block height

        Args:
            token_address: ERC20 contract address
            holder: Address holding the balance
            block_number: Block height to read at
            decimals: Registered token decimals

        Returns:
            float: Balance divided by 10**decimals
        """
        token = self._get_token(token_address, decimals)
        return await token.formatted_balance_of(holder, block_number)

    async def get_block_number(self) -> int:
        return await self.web3.eth.block_number
