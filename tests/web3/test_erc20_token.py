import pytest
from unittest.mock import AsyncMock

from tokenwatch.core.web3 import AsyncERC20Token, Web3BalanceReader
from tokenwatch.strategies.huge_transfer.registry import AAVE_VAULT_ADDRESS, STETH_TOKEN_ADDRESS


def test_invalid_address(mock_web3):
    mock_web3.is_address.return_value = False

    with pytest.raises(ValueError):
        AsyncERC20Token(mock_web3, "not-an-address", 18)


@pytest.mark.asyncio
async def test_formatted_balance_at_block(mock_web3, mock_contract):
    token = AsyncERC20Token(mock_web3, STETH_TOKEN_ADDRESS, 18)

    assert await token.formatted_balance_of(AAVE_VAULT_ADDRESS, 759) == 1500.0

    mock_contract.functions.balanceOf.assert_called_with(AAVE_VAULT_ADDRESS)
    mock_contract.functions.balanceOf.return_value.call.assert_awaited_with(block_identifier=759)


@pytest.mark.asyncio
async def test_formatted_balance_uses_registered_decimals(mock_web3, mock_contract):
    mock_contract.functions.balanceOf.return_value.call = AsyncMock(return_value=25 * 10**5)
    token = AsyncERC20Token(mock_web3, STETH_TOKEN_ADDRESS, decimals=6)

    assert await token.formatted_balance_of(AAVE_VAULT_ADDRESS) == 2.5
    mock_contract.functions.balanceOf.return_value.call.assert_awaited_with(block_identifier="latest")


@pytest.mark.asyncio
async def test_balance_reader_caches_tokens(mock_web3, mock_contract):
    reader = Web3BalanceReader(mock_web3)

    balance = await reader.get_balance(STETH_TOKEN_ADDRESS, AAVE_VAULT_ADDRESS, 690, 18)
    await reader.get_balance(STETH_TOKEN_ADDRESS.upper().replace("0X", "0x"), AAVE_VAULT_ADDRESS, 759, 18)

    assert balance == 1500.0
    assert mock_web3.eth.contract.call_count == 1


@pytest.mark.asyncio
async def test_balance_reader_propagates_errors(mock_web3, mock_contract):
    mock_contract.functions.balanceOf.return_value.call = AsyncMock(side_effect=ConnectionError("down"))
    reader = Web3BalanceReader(mock_web3)

    with pytest.raises(ConnectionError):
        await reader.get_balance(STETH_TOKEN_ADDRESS, AAVE_VAULT_ADDRESS, 690, 18)


def test_balance_reader_from_url():
    reader = Web3BalanceReader("http://localhost:8545")

    assert reader.web3.provider.endpoint_uri == "http://localhost:8545"
