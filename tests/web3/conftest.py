import pytest
from unittest.mock import AsyncMock, MagicMock


@pytest.fixture
def mock_contract():
    """Create a mock ERC20 contract with an async balanceOf call."""
    contract = MagicMock()
    contract.functions.balanceOf.return_value.call = AsyncMock(return_value=1500 * 10**18)
    return contract


@pytest.fixture
def mock_web3(mock_contract):
    """Create a mock AsyncWeb3 instance returning mock_contract."""
    web3 = MagicMock()
    web3.is_address.return_value = True
    web3.to_checksum_address.side_effect = lambda address: address
    web3.eth.contract.return_value = mock_contract
    return web3
