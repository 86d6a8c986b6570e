"""
Static registries for the huge transfer strategy.

Everything here is read-only configuration: frozen pydantic models held in
tuples and ``MappingProxyType`` tables, built once by ``build_registry`` and
shared by reference between handlers.
"""
from types import MappingProxyType
from typing import Dict, Iterable, Optional, Tuple

from pydantic import BaseModel

from tokenwatch.core.web3.base import ZERO_ADDRESS

MONITORED = "monitored"
PARTIAL = "partial"

# Ethereum mainnet addresses
STETH_TOKEN_ADDRESS = "0xae7ab96520de3a18e5e111b5eaab095312d7fe84"
WSTETH_TOKEN_ADDRESS = "0x7f39c581f595b53c5cb19bd0b3f8da6c935e2ca0"
LDO_TOKEN_ADDRESS = "0x5a98fcbea516cf06857215779fd812ca3bef1b32"
ASTETH_TOKEN_ADDRESS = "0x1982b2f5814301d4e9a8b0201555376e62f82428"
STECRV_TOKEN_ADDRESS = "0x06325440d014e39736583c165c2963ba99faf14e"
WETH_TOKEN_ADDRESS = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"

AAVE_VAULT_ADDRESS = ASTETH_TOKEN_ADDRESS  # aToken contract holds the stETH
WSTETH_A_VAULT_ADDRESS = "0x10cd5fbe1b404b7e19ef964b63939907bdaf42e2"
WSTETH_B_VAULT_ADDRESS = "0x248ccbf4864221fc0e840f29bb042ad5bfc89b5c"
CURVE_STETH_POOL_ADDRESS = "0xdc24316b9ae028f1497c275eb9192a3ea0f67022"
UNISWAP_V3_WSTETH_POOL_ADDRESS = "0x109830a1aaad605bbf02a9dfa7b0b92ec2fb7daa"
LIDO_TREASURY_ADDRESS = "0x3e40d73eb977dc6a537af587d48316fee66e9c8c"
WITHDRAWAL_QUEUE_ADDRESS = "0x889edc2edab5f40e902b864ad4d7ade8e412f9b1"


class TokenInfo(BaseModel):
    """
    A token under surveillance

    Partially monitored tokens may restrict reporting to transfers that
    touch one of ``watched_parties``.
    """
    address: str
    symbol: str
    decimals: int = 18
    threshold: float
    tier: str = MONITORED
    watched_parties: Tuple[str, ...] = ()

    class Config:
        frozen = True


class LegPattern(BaseModel):
    """
    Shape of one leg of a complex transfer

    ``sender`` / ``recipient`` are either None (any address), a literal
    address, or a party variable starting with ``$``. A party variable binds
    to the first address it matches and must match the same address in
    every later leg. ``amount_of`` links this leg's amount to an earlier
    leg within ``amount_tolerance`` (relative).
    """
    tokens: Tuple[str, ...]
    sender: Optional[str] = None
    recipient: Optional[str] = None
    min_amount: float = 0.0
    amount_of: Optional[int] = None
    amount_tolerance: float = 0.0

    class Config:
        frozen = True


class ComplexTransferTemplate(BaseModel):
    """
    Ordered multi-leg pattern reported as one logical transfer

    ``description`` is a format string rendered with ``amount{i}``,
    ``symbol{i}``, ``from{i}``, ``to{i}`` per leg and one key per party
    variable (without the ``$``).
    """
    name: str
    legs: Tuple[LegPattern, ...]
    description: str

    class Config:
        frozen = True


class ExchangeVenue(BaseModel):
    """A swap venue and the economically linked tokens it trades"""
    name: str
    address: str
    tokens: Tuple[str, ...]
    min_amount: float = 0.0

    class Config:
        frozen = True


class VaultSpec(BaseModel):
    """A custodial balance sampled for drift"""
    key: str
    name: str
    token: str
    holder: str

    class Config:
        frozen = True


class Registry(BaseModel):
    """Immutable lookup tables shared by all handlers"""
    tokens: MappingProxyType  # lowercase address -> TokenInfo
    governance_token: str
    templates: Tuple[ComplexTransferTemplate, ...]
    venues: Tuple[ExchangeVenue, ...]
    vaults: Tuple[VaultSpec, ...]
    address_book: MappingProxyType  # lowercase address -> display name

    class Config:
        frozen = True
        arbitrary_types_allowed = True

    def token(self, address: str) -> Optional[TokenInfo]:
        return self.tokens.get(address.lower())

    def token_by_symbol(self, symbol: str) -> TokenInfo:
        for info in self.tokens.values():
            if info.symbol == symbol:
                return info
        raise ValueError(f"Unknown token symbol: {symbol}")

    @property
    def monitored_addresses(self) -> Tuple[str, ...]:
        return tuple(self.tokens.keys())


DEFAULT_TOKENS = (
    TokenInfo(address=STETH_TOKEN_ADDRESS, symbol="stETH", threshold=5000),
    TokenInfo(address=WSTETH_TOKEN_ADDRESS, symbol="wstETH", threshold=5000),
    TokenInfo(address=LDO_TOKEN_ADDRESS, symbol="LDO", threshold=2_000_000),
    TokenInfo(
        address=ASTETH_TOKEN_ADDRESS, symbol="astETH", threshold=10000, tier=PARTIAL
    ),
    # Only LP mints and burns are interesting
    TokenInfo(
        address=STECRV_TOKEN_ADDRESS,
        symbol="steCRV",
        threshold=10000,
        tier=PARTIAL,
        watched_parties=(ZERO_ADDRESS,),
    ),
    TokenInfo(
        address=WETH_TOKEN_ADDRESS,
        symbol="WETH",
        threshold=5000,
        tier=PARTIAL,
        watched_parties=(UNISWAP_V3_WSTETH_POOL_ADDRESS,),
    ),
)

DEFAULT_TEMPLATES = (
    ComplexTransferTemplate(
        name="wsteth_wrap",
        legs=(
            LegPattern(
                tokens=("stETH",),
                sender="$user",
                recipient=WSTETH_TOKEN_ADDRESS,
                min_amount=5000,
            ),
            LegPattern(tokens=("wstETH",), sender=ZERO_ADDRESS, recipient="$user"),
        ),
        description="**{amount0} stETH** wrapped to **{amount1} wstETH** by {user}",
    ),
    ComplexTransferTemplate(
        name="wsteth_unwrap",
        legs=(
            LegPattern(
                tokens=("wstETH",),
                sender="$user",
                recipient=ZERO_ADDRESS,
                min_amount=5000,
            ),
            LegPattern(tokens=("stETH",), sender=WSTETH_TOKEN_ADDRESS, recipient="$user"),
        ),
        description="**{amount0} wstETH** unwrapped to **{amount1} stETH** by {user}",
    ),
    ComplexTransferTemplate(
        name="aave_deposit",
        legs=(
            LegPattern(
                tokens=("stETH",),
                sender="$user",
                recipient=AAVE_VAULT_ADDRESS,
                min_amount=5000,
            ),
            LegPattern(
                tokens=("astETH",),
                sender=ZERO_ADDRESS,
                recipient="$beneficiary",
                amount_of=0,
                amount_tolerance=0.01,
            ),
        ),
        description=(
            "**{amount0} stETH** deposited to AAVE by {user}, "
            "**{amount1} astETH** minted to {beneficiary}"
        ),
    ),
    ComplexTransferTemplate(
        name="aave_withdrawal",
        legs=(
            LegPattern(tokens=("astETH",), sender="$user", recipient=ZERO_ADDRESS),
            LegPattern(
                tokens=("stETH",),
                sender=AAVE_VAULT_ADDRESS,
                recipient="$receiver",
                min_amount=5000,
                amount_of=0,
                amount_tolerance=0.01,
            ),
        ),
        description=(
            "**{amount1} stETH** withdrawn from AAVE to {receiver}, "
            "**{amount0} astETH** burned by {user}"
        ),
    ),
    ComplexTransferTemplate(
        name="curve_add_liquidity",
        legs=(
            LegPattern(
                tokens=("stETH",),
                sender="$user",
                recipient=CURVE_STETH_POOL_ADDRESS,
                min_amount=5000,
            ),
            LegPattern(tokens=("steCRV",), sender=ZERO_ADDRESS, recipient="$user"),
        ),
        description=(
            "**{amount0} stETH** added to Curve stETH pool by {user}, "
            "**{amount1} steCRV** minted"
        ),
    ),
)

DEFAULT_VENUES = (
    ExchangeVenue(
        name="Uniswap V3 wstETH/ETH pool",
        address=UNISWAP_V3_WSTETH_POOL_ADDRESS,
        tokens=("wstETH", "WETH"),
        min_amount=5000,
    ),
)

DEFAULT_VAULTS = (
    VaultSpec(
        key="aaveVaultBalance",
        name="AAVE vault",
        token="stETH",
        holder=AAVE_VAULT_ADDRESS,
    ),
    VaultSpec(
        key="makerAVaultBalance",
        name="Maker wstETH-A vault",
        token="wstETH",
        holder=WSTETH_A_VAULT_ADDRESS,
    ),
    VaultSpec(
        key="makerBVaultBalance",
        name="Maker wstETH-B vault",
        token="wstETH",
        holder=WSTETH_B_VAULT_ADDRESS,
    ),
)

DEFAULT_ADDRESS_BOOK = {
    ZERO_ADDRESS: "Null address",
    STETH_TOKEN_ADDRESS: "stETH contract",
    WSTETH_TOKEN_ADDRESS: "wstETH contract",
    ASTETH_TOKEN_ADDRESS: "AAVE astETH",
    WSTETH_A_VAULT_ADDRESS: "Maker wstETH-A vault",
    WSTETH_B_VAULT_ADDRESS: "Maker wstETH-B vault",
    CURVE_STETH_POOL_ADDRESS: "Curve stETH pool",
    UNISWAP_V3_WSTETH_POOL_ADDRESS: "Uniswap V3 wstETH/ETH pool",
    LIDO_TREASURY_ADDRESS: "Lido treasury",
    WITHDRAWAL_QUEUE_ADDRESS: "Lido withdrawal queue",
}


def build_registry(
    tokens: Iterable[TokenInfo] = DEFAULT_TOKENS,
    templates: Iterable[ComplexTransferTemplate] = DEFAULT_TEMPLATES,
    venues: Iterable[ExchangeVenue] = DEFAULT_VENUES,
    vaults: Iterable[VaultSpec] = DEFAULT_VAULTS,
    address_book: Optional[Dict[str, str]] = None,
    governance_token: str = LDO_TOKEN_ADDRESS,
    thresholds: Optional[Dict[str, float]] = None,
) -> Registry:
    """
    Build the immutable registry, checking cross references

    Args:
        tokens: Monitored and partially monitored tokens
        templates: Complex transfer templates, tried in this order
        venues: Exchange venues
        vaults: Vaults sampled for drift
        address_book: Known address -> display name
        governance_token: Token whose simple transfers never yield metadata
        thresholds: Per-symbol threshold overrides

    Returns:
        Registry: Shared read-only tables

    Raises:
        ValueError: If a template is malformed or anything names an unknown token
    """
    thresholds = thresholds or {}
    table = {}
    for info in tokens:
        if info.symbol in thresholds:
            info = info.model_copy(update={"threshold": float(thresholds[info.symbol])})
        table[info.address.lower()] = info

    symbols = {info.symbol for info in table.values()}

    templates = tuple(templates)
    for template in templates:
        if not template.legs:
            raise ValueError(f"Template {template.name} has no legs")
        for i, leg in enumerate(template.legs):
            if leg.amount_of is not None and not 0 <= leg.amount_of < i:
                raise ValueError(
                    f"Template {template.name} leg {i} links to leg {leg.amount_of}, "
                    f"only earlier legs can be referenced"
                )
            unknown = set(leg.tokens) - symbols
            if unknown:
                raise ValueError(
                    f"Template {template.name} references unknown tokens: {sorted(unknown)}"
                )

    venues = tuple(venues)
    for venue in venues:
        unknown = set(venue.tokens) - symbols
        if unknown:
            raise ValueError(
                f"Venue {venue.name} references unknown tokens: {sorted(unknown)}"
            )

    vaults = tuple(vaults)
    for vault in vaults:
        if vault.token not in symbols:
            raise ValueError(f"Vault {vault.name} references unknown token: {vault.token}")

    book = dict(DEFAULT_ADDRESS_BOOK if address_book is None else address_book)

    return Registry(
        tokens=MappingProxyType(table),
        governance_token=governance_token.lower(),
        templates=templates,
        venues=venues,
        vaults=vaults,
        address_book=MappingProxyType({k.lower(): v for k, v in book.items()}),
    )
