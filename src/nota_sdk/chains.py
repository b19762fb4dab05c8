"""Chain and currency resolution.

Pure lookups over a deployment table supplied as configuration: no network
access happens here.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Mapping, Optional, Union

from .config import (
    NATIVE_CURRENCY,
    ZERO_ADDRESS,
    ChainDeployment,
    build_default_deployments,
)
from .exceptions import (
    NotaValidationError,
    UnsupportedChain,
    UnsupportedCurrency,
    UnsupportedModule,
)


@dataclass(frozen=True)
class TokenInfo:
    """Resolved token for a currency on a chain."""
    symbol: str
    address: str
    decimals: int

    @property
    def is_native(self) -> bool:
        return self.address == ZERO_ADDRESS


class DeploymentRegistry:
    """
    Lookup table of per-chain deployments.

    Empty addresses in the table mean "not deployed" and resolve the same way
    as missing entries.
    """

    def __init__(self, deployments: Optional[Mapping[int, ChainDeployment]] = None):
        if deployments is None:
            deployments = build_default_deployments()
        self._deployments: Dict[int, ChainDeployment] = dict(deployments)

    @property
    def chain_ids(self) -> list[int]:
        return sorted(self._deployments)

    def deployment(self, chain_id: int) -> ChainDeployment:
        """Get the deployment set for a chain."""
        try:
            return self._deployments[chain_id]
        except KeyError:
            raise UnsupportedChain(chain_id) from None

    def resolve_currency(self, chain_id: int, currency: str) -> TokenInfo:
        """Resolve a currency symbol to its token address and decimals."""
        deployment = self.deployment(chain_id)
        symbol = currency.upper()

        if symbol == NATIVE_CURRENCY:
            return TokenInfo(
                symbol=symbol,
                address=ZERO_ADDRESS,
                decimals=deployment.native_decimals,
            )

        token = deployment.tokens.get(symbol)
        if token is None or not token.address:
            raise UnsupportedCurrency(currency, chain_id)
        return TokenInfo(symbol=symbol, address=token.address, decimals=token.decimals)

    def module_address(self, chain_id: int, module: str) -> str:
        """Get a module's contract address on a chain."""
        deployment = self.deployment(chain_id)
        address = deployment.modules.get(str(module), "")
        if not address:
            raise UnsupportedModule(str(module), chain_id)
        return address

    def module_addresses(self, chain_id: int) -> Dict[str, str]:
        """All deployed modules on a chain."""
        deployment = self.deployment(chain_id)
        return {name: addr for name, addr in deployment.modules.items() if addr}


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive address comparison."""
    if not a or not b:
        return False
    return a.lower() == b.lower()


def to_base_units(amount: Union[Decimal, int, str], decimals: int) -> int:
    """
    Convert a human amount to the token's smallest unit.

    Raises NotaValidationError for negative amounts or amounts with more
    fractional digits than the token supports.
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise NotaValidationError(f"Invalid amount: {amount!r}", field="amount") from None

    if not value.is_finite() or value < 0:
        raise NotaValidationError(f"Invalid amount: {amount!r}", field="amount")

    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise NotaValidationError(
            f"Amount {amount} has more than {decimals} decimal places",
            field="amount",
        )
    return int(scaled)


def from_base_units(value: int, decimals: int) -> Decimal:
    """Convert a smallest-unit integer back to a human amount."""
    return Decimal(value).scaleb(-decimals)
