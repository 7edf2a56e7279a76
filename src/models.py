"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from solders.pubkey import Pubkey

LAMPORTS_PER_SOL = 10**9


@dataclass(frozen=True)
class Asset:
    """A fungible token identified by its mint address."""

    symbol: str
    mint: Pubkey
    decimals: int


@dataclass(frozen=True)
class BankAddresses:
    """Derived accounts backing one asset's bank."""

    bank: Pubkey
    treasury: Pubkey


@dataclass(frozen=True)
class TokenBalance:
    """Point-in-time token balance, in base units."""

    asset: Asset
    amount: int

    @property
    def ui_amount(self) -> Decimal:
        return Decimal(self.amount).scaleb(-self.asset.decimals)


@dataclass(frozen=True)
class Balances:
    """Native and token balances for one wallet.

    ``tokens`` maps asset symbol to a balance, or ``None`` when the wallet has
    no associated token account for that asset yet.
    """

    wallet: Pubkey
    lamports: int
    tokens: dict[str, TokenBalance | None] = field(default_factory=dict)

    @property
    def sol(self) -> Decimal:
        return Decimal(self.lamports) / LAMPORTS_PER_SOL

    def token_ui_amount(self, symbol: str) -> Decimal:
        """UI amount for ``symbol``; an absent account reads as zero."""
        balance = self.tokens.get(symbol.upper())
        return balance.ui_amount if balance is not None else Decimal(0)


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a confirmed state-changing operation."""

    operation: str
    signature: str
    balances: Balances | None = None
