"""Wallet balance reads — native lamports and associated token accounts."""
from __future__ import annotations

import asyncio
import logging

from solders.pubkey import Pubkey

from ..interfaces.chain import ChainClient
from ..models import Asset, Balances, TokenBalance
from ..protocols.lending.addresses import associated_token_address
from ..protocols.lending.assets import AssetRegistry

logger = logging.getLogger(__name__)


class BalanceReader:
    """Read-only balance queries. Safe to call at any time, any number of times."""

    def __init__(self, chain_client: ChainClient, assets: AssetRegistry) -> None:
        self._client = chain_client
        self._assets = assets

    async def read_native(self, wallet: Pubkey) -> int:
        """Native balance in lamports; zero is a normal result."""
        return await self._client.get_balance(str(wallet))

    async def read_token(self, wallet: Pubkey, asset: Asset) -> TokenBalance | None:
        """Balance of the wallet's associated token account for ``asset``.

        Returns ``None`` when the wallet has never held the asset.
        """
        ata = associated_token_address(wallet, asset.mint)
        value = await self._client.get_token_account_balance(str(ata))
        if value is None:
            return None
        return TokenBalance(asset=asset, amount=int(value.get("amount", 0)))

    async def read_all(self, wallet: Pubkey) -> Balances:
        """Native plus every registered asset, fetched concurrently."""
        assets = list(self._assets)
        lamports, *tokens = await asyncio.gather(
            self.read_native(wallet),
            *(self.read_token(wallet, asset) for asset in assets),
        )
        balances = Balances(
            wallet=wallet,
            lamports=lamports,
            tokens={asset.symbol: token for asset, token in zip(assets, tokens)},
        )
        logger.info(
            "Balances for %s: %s SOL, %s",
            wallet,
            balances.sol,
            ", ".join(
                f"{symbol} {balances.token_ui_amount(symbol)}" for symbol in balances.tokens
            )
            or "no tokens",
        )
        return balances
