"""Registry of assets the lending program has banks for."""
from __future__ import annotations

from collections.abc import Iterator

from solders.pubkey import Pubkey

from ...config import AssetConfig
from ...errors import ValidationError
from ...models import Asset


class AssetRegistry:
    """Symbol → :class:`Asset` lookup with a designated reference asset."""

    def __init__(self, assets: dict[str, AssetConfig], reference_symbol: str) -> None:
        self._assets: dict[str, Asset] = {
            symbol.upper(): Asset(
                symbol=symbol.upper(),
                mint=Pubkey.from_string(cfg.mint),
                decimals=cfg.decimals,
            )
            for symbol, cfg in assets.items()
        }
        self._reference = self.get(reference_symbol)

    def get(self, symbol: str) -> Asset:
        asset = self._assets.get(symbol.upper())
        if asset is None:
            known = ", ".join(sorted(self._assets))
            raise ValidationError(f"unknown asset '{symbol}' (known: {known})")
        return asset

    @property
    def reference(self) -> Asset:
        return self._reference

    def __iter__(self) -> Iterator[Asset]:
        return iter(self._assets.values())

    def __len__(self) -> int:
        return len(self._assets)
