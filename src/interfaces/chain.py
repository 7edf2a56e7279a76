"""Chain client protocol — blockchain RPC abstraction."""
from typing import Any, Protocol


class ChainClient(Protocol):
    """Abstract interface for the chain reads and writes the lending client needs."""

    async def get_balance(self, address: str) -> int: ...

    async def get_token_account_balance(self, address: str) -> dict[str, Any] | None: ...

    async def get_latest_blockhash(self) -> str: ...

    async def send_transaction(self, encoded_tx: str) -> str: ...

    async def get_signature_status(self, signature: str) -> dict[str, Any] | None: ...
