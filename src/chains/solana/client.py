"""Solana JSON-RPC client with fallback support."""
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig
from ...errors import RpcResponseError

logger = logging.getLogger(__name__)

# getTokenAccountBalance on an address that holds no token account.
_ACCOUNT_NOT_FOUND_MARKERS = ("could not find account", "not a token account")


class SolanaClient:
    """Solana RPC client with automatic endpoint fallback.

    Fallback only covers transport failures. An error object answered by a
    node is raised as :class:`RpcResponseError` without trying other
    endpoints.
    """

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.commitment = config.commitment
        self.current_rpc_index = 0

    async def rpc_call(
        self, method: str, params: list[Any], fallback: bool = True
    ) -> Any:
        """Make RPC call, trying alternative endpoints on transport errors."""
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        attempts = len(self.endpoints) if fallback else 1
        last_error: Exception | None = None
        for attempt in range(attempts):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json()
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < attempts - 1:
                    logger.info("Trying next endpoint...")
                continue

            if rpc_index != self.current_rpc_index:
                logger.info("Switched to RPC endpoint: %s", rpc_url)
                self.current_rpc_index = rpc_index

            if "error" in result:
                error = result["error"] or {}
                raise RpcResponseError(
                    int(error.get("code", 0)),
                    error.get("message", "unknown RPC error"),
                    error.get("data"),
                )
            return result.get("result")

        raise RuntimeError(f"All RPC endpoints failed. Last error: {last_error}")

    async def get_balance(self, address: str) -> int:
        """Native balance in lamports."""
        result = await self.rpc_call(
            "getBalance", [address, {"commitment": self.commitment}]
        )
        return int(result.get("value", 0))

    async def get_token_account_balance(self, address: str) -> dict[str, Any] | None:
        """Token account balance, or ``None`` if the account does not exist."""
        try:
            result = await self.rpc_call(
                "getTokenAccountBalance", [address, {"commitment": self.commitment}]
            )
        except RpcResponseError as e:
            message = e.message.lower()
            if any(marker in message for marker in _ACCOUNT_NOT_FOUND_MARKERS):
                logger.debug("No token account at %s", address)
                return None
            raise
        return result.get("value")

    async def get_latest_blockhash(self) -> str:
        result = await self.rpc_call(
            "getLatestBlockhash", [{"commitment": self.commitment}]
        )
        return result["value"]["blockhash"]

    async def send_transaction(self, encoded_tx: str) -> str:
        """Send a base64 signed transaction; returns its signature.

        Sent to a single endpoint only. A signed transaction is never
        re-broadcast on another node by this client.
        """
        return await self.rpc_call(
            "sendTransaction",
            [
                encoded_tx,
                {
                    "encoding": "base64",
                    "skipPreflight": False,
                    "preflightCommitment": self.commitment,
                },
            ],
            fallback=False,
        )

    async def get_signature_status(self, signature: str) -> dict[str, Any] | None:
        """Status of one signature, or ``None`` if the node has not seen it."""
        result = await self.rpc_call(
            "getSignatureStatuses",
            [[signature], {"searchTransactionHistory": False}],
        )
        statuses = result.get("value") or [None]
        return statuses[0]
