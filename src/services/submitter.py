"""Sign → send → confirm as one unit, with uniform error reporting."""
from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any

import aiohttp
from solders.hash import Hash
from solders.instruction import Instruction
from solders.message import Message
from solders.signature import Signature
from solders.transaction import Transaction

from ..config import ChainConfig
from ..errors import Rejected, RpcResponseError, TransportError, Unconfirmed, UserRejected
from ..interfaces.chain import ChainClient
from ..interfaces.wallet import Wallet
from ..protocols.lending import program_errors

logger = logging.getLogger(__name__)

# Raised by chain clients when no endpoint could be reached.
TRANSPORT_ERRORS = (RuntimeError, aiohttp.ClientError, OSError)

_COMMITMENT_RANK = {"processed": 0, "confirmed": 1, "finalized": 2}


class TransactionSubmitter:
    """Submits transactions without ever retrying or re-signing them."""

    def __init__(self, chain_client: ChainClient, config: ChainConfig) -> None:
        self._client = chain_client
        self._commitment = config.commitment
        self._confirm_timeout = config.confirm_timeout
        self._poll_interval = config.poll_interval

    async def submit(
        self, operation: str, instructions: list[Instruction], wallet: Wallet
    ) -> str:
        """Sign, send and confirm; returns the transaction signature.

        Raises:
            UserRejected: the wallet declined to sign.
            Rejected: preflight or execution failed on chain.
            Unconfirmed: no confirmation within the timeout, or the send
                response was lost; outcome unknown.
            TransportError: the chain was unreachable before anything was sent.
        """
        try:
            latest = await self._client.get_latest_blockhash()
        except (*TRANSPORT_ERRORS, RpcResponseError) as e:
            logger.error("%s: could not fetch a blockhash: %s", operation, e)
            raise TransportError(f"could not fetch a blockhash: {e}", operation) from e
        blockhash = Hash.from_string(latest)
        message = Message.new_with_blockhash(instructions, wallet.pubkey, blockhash)
        unsigned = Transaction.new_unsigned(message)

        try:
            signed = await wallet.sign_transaction(unsigned)
        except UserRejected as e:
            logger.info("%s: wallet declined to sign", operation)
            raise UserRejected(operation, e.message) from e

        if signed.signatures[0] == Signature.default():
            raise UserRejected(operation, "transaction returned unsigned")

        signature = str(signed.signatures[0])
        encoded = base64.b64encode(bytes(signed)).decode()

        try:
            await self._client.send_transaction(encoded)
        except RpcResponseError as e:
            raise self._preflight_rejection(operation, e) from e
        except TRANSPORT_ERRORS as e:
            logger.warning("%s: send of %s did not complete: %s", operation, signature, e)
            raise Unconfirmed(
                signature,
                operation,
                message=f"send of transaction {signature} failed ({e}); outcome unknown",
            ) from e

        logger.info("%s: sent %s, awaiting %s", operation, signature, self._commitment)
        await self._await_confirmation(operation, signature)
        logger.info("%s: confirmed %s", operation, signature)
        return signature

    @staticmethod
    def _preflight_rejection(operation: str, error: RpcResponseError) -> Rejected:
        data = error.data if isinstance(error.data, dict) else {}
        err = data.get("err")
        logs = list(data.get("logs") or [])
        if err is None and not logs:
            reason = error.message
        else:
            reason = program_errors.describe(err, logs)
        already_exists = program_errors.is_already_in_use(err, logs)
        logger.warning("%s rejected: %s", operation, reason)
        return Rejected(reason, operation, already_exists=already_exists, logs=logs)

    async def _await_confirmation(self, operation: str, signature: str) -> None:
        try:
            status = await asyncio.wait_for(
                self._poll_status(signature), timeout=self._confirm_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "%s: %s not confirmed after %.1fs", operation, signature, self._confirm_timeout
            )
            raise Unconfirmed(signature, operation, self._confirm_timeout) from None

        err = status.get("err")
        if err is not None:
            reason = program_errors.describe(err)
            logger.warning("%s failed on chain: %s", operation, reason)
            raise Rejected(
                reason,
                operation,
                already_exists=program_errors.is_already_in_use(err, []),
                signature=signature,
            )

    async def _poll_status(self, signature: str) -> dict[str, Any]:
        target = _COMMITMENT_RANK.get(self._commitment, 1)
        while True:
            try:
                status = await self._client.get_signature_status(signature)
            except (*TRANSPORT_ERRORS, RpcResponseError) as e:
                logger.debug("Status poll for %s failed: %s", signature, e)
                status = None

            if status is not None:
                if status.get("err") is not None:
                    return status
                reached = _COMMITMENT_RANK.get(status.get("confirmationStatus") or "", -1)
                if reached >= target:
                    return status

            await asyncio.sleep(self._poll_interval)
