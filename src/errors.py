"""Exception hierarchy for the lending client.

Every failure carries the operation it belongs to so callers can render a
meaningful message without inspecting the exception type further.
"""
from __future__ import annotations

from typing import Any


class LendingError(Exception):
    """Base exception for all lending client errors."""

    def __init__(
        self,
        message: str,
        operation: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.details = details or {}

    def __str__(self) -> str:
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


class ValidationError(LendingError):
    """Malformed input (amount, asset, risk parameters). Never reaches the network."""


class DerivationError(LendingError):
    """No valid program address for a fixed seed shape — protocol/version mismatch."""


class RpcResponseError(LendingError):
    """A node answered a JSON-RPC request with an error object."""

    def __init__(
        self, code: int, message: str, data: Any = None, operation: str = ""
    ) -> None:
        super().__init__(message, operation=operation, details={"code": code})
        self.code = code
        self.data = data


class TransportError(LendingError):
    """The chain could not serve a read needed by the client. Nothing was sent."""


# ---------------------------------------------------------------------------
# Submission outcomes
# ---------------------------------------------------------------------------


class SubmitError(LendingError):
    """A transaction did not reach a confirmed, successful state."""


class UserRejected(SubmitError):
    """The wallet declined to sign."""

    def __init__(self, operation: str = "", message: str = "wallet declined to sign") -> None:
        super().__init__(message, operation=operation)


class Rejected(SubmitError):
    """The chain rejected the transaction at preflight or execution."""

    def __init__(
        self,
        reason: str,
        operation: str = "",
        already_exists: bool = False,
        signature: str | None = None,
        logs: list[str] | None = None,
    ) -> None:
        super().__init__(
            reason,
            operation=operation,
            details={"already_exists": already_exists, "signature": signature},
        )
        self.reason = reason
        self.already_exists = already_exists
        self.signature = signature
        self.logs = list(logs or [])


class Unconfirmed(SubmitError):
    """Confirmation was not observed in time. The transaction may still land."""

    def __init__(
        self,
        signature: str,
        operation: str = "",
        timeout: float = 0.0,
        message: str | None = None,
    ) -> None:
        super().__init__(
            message
            or f"transaction {signature} not confirmed within {timeout:g}s; outcome unknown",
            operation=operation,
            details={"signature": signature, "timeout": timeout},
        )
        self.signature = signature
        self.timeout = timeout
