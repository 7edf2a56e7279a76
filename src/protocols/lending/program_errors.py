"""Decoding of chain rejection payloads into readable reasons — no I/O."""
from __future__ import annotations

from typing import Any

# Lending program error codes (Anchor offsets custom errors by 6000).
PROGRAM_ERRORS: dict[int, str] = {
    6000: "Insufficient funds for this operation.",
    6001: "Request exceeds borrowable amount.",
    6002: "Over repay amount.",
    6003: "Health factor is above 1.0, liquidation not required.",
}

# Anchor framework errors commonly hit by a mis-addressed client.
ANCHOR_ERRORS: dict[int, str] = {
    2000: "A mut constraint was violated",
    2003: "A raw constraint was violated",
    2006: "A seeds constraint was violated",
    3001: "The account discriminator did not match",
    3003: "Failed to deserialize the account",
    3007: "The given account is owned by a different program than expected",
    3012: "The program expected this account to be already initialized",
}

ALREADY_IN_USE_CODE = 0
_ALREADY_IN_USE_MARKER = "already in use"


def custom_error_code(err: Any) -> int | None:
    """Extract the custom code from ``{"InstructionError": [idx, {"Custom": n}]}``."""
    if not isinstance(err, dict):
        return None
    instruction_error = err.get("InstructionError")
    if not isinstance(instruction_error, list) or len(instruction_error) != 2:
        return None
    detail = instruction_error[1]
    if isinstance(detail, dict) and "Custom" in detail:
        return int(detail["Custom"])
    return None


def is_already_in_use(err: Any, logs: list[str]) -> bool:
    """True when the system program refused to create an existing account."""
    if any(_ALREADY_IN_USE_MARKER in line for line in logs):
        return True
    return custom_error_code(err) == ALREADY_IN_USE_CODE


def describe(err: Any, logs: list[str] | None = None) -> str:
    """Human-readable reason for a transaction error object."""
    logs = logs or []

    if is_already_in_use(err, logs):
        return "account already exists"

    code = custom_error_code(err)
    if code is not None:
        if code in PROGRAM_ERRORS:
            return PROGRAM_ERRORS[code]
        if code in ANCHOR_ERRORS:
            return ANCHOR_ERRORS[code]
        return f"custom program error {code}"

    if isinstance(err, str):
        return err
    if isinstance(err, dict) and "InstructionError" in err:
        detail = err["InstructionError"]
        if isinstance(detail, list) and len(detail) == 2:
            return f"instruction {detail[0]} failed: {detail[1]}"
    if err is None:
        return "unknown error"
    return str(err)
