"""Instruction builders for the lending program — pure, no I/O.

Instruction data follows the Anchor convention:
    data = sha256("global:<instruction_name>")[:8] + borsh(args)
"""
from __future__ import annotations

import hashlib
import struct
from decimal import Decimal

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID

from ...errors import ValidationError
from ...models import Asset
from .addresses import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    AddressDeriver,
    associated_token_address,
)
from .amounts import U64_MAX, to_base_units
from .assets import AssetRegistry

INIT_BANK = "init_bank"
INIT_USER = "init_user"
DEPOSIT = "deposit"
WITHDRAW = "withdraw"
BORROW = "borrow"
REPAY = "repay"

TOKEN_OPERATIONS = (DEPOSIT, WITHDRAW, BORROW, REPAY)


def anchor_discriminator(instruction_name: str) -> bytes:
    """First 8 bytes of sha256("global:<name>")."""
    return hashlib.sha256(f"global:{instruction_name}".encode()).digest()[:8]


def encode_u64(value: int) -> bytes:
    if not 0 <= value <= U64_MAX:
        raise ValidationError(f"value {value} does not fit in u64")
    return struct.pack("<Q", value)


def _validate_risk_params(liquidation_threshold: int, max_ltv: int) -> None:
    for name, value in (
        ("liquidation_threshold", liquidation_threshold),
        ("max_ltv", max_ltv),
    ):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{name} must be an integer percentage", INIT_BANK)
        if not 0 < value <= 100:
            raise ValidationError(f"{name} must be between 1 and 100, got {value}", INIT_BANK)
    if max_ltv > liquidation_threshold:
        raise ValidationError(
            f"max_ltv ({max_ltv}) must not exceed liquidation_threshold "
            f"({liquidation_threshold})",
            INIT_BANK,
        )


class OperationBuilder:
    """Builds one instruction per lending operation.

    Bank, treasury and user account addresses are always derived here from
    the asset mint and the signer; callers never pass them in.
    """

    def __init__(
        self,
        deriver: AddressDeriver,
        assets: AssetRegistry,
        default_liquidation_threshold: int = 80,
        default_max_ltv: int = 70,
    ) -> None:
        self._deriver = deriver
        self._assets = assets
        self._default_liquidation_threshold = default_liquidation_threshold
        self._default_max_ltv = default_max_ltv

    @property
    def program_id(self) -> Pubkey:
        return self._deriver.program_id

    def _instruction(
        self, name: str, args: bytes, accounts: list[AccountMeta]
    ) -> Instruction:
        return Instruction(self.program_id, anchor_discriminator(name) + args, accounts)

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------

    def init_bank(
        self,
        signer: Pubkey,
        symbol: str,
        liquidation_threshold: int | None = None,
        max_ltv: int | None = None,
    ) -> Instruction:
        """Create the bank and treasury for an asset."""
        asset = self._asset(INIT_BANK, symbol)
        if liquidation_threshold is None:
            liquidation_threshold = self._default_liquidation_threshold
        if max_ltv is None:
            max_ltv = self._default_max_ltv
        _validate_risk_params(liquidation_threshold, max_ltv)

        addresses = self._deriver.bank_addresses(asset.mint)
        accounts = [
            AccountMeta(signer, is_signer=True, is_writable=True),
            AccountMeta(asset.mint, is_signer=False, is_writable=False),
            AccountMeta(addresses.bank, is_signer=False, is_writable=True),
            AccountMeta(addresses.treasury, is_signer=False, is_writable=True),
            AccountMeta(TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        ]
        args = encode_u64(liquidation_threshold) + encode_u64(max_ltv)
        return self._instruction(INIT_BANK, args, accounts)

    def init_user(self, signer: Pubkey) -> Instruction:
        """Create the signer's user account, recording the reference asset."""
        user_account = self._deriver.user_account(signer)
        accounts = [
            AccountMeta(user_account, is_signer=False, is_writable=True),
            AccountMeta(signer, is_signer=True, is_writable=True),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        ]
        return self._instruction(INIT_USER, bytes(self._assets.reference.mint), accounts)

    # ------------------------------------------------------------------
    # Token operations
    # ------------------------------------------------------------------

    def token_operation(
        self,
        name: str,
        signer: Pubkey,
        symbol: str,
        amount: str | int | float | Decimal,
    ) -> Instruction:
        """Build deposit / withdraw / borrow / repay.

        All four share one account layout and a single u64 amount argument.
        LTV and liquidation limits are enforced by the program, not here.
        """
        if name not in TOKEN_OPERATIONS:
            raise ValueError(f"not a token operation: {name}")

        asset = self._asset(name, symbol)
        base_units = self._scale(name, asset, amount)

        addresses = self._deriver.bank_addresses(asset.mint)
        accounts = [
            AccountMeta(signer, is_signer=True, is_writable=True),
            AccountMeta(asset.mint, is_signer=False, is_writable=False),
            AccountMeta(addresses.bank, is_signer=False, is_writable=True),
            AccountMeta(addresses.treasury, is_signer=False, is_writable=True),
            AccountMeta(self._deriver.user_account(signer), is_signer=False, is_writable=True),
            AccountMeta(
                associated_token_address(signer, asset.mint),
                is_signer=False,
                is_writable=True,
            ),
            AccountMeta(TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(ASSOCIATED_TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        ]
        return self._instruction(name, encode_u64(base_units), accounts)

    def _asset(self, name: str, symbol: str) -> Asset:
        try:
            return self._assets.get(symbol)
        except ValidationError as e:
            raise ValidationError(e.message, operation=name) from e

    @staticmethod
    def _scale(name: str, asset: Asset, amount: str | int | float | Decimal) -> int:
        try:
            base_units = to_base_units(amount, asset.decimals)
        except ValidationError as e:
            raise ValidationError(e.message, operation=name) from e
        if base_units == 0:
            raise ValidationError(
                f"amount {amount!r} is zero in {asset.symbol} base units", operation=name
            )
        return base_units

    def deposit(self, signer: Pubkey, symbol: str, amount: str | int | float | Decimal) -> Instruction:
        return self.token_operation(DEPOSIT, signer, symbol, amount)

    def withdraw(self, signer: Pubkey, symbol: str, amount: str | int | float | Decimal) -> Instruction:
        return self.token_operation(WITHDRAW, signer, symbol, amount)

    def borrow(self, signer: Pubkey, symbol: str, amount: str | int | float | Decimal) -> Instruction:
        return self.token_operation(BORROW, signer, symbol, amount)

    def repay(self, signer: Pubkey, symbol: str, amount: str | int | float | Decimal) -> Instruction:
        return self.token_operation(REPAY, signer, symbol, amount)
