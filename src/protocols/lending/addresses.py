"""Program-derived addresses for the lending program — pure, no I/O.

Every place that needs a bank, treasury or user account address goes through
:class:`AddressDeriver`; seed layouts live only in this module.
"""
from __future__ import annotations

from collections.abc import Sequence

from solders.pubkey import Pubkey

from ...errors import DerivationError
from ...models import BankAddresses

TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
ASSOCIATED_TOKEN_PROGRAM_ID = Pubkey.from_string(
    "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
)

TREASURY_SEED = b"treasury"

MAX_SEEDS = 16
MAX_SEED_LEN = 32


def derive(seeds: Sequence[bytes], program_id: Pubkey) -> Pubkey:
    """Derive the off-curve address for ``seeds`` under ``program_id``.

    Raises:
        DerivationError: if the seeds cannot produce a program address.
    """
    if len(seeds) >= MAX_SEEDS:
        raise DerivationError(f"too many seeds ({len(seeds)})")
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise DerivationError(f"seed longer than {MAX_SEED_LEN} bytes")

    address, _bump = Pubkey.find_program_address(list(seeds), program_id)
    return address


def associated_token_address(owner: Pubkey, mint: Pubkey) -> Pubkey:
    """Associated token account for (owner, mint), per the SPL token rule."""
    return derive(
        [bytes(owner), bytes(TOKEN_PROGRAM_ID), bytes(mint)],
        ASSOCIATED_TOKEN_PROGRAM_ID,
    )


class AddressDeriver:
    """Derives the lending program's own accounts."""

    def __init__(self, program_id: Pubkey) -> None:
        self._program_id = program_id

    @property
    def program_id(self) -> Pubkey:
        return self._program_id

    def bank(self, mint: Pubkey) -> Pubkey:
        return derive([bytes(mint)], self._program_id)

    def treasury(self, mint: Pubkey) -> Pubkey:
        return derive([TREASURY_SEED, bytes(mint)], self._program_id)

    def user_account(self, wallet: Pubkey) -> Pubkey:
        return derive([bytes(wallet)], self._program_id)

    def bank_addresses(self, mint: Pubkey) -> BankAddresses:
        return BankAddresses(bank=self.bank(mint), treasury=self.treasury(mint))
