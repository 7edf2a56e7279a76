"""Wallet protocol — signing capability abstraction."""
from typing import Protocol

from solders.pubkey import Pubkey
from solders.transaction import Transaction


class Wallet(Protocol):
    """Signs transactions on behalf of one address.

    ``sign_transaction`` may wait on the user; it raises
    :class:`~src.errors.UserRejected` when signing is declined.
    """

    @property
    def pubkey(self) -> Pubkey: ...

    async def sign_transaction(self, transaction: Transaction) -> Transaction: ...
