"""Local keypair wallet."""
import logging
import os

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from ..config import WalletConfig

logger = logging.getLogger(__name__)


class KeypairWallet:
    """Signs with a keypair held in memory. Never declines."""

    def __init__(self, keypair: Keypair) -> None:
        self._keypair = keypair

    @classmethod
    def from_env(cls, config: WalletConfig) -> "KeypairWallet":
        """Load a base58 secret key from the configured environment variable."""
        secret = os.environ.get(config.keypair_env, "")
        if not secret:
            raise ValueError(f"{config.keypair_env} not found in environment variables")
        wallet = cls(Keypair.from_base58_string(secret))
        logger.info("Loaded wallet %s", wallet.pubkey)
        return wallet

    @property
    def pubkey(self) -> Pubkey:
        return self._keypair.pubkey()

    async def sign_transaction(self, transaction: Transaction) -> Transaction:
        transaction.sign([self._keypair], transaction.message.recent_blockhash)
        return transaction
