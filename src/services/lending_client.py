"""Lending operations: build → submit → refresh balances."""
from __future__ import annotations

import logging
from decimal import Decimal

from solders.instruction import Instruction
from solders.pubkey import Pubkey

from ..chains.solana import SolanaClient
from ..config import AppConfig
from ..errors import Rejected, SubmitError, TransportError, Unconfirmed
from ..interfaces.chain import ChainClient
from ..interfaces.wallet import Wallet
from ..models import Balances, BankAddresses, OperationResult
from ..protocols.lending import instructions as ops
from ..protocols.lending.addresses import AddressDeriver, associated_token_address
from ..protocols.lending.assets import AssetRegistry
from ..protocols.lending.instructions import OperationBuilder
from ..wallets import KeypairWallet
from .balance_reader import BalanceReader
from .submitter import TRANSPORT_ERRORS, TransactionSubmitter

logger = logging.getLogger(__name__)

Amount = str | int | float | Decimal


class LendingClient:
    """One method per user-facing lending operation for a single wallet."""

    def __init__(self, config: AppConfig, chain_client: ChainClient, wallet: Wallet) -> None:
        self._wallet = wallet
        self.assets = AssetRegistry(config.assets, config.program.reference_asset)
        self.deriver = AddressDeriver(Pubkey.from_string(config.program.program_id))
        self._builder = OperationBuilder(
            self.deriver,
            self.assets,
            default_liquidation_threshold=config.program.liquidation_threshold,
            default_max_ltv=config.program.max_ltv,
        )
        self._submitter = TransactionSubmitter(chain_client, config.chain)
        self._reader = BalanceReader(chain_client, self.assets)
        self._last_balances: Balances | None = None

    @classmethod
    def from_config(cls, config: AppConfig) -> "LendingClient":
        """Client backed by the configured RPC endpoints and env keypair."""
        return cls(config, SolanaClient(config.chain), KeypairWallet.from_env(config.wallet))

    @property
    def wallet(self) -> Pubkey:
        return self._wallet.pubkey

    @property
    def last_balances(self) -> Balances | None:
        """Most recent balance read. Advisory only; refresh when in doubt."""
        return self._last_balances

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def refresh_balances(self) -> Balances:
        try:
            balances = await self._reader.read_all(self.wallet)
        except TRANSPORT_ERRORS as e:
            raise TransportError(f"could not read balances: {e}", "refresh_balances") from e
        self._last_balances = balances
        return balances

    def bank_addresses(self, symbol: str) -> BankAddresses:
        return self.deriver.bank_addresses(self.assets.get(symbol).mint)

    def user_account(self) -> Pubkey:
        return self.deriver.user_account(self.wallet)

    def user_token_account(self, symbol: str) -> Pubkey:
        return associated_token_address(self.wallet, self.assets.get(symbol).mint)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def init_bank(
        self,
        symbol: str,
        liquidation_threshold: int | None = None,
        max_ltv: int | None = None,
    ) -> OperationResult:
        ix = self._builder.init_bank(self.wallet, symbol, liquidation_threshold, max_ltv)
        return await self._execute(ops.INIT_BANK, ix)

    async def init_user(self) -> OperationResult:
        ix = self._builder.init_user(self.wallet)
        return await self._execute(ops.INIT_USER, ix)

    async def deposit(self, symbol: str, amount: Amount) -> OperationResult:
        ix = self._builder.deposit(self.wallet, symbol, amount)
        return await self._execute(ops.DEPOSIT, ix)

    async def withdraw(self, symbol: str, amount: Amount) -> OperationResult:
        ix = self._builder.withdraw(self.wallet, symbol, amount)
        return await self._execute(ops.WITHDRAW, ix)

    async def borrow(self, symbol: str, amount: Amount) -> OperationResult:
        ix = self._builder.borrow(self.wallet, symbol, amount)
        return await self._execute(ops.BORROW, ix)

    async def repay(self, symbol: str, amount: Amount) -> OperationResult:
        ix = self._builder.repay(self.wallet, symbol, amount)
        return await self._execute(ops.REPAY, ix)

    async def _execute(self, operation: str, ix: Instruction) -> OperationResult:
        logger.info("Submitting %s for %s", operation, self.wallet)
        try:
            signature = await self._submitter.submit(operation, [ix], self._wallet)
        except Rejected as e:
            if e.already_exists:
                logger.info("%s: account already initialized", operation)
            else:
                logger.error("%s rejected: %s", operation, e.reason)
            raise
        except Unconfirmed as e:
            logger.warning("%s outcome unknown: %s", operation, e.signature)
            raise
        except (SubmitError, TransportError) as e:
            logger.info("%s not submitted: %s", operation, e.message)
            raise

        balances: Balances | None = None
        try:
            balances = await self.refresh_balances()
        except Exception as e:
            logger.warning("Balance refresh after %s failed: %s", operation, e)

        return OperationResult(operation=operation, signature=signature, balances=balances)
