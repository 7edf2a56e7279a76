"""Shared test fixtures and sample data."""
from __future__ import annotations

import base64
import textwrap
from pathlib import Path
from typing import Any

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from src.config import AppConfig, AssetConfig, ChainConfig, ProgramConfig, WalletConfig
from src.errors import RpcResponseError
from src.protocols.lending.addresses import AddressDeriver, associated_token_address
from src.protocols.lending.assets import AssetRegistry
from src.protocols.lending.instructions import OperationBuilder, anchor_discriminator
from src.wallets import KeypairWallet

USDC_MINT = "Gh9ZwEmdLJ8DscKNTkTqPbNwLNNBjuSzaG9Vp2KGtKJr"
SOL_MINT = "So11111111111111111111111111111111111111112"
PROGRAM_ID = "11111111111111111111111111111112"
BLOCKHASH = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
        commitment="confirmed",
        confirm_timeout=0.5,
        poll_interval=0.01,
    )


@pytest.fixture()
def sample_assets() -> dict[str, AssetConfig]:
    return {
        "USDC": AssetConfig(symbol="USDC", mint=USDC_MINT, decimals=6),
        "SOL": AssetConfig(symbol="SOL", mint=SOL_MINT, decimals=9),
    }


@pytest.fixture()
def sample_app_config(
    sample_chain_config: ChainConfig, sample_assets: dict[str, AssetConfig]
) -> AppConfig:
    return AppConfig(
        chain=sample_chain_config,
        program=ProgramConfig(
            program_id=PROGRAM_ID,
            reference_asset="USDC",
            liquidation_threshold=80,
            max_ltv=70,
        ),
        assets=sample_assets,
        wallet=WalletConfig(keypair_env="TEST_WALLET_KEY"),
    )


@pytest.fixture()
def program_id() -> Pubkey:
    return Pubkey.from_string(PROGRAM_ID)


@pytest.fixture()
def deriver(program_id: Pubkey) -> AddressDeriver:
    return AddressDeriver(program_id)


@pytest.fixture()
def registry(sample_assets: dict[str, AssetConfig]) -> AssetRegistry:
    return AssetRegistry(sample_assets, "USDC")


@pytest.fixture()
def builder(deriver: AddressDeriver, registry: AssetRegistry) -> OperationBuilder:
    return OperationBuilder(deriver, registry, 80, 70)


@pytest.fixture()
def wallet() -> KeypairWallet:
    return KeypairWallet(Keypair())


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent(f"""\
    chain:
      rpc_endpoints: ["https://rpc.example.com"]
      rpc_timeout: 10
      commitment: confirmed
      confirm_timeout: 30
    program:
      program_id: "{PROGRAM_ID}"
      reference_asset: usdc
      liquidation_threshold: 80
      max_ltv: 70
    assets:
      USDC:
        mint: "{USDC_MINT}"
        decimals: 6
      sol:
        mint: "{SOL_MINT}"
        decimals: 9
    wallet:
      keypair_env: WALLET_KEY
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# In-memory chain
# ---------------------------------------------------------------------------


class FakeChain:
    """Executes lending instructions against an in-memory ledger.

    Accounts created by init_bank / init_user persist; creating one twice
    fails preflight the way the system program does.
    """

    def __init__(self, program_id: Pubkey, deriver: AddressDeriver) -> None:
        self.program_id = program_id
        self.deriver = deriver
        self.lamports: dict[str, int] = {}
        self.token_balances: dict[str, int] = {}
        self.created: set[str] = set()
        self.statuses: dict[str, dict[str, Any]] = {}
        self.sent: list[Transaction] = []
        self.calls: list[str] = []
        self.confirm = True

    def fund_token(self, owner: Pubkey, mint: str, amount: int) -> None:
        ata = associated_token_address(owner, Pubkey.from_string(mint))
        self.token_balances[str(ata)] = amount

    async def get_balance(self, address: str) -> int:
        self.calls.append("get_balance")
        return self.lamports.get(address, 0)

    async def get_token_account_balance(self, address: str) -> dict[str, Any] | None:
        self.calls.append("get_token_account_balance")
        if address not in self.token_balances:
            return None
        return {"amount": str(self.token_balances[address]), "decimals": 6}

    async def get_latest_blockhash(self) -> str:
        self.calls.append("get_latest_blockhash")
        return BLOCKHASH

    async def send_transaction(self, encoded_tx: str) -> str:
        self.calls.append("send_transaction")
        tx = Transaction.from_bytes(base64.b64decode(encoded_tx))
        self.sent.append(tx)
        keys = tx.message.account_keys
        for ix in tx.message.instructions:
            accounts = [str(keys[i]) for i in ix.accounts]
            self._execute(bytes(ix.data), accounts)
        signature = str(tx.signatures[0])
        if self.confirm:
            self.statuses[signature] = {"confirmationStatus": "confirmed", "err": None}
        return signature

    def _execute(self, data: bytes, accounts: list[str]) -> None:
        disc, args = data[:8], data[8:]
        if disc == anchor_discriminator("init_bank"):
            self._create(accounts[2], accounts[3])
        elif disc == anchor_discriminator("init_user"):
            self._create(accounts[0])
        elif disc == anchor_discriminator("deposit"):
            amount = int.from_bytes(args[:8], "little")
            user_ata, treasury = accounts[5], accounts[3]
            if self.token_balances.get(user_ata, 0) < amount:
                raise RpcResponseError(
                    -32002,
                    "Transaction simulation failed: Error processing Instruction 0",
                    {"err": {"InstructionError": [0, {"Custom": 6000}]}, "logs": []},
                )
            self.token_balances[user_ata] -= amount
            self.token_balances[treasury] = self.token_balances.get(treasury, 0) + amount

    def _create(self, *addresses: str) -> None:
        for address in addresses:
            if address in self.created:
                raise RpcResponseError(
                    -32002,
                    "Transaction simulation failed: Error processing Instruction 0",
                    {
                        "err": {"InstructionError": [0, {"Custom": 0}]},
                        "logs": [
                            f"Allocate: account Address {{ address: {address}, "
                            "base: None } already in use"
                        ],
                    },
                )
        self.created.update(addresses)

    async def get_signature_status(self, signature: str) -> dict[str, Any] | None:
        self.calls.append("get_signature_status")
        return self.statuses.get(signature)


@pytest.fixture()
def fake_chain(program_id: Pubkey, deriver: AddressDeriver) -> FakeChain:
    return FakeChain(program_id, deriver)
