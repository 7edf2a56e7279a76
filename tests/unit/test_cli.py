"""Unit tests for CLI argument parsing."""
from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.cli import EXIT_FAILED, EXIT_UNKNOWN, _run, build_parser
from src.errors import TransportError, Unconfirmed


class TestBuildParser:
    def test_balances_command(self) -> None:
        args = build_parser().parse_args(["balances"])
        assert args.command == "balances"

    def test_addresses_command(self) -> None:
        args = build_parser().parse_args(["addresses"])
        assert args.command == "addresses"

    def test_init_bank_defaults(self) -> None:
        args = build_parser().parse_args(["init-bank", "USDC"])
        assert args.command == "init-bank"
        assert args.asset == "USDC"
        assert args.liquidation_threshold is None
        assert args.max_ltv is None

    def test_init_bank_risk_params(self) -> None:
        args = build_parser().parse_args(
            ["init-bank", "SOL", "--liquidation-threshold", "85", "--max-ltv", "75"]
        )
        assert args.liquidation_threshold == 85
        assert args.max_ltv == 75

    def test_init_user_command(self) -> None:
        args = build_parser().parse_args(["init-user"])
        assert args.command == "init-user"

    @pytest.mark.parametrize("command", ["deposit", "withdraw", "borrow", "repay"])
    def test_token_commands(self, command: str) -> None:
        args = build_parser().parse_args([command, "USDC", "100.5"])
        assert args.command == command
        assert args.asset == "USDC"
        assert args.amount == "100.5"

    def test_token_command_requires_amount(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["deposit", "USDC"])

    def test_config_flag(self) -> None:
        args = build_parser().parse_args(["--config", "/tmp/c.yaml", "balances"])
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        args = build_parser().parse_args(["--log-level", "DEBUG", "balances"])
        assert args.log_level == "DEBUG"

    def test_no_command(self) -> None:
        args = build_parser().parse_args([])
        assert args.command is None


def _patched_client(client: MagicMock):
    return (
        patch("src.cli.configure_logging"),
        patch("src.cli.load_config"),
        patch("src.cli.LendingClient.from_config", return_value=client),
    )


class TestRun:
    @pytest.mark.asyncio
    async def test_balances_unreachable_chain(self, capsys: pytest.CaptureFixture) -> None:
        client = MagicMock()
        client.refresh_balances = AsyncMock(
            side_effect=TransportError("could not read balances: timeout", "refresh_balances")
        )
        logging_patch, config_patch, client_patch = _patched_client(client)

        with logging_patch, config_patch, client_patch:
            code = await _run(build_parser().parse_args(["balances"]))

        assert code == EXIT_FAILED
        assert "could not read balances" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_lost_send_reports_unknown(self, capsys: pytest.CaptureFixture) -> None:
        client = MagicMock()
        client.deposit = AsyncMock(side_effect=Unconfirmed("5ig", "deposit"))
        logging_patch, config_patch, client_patch = _patched_client(client)

        with logging_patch, config_patch, client_patch:
            code = await _run(build_parser().parse_args(["deposit", "USDC", "1"]))

        assert code == EXIT_UNKNOWN
        assert "5ig" in capsys.readouterr().err
