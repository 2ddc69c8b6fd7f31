"""Unit tests for CLI argument parsing."""
from __future__ import annotations

from kale_lend.cli import build_parser


class TestBuildParser:
    def test_stake_command(self) -> None:
        args = build_parser().parse_args(["stake", "GALICE", "1000000", "--auto-adjust"])
        assert args.command == "stake"
        assert args.user == "GALICE"
        assert args.amount == 1_000_000
        assert args.auto_adjust is True
        assert args.threshold == 10

    def test_borrow_command(self) -> None:
        args = build_parser().parse_args(["borrow", "GALICE", "1500000", "100000"])
        assert args.collateral == 1_500_000
        assert args.amount == 100_000

    def test_show_command_user_optional(self) -> None:
        args = build_parser().parse_args(["show", "state"])
        assert args.record == "state"
        assert args.user is None

    def test_set_config_defaults_leave_fields_unset(self) -> None:
        args = build_parser().parse_args(["set-config", "GADMIN"])
        assert args.staking_apy is None
        assert args.threshold is None
        assert args.is_active is None

    def test_set_config_inactive(self) -> None:
        args = build_parser().parse_args(["set-config", "GADMIN", "--inactive", "--fee", "50"])
        assert args.is_active is False
        assert args.fee == 50

    def test_set_config_active(self) -> None:
        args = build_parser().parse_args(["set-config", "GADMIN", "--active"])
        assert args.is_active is True

    def test_config_flag(self) -> None:
        args = build_parser().parse_args(["--config", "/tmp/c.yaml", "price"])
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        args = build_parser().parse_args(["--log-level", "DEBUG", "claim", "GALICE"])
        assert args.log_level == "DEBUG"

    def test_no_command(self) -> None:
        args = build_parser().parse_args([])
        assert args.command is None
