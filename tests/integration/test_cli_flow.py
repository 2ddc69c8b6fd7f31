"""Integration tests for the CLI against a file-backed store."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest
import yaml

from kale_lend.cli import main


@pytest.fixture()
def cli_config(tmp_path: Path) -> Path:
    cfg = {
        "platform": {
            "admin": "GADMIN",
            "kale_token": "CKALE",
            "xlm_token": "CXLM",
            "oracle": "CORACLE",
        },
        "price_oracle": {
            "provider": "static",
            "static": {"prices": {"KALE": 1_000_000, "XLM": 100_000}},
        },
        "storage": {"path": str(tmp_path / "state.json")},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(cfg))
    return path


def _cli(monkeypatch: pytest.MonkeyPatch, config: Path, *argv: str) -> None:
    monkeypatch.setattr(sys, "argv", ["kale-lend", "--config", str(config), *argv])
    main()


class TestCliFlow:
    def test_init_stake_show(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        cli_config: Path,
    ) -> None:
        _cli(monkeypatch, cli_config, "init")
        _cli(monkeypatch, cli_config, "stake", "GALICE", "1000000", "--auto-adjust")
        capsys.readouterr()

        _cli(monkeypatch, cli_config, "show", "stake", "GALICE")
        shown = yaml.safe_load(capsys.readouterr().out)
        assert shown["kale_amount"] == 1_000_000
        assert shown["auto_adjust_enabled"] is True

        _cli(monkeypatch, cli_config, "price")
        assert capsys.readouterr().out.strip() == "1000000"

    def test_borrow_updates_totals(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        cli_config: Path,
    ) -> None:
        _cli(monkeypatch, cli_config, "init")
        _cli(monkeypatch, cli_config, "borrow", "GALICE", "1500000", "100000")
        capsys.readouterr()

        _cli(monkeypatch, cli_config, "show", "state")
        state = yaml.safe_load(capsys.readouterr().out)
        assert state["total_borrowed"] == 100_000
        assert state["total_collateral"] == 1_500_000

    def test_platform_error_exits_nonzero(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
        cli_config: Path,
    ) -> None:
        _cli(monkeypatch, cli_config, "init")
        with pytest.raises(SystemExit) as exc_info:
            _cli(monkeypatch, cli_config, "set-config", "GMALLORY", "--fee", "5000")
        assert exc_info.value.code == 1
        assert "Unauthorized" in capsys.readouterr().err
