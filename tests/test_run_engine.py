from __future__ import annotations

import pytest

from lighter_engine import run_engine
from lighter_engine.core.engine.orchestrator import LighterTrader
from lighter_engine.exchanges.lighter.dry_run import DryRunSubmitter
from tests.conftest import DataClientStub


@pytest.fixture
def cli_trader(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("DRY_RUN", raising=False)
    client = DataClientStub()
    built: list[LighterTrader] = []

    def _from_config(cfg, **_kw):
        t = LighterTrader(data_client=client, submitter=DryRunSubmitter(), account_index=cfg.account_index)
        built.append(t)
        return t

    monkeypatch.setattr(run_engine.LighterTrader, "from_config", staticmethod(_from_config))
    return built


def test_open_long_command(cli_trader, capsys):
    assert run_engine.main(["open-long", "ETHUSDT", "0.01", "10"]) == 0
    sent = [k for k, _ in cli_trader[0].submitter.sent]
    assert sent == ["cancel_all_orders", "update_leverage", "create_order"]
    assert "submitted" in capsys.readouterr().out


def test_format_qty_command(cli_trader, capsys):
    assert run_engine.main(["format-qty", "BTCUSDT", "0.123456789"]) == 0
    assert capsys.readouterr().out.strip() == "0.12345"


def test_execution_error_returns_non_zero(cli_trader):
    assert run_engine.main(["close-long", "ETHUSDT"]) == 1
    assert cli_trader[0].submitter.sent == []
