"""
Tests for entity_store/__main__.py -- the command-line inventory demo.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from entity_store.__main__ import DEMO_ITEMS, build_manager, main, run_demo
from entity_store.config import StoreConfig
from entity_store.entity_manager import EntityManager
from entity_store.observers import FileLoggerObserver, LowStockAlertObserver


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("ENTITY_STORE_PATH", "ENTITY_STORE_LOG_FILE", "ENTITY_STORE_ALERT_EMAIL"):
        monkeypatch.delenv(var, raising=False)


def _read_json(path):
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)


class TestRunDemo:
    def test_demo_quantities(self, manager):
        items = run_demo(manager)
        assert [(i.sku, i.qoh) for i in items] == [
            ("abc-4589", 4),
            ("hjg-3821", 2),
            ("xrf-3827", 7),
            ("eer-4521", 4),
            ("qws-6783", 1),
        ]
        assert items[3].sale_price == pytest.approx(0.87)

    def test_demo_commits_everything(self, manager, store_path):
        run_demo(manager)
        on_disk = _read_json(store_path)["InventoryItem"]
        assert list(on_disk) == [d["sku"] for d in DEMO_ITEMS]
        assert manager.pending_save_ids() == []

    def test_second_run_reuses_stored_items(self, store_path):
        run_demo(EntityManager.from_path(store_path))
        items = run_demo(EntityManager.from_path(store_path))
        assert items[0].qoh == 8


class TestBuildManager:
    def test_without_email_only_audit_logger(self, tmp_path):
        config = StoreConfig(store_path=str(tmp_path / "s.json"), log_path=str(tmp_path / "a.jsonl"))
        manager = build_manager(config)
        kinds = [type(o) for o in manager.observers()]
        assert kinds == [FileLoggerObserver]

    def test_with_email_adds_alert(self, tmp_path):
        config = StoreConfig(
            store_path=str(tmp_path / "s.json"),
            log_path=str(tmp_path / "a.jsonl"),
            alert_email="buyer@example.com",
            low_stock_limit=3,
        )
        manager = build_manager(config)
        alert = manager.observers()[1]
        assert isinstance(alert, LowStockAlertObserver)
        assert alert.limit == 3

    def test_alerts_can_be_disabled(self, tmp_path):
        config = StoreConfig(
            store_path=str(tmp_path / "s.json"),
            log_path=str(tmp_path / "a.jsonl"),
            alert_email="buyer@example.com",
        )
        assert len(build_manager(config, alerts=False).observers()) == 1


class TestMain:
    def test_runs_demo_and_prints_summary(self, tmp_path, capsys):
        store = tmp_path / "s.json"
        log = tmp_path / "a.jsonl"
        assert main(["--store", str(store), "--log-file", str(log)]) == 0

        out = capsys.readouterr().out
        assert "abc-4589" in out
        assert "qoh=7" in out
        assert len(_read_json(store)["InventoryItem"]) == 5
        with open(log, "r", encoding="utf-8") as fh:
            assert len(fh.readlines()) == 5

    def test_sends_alerts_when_configured(self, tmp_path):
        with patch("entity_store.observers.smtplib.SMTP") as smtp_cls:
            connection = MagicMock()
            smtp_cls.return_value.__enter__.return_value = connection
            code = main([
                "--store", str(tmp_path / "s.json"),
                "--log-file", str(tmp_path / "a.jsonl"),
                "--alert-email", "buyer@example.com",
                "--smtp-host", "mail", "--smtp-port", "2525",
            ])
        assert code == 0
        # abc-4589 (4), hjg-3821 (2), eer-4521 (4), qws-6783 (1)
        assert connection.send_message.call_count == 4

    def test_store_error_exits_1(self, tmp_path):
        store = tmp_path / "s.json"
        store.write_text("{broken", encoding="utf-8")
        assert main(["--store", str(store), "--log-file", str(tmp_path / "a.jsonl")]) == 1

    def test_bad_config_exits_2(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("ENTITY_STORE_LOW_STOCK", "lots")
        assert main(["--store", str(tmp_path / "s.json")]) == 2
        assert "Invalid entity store configuration" in capsys.readouterr().err
