"""
Tests for entity_store/config.py -- StoreConfig defaults and overrides.
"""

import os

import pytest

from entity_store.config import StoreConfig, get_user_data_dir


class TestDefaults:
    def test_paths_live_in_user_data_dir(self):
        config = StoreConfig.from_env({})
        data_dir = get_user_data_dir()
        assert config.store_path == os.path.join(data_dir, "data_store.json")
        assert config.log_path == os.path.join(data_dir, "audit.jsonl")

    def test_other_defaults(self):
        config = StoreConfig.from_env({})
        assert config.alert_email is None
        assert config.smtp_host == "localhost"
        assert config.smtp_port == 25
        assert config.low_stock_limit == 5
        assert config.log_level == "INFO"


class TestEnvironment:
    def test_reads_environment(self, tmp_path):
        environ = {
            "ENTITY_STORE_PATH": str(tmp_path / "s.json"),
            "ENTITY_STORE_LOG_FILE": str(tmp_path / "a.jsonl"),
            "ENTITY_STORE_ALERT_EMAIL": "buyer@example.com",
            "ENTITY_STORE_SMTP_HOST": "mail",
            "ENTITY_STORE_SMTP_PORT": "2525",
            "ENTITY_STORE_LOW_STOCK": "3",
            "ENTITY_STORE_LOG_LEVEL": "debug",
        }
        config = StoreConfig.from_env(environ)
        assert config.store_path == str(tmp_path / "s.json")
        assert config.alert_email == "buyer@example.com"
        assert config.smtp_port == 2525
        assert config.low_stock_limit == 3
        assert config.log_level == "DEBUG"

    def test_uses_process_environment_by_default(self, monkeypatch):
        monkeypatch.setenv("ENTITY_STORE_SMTP_HOST", "from-env")
        assert StoreConfig.from_env().smtp_host == "from-env"

    def test_overrides_beat_environment(self):
        config = StoreConfig.from_env({"ENTITY_STORE_SMTP_HOST": "env"}, smtp_host="flag")
        assert config.smtp_host == "flag"

    def test_none_overrides_are_ignored(self):
        config = StoreConfig.from_env({"ENTITY_STORE_SMTP_HOST": "env"}, smtp_host=None)
        assert config.smtp_host == "env"

    def test_blank_email_disables_alerts(self):
        assert StoreConfig.from_env({"ENTITY_STORE_ALERT_EMAIL": "  "}).alert_email is None


class TestValidation:
    @pytest.mark.parametrize("environ", [
        {"ENTITY_STORE_SMTP_PORT": "not-a-port"},
        {"ENTITY_STORE_SMTP_PORT": "70000"},
        {"ENTITY_STORE_LOW_STOCK": "-1"},
        {"ENTITY_STORE_LOG_LEVEL": "chatty"},
    ])
    def test_invalid_values_raise(self, environ):
        with pytest.raises(ValueError, match="Invalid entity store configuration"):
            StoreConfig.from_env(environ)

    def test_unknown_override_raises(self):
        with pytest.raises(ValueError):
            StoreConfig.from_env({}, colour="red")
