"""
Settings loading tests.

Verifies:
- Defaults: 30 s operation budget, 120 s batch budget, 1000 ids per batch
- YAML file values override defaults; environment overrides both
- Unknown keys and invalid values are rejected
"""

import pytest
import yaml

from ledger_kernel.config import (
    DEFAULT_DATABASE_URL,
    LedgerSettings,
    load_settings,
    load_yaml_file,
)


@pytest.fixture
def config_file(tmp_path):
    def _write(content: str):
        path = tmp_path / "ledger.yaml"
        path.write_text(content)
        return path

    return _write


class TestDefaults:
    def test_default_values(self):
        settings = load_settings(environ={})

        assert settings.database_url == DEFAULT_DATABASE_URL
        assert settings.operation_timeout_seconds == 30.0
        assert settings.batch_timeout_seconds == 120.0
        assert settings.batch_max_size == 1000
        assert settings.log_level == "INFO"

    def test_settings_are_frozen(self):
        settings = LedgerSettings()
        with pytest.raises(AttributeError):
            settings.batch_max_size = 5


class TestYamlFile:
    def test_file_values_applied(self, config_file):
        path = config_file(
            "database_url: postgresql://ledger@localhost/ledger\n"
            "batch_max_size: 250\n"
            "operation_timeout_seconds: 10\n"
        )

        settings = load_settings(path, environ={})

        assert settings.database_url == "postgresql://ledger@localhost/ledger"
        assert settings.batch_max_size == 250
        assert settings.operation_timeout_seconds == 10
        assert settings.batch_timeout_seconds == 120.0

    def test_path_from_environment(self, config_file):
        path = config_file("log_level: DEBUG\n")
        settings = load_settings(environ={"LEDGER_CONFIG": str(path)})
        assert settings.log_level == "DEBUG"

    def test_empty_file_yields_defaults(self, config_file):
        assert load_yaml_file(config_file("")) == {}
        assert load_settings(config_file(""), environ={}) == LedgerSettings()

    def test_unknown_key_rejected(self, config_file):
        with pytest.raises(ValueError, match="batch_size"):
            load_settings(config_file("batch_size: 10\n"), environ={})

    def test_non_mapping_rejected(self, config_file):
        with pytest.raises(ValueError):
            load_settings(config_file("- a\n- b\n"), environ={})

    def test_malformed_yaml_raises(self, config_file):
        with pytest.raises(yaml.YAMLError):
            load_settings(config_file("database_url: [unclosed\n"), environ={})

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml", environ={})


class TestEnvironmentOverrides:
    def test_environment_wins_over_file(self, config_file):
        path = config_file("batch_max_size: 250\nlog_level: WARNING\n")

        settings = load_settings(
            path,
            environ={
                "LEDGER_BATCH_MAX_SIZE": "50",
                "DATABASE_URL": "sqlite+pysqlite:///ledger.db",
                "LEDGER_BATCH_TIMEOUT_SECONDS": "60.5",
            },
        )

        assert settings.batch_max_size == 50
        assert settings.batch_timeout_seconds == 60.5
        assert settings.database_url == "sqlite+pysqlite:///ledger.db"
        assert settings.log_level == "WARNING"

    def test_empty_environment_value_ignored(self):
        settings = load_settings(environ={"LEDGER_BATCH_MAX_SIZE": ""})
        assert settings.batch_max_size == 1000


class TestValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"operation_timeout_seconds": 0},
            {"batch_timeout_seconds": -1},
            {"batch_max_size": 0},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValueError):
            LedgerSettings(**overrides)

    def test_invalid_environment_value_rejected(self):
        with pytest.raises(ValueError):
            load_settings(environ={"LEDGER_BATCH_MAX_SIZE": "lots"})
