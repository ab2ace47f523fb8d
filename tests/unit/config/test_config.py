"""Tests for Config Pydantic Settings."""

import logging
from pathlib import Path

import pytest

from projdup.config import Config, LoggingConfig, WorkspaceConfig, configure_logging


class TestConfig:
    """Tests for the Config settings class."""

    def test_defaults(self) -> None:
        """Every entity kind is carried and the snapshot is kept after apply."""
        config = Config()
        assert config.transfer.clear_after_apply is False
        assert not config.transfer.include.is_empty
        assert config.logging.level == "WARNING"

    def test_env_prefix_is_projdup(self) -> None:
        assert Config.model_config.get("env_prefix") == "PROJDUP_"

    def test_nested_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Nested fields are set with a double underscore delimiter."""
        monkeypatch.setenv("PROJDUP_TRANSFER__CLEAR_AFTER_APPLY", "true")
        monkeypatch.setenv("PROJDUP_WORKSPACE__PATH", "/srv/projdup")
        config = Config()
        assert config.transfer.clear_after_apply is True
        assert config.workspace.file == Path("/srv/projdup/workspace.yaml")

    def test_yaml_config_file(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Values from PROJDUP_CONFIG_FILE apply when the environment is silent."""
        config_file = tmp_path / "projdup.yaml"
        config_file.write_text("transfer:\n  include:\n    replay: false\n")
        monkeypatch.setenv("PROJDUP_CONFIG_FILE", str(config_file))

        config = Config()

        assert config.transfer.include.replay is False
        assert config.transfer.include.scopes is True

    def test_env_beats_yaml(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        config_file = tmp_path / "projdup.yaml"
        config_file.write_text("logging:\n  level: DEBUG\n")
        monkeypatch.setenv("PROJDUP_CONFIG_FILE", str(config_file))
        monkeypatch.setenv("PROJDUP_LOGGING__LEVEL", "ERROR")

        assert Config().logging.level == "ERROR"


class TestWorkspaceConfig:
    def test_file_expands_home(self) -> None:
        assert WorkspaceConfig(path="~/ws").file == Path("~/ws").expanduser() / "workspace.yaml"


class TestConfigureLogging:
    def test_file_handler(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "projdup.log"
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging(LoggingConfig(level="INFO", file=str(log_file)))
            logging.getLogger("projdup.test").info("hello")
            for handler in root.handlers:
                handler.flush()
            assert "hello" in log_file.read_text()
        finally:
            for handler in root.handlers[:]:
                root.removeHandler(handler)
                handler.close()
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)


class TestLoadConfig:
    def test_invalid_env_becomes_configuration_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from projdup.cli.util.runtime import load_config
        from projdup.domain.shared.error import ConfigurationError

        monkeypatch.setenv("PROJDUP_TRANSFER__CLEAR_AFTER_APPLY", "not-a-bool")

        with pytest.raises(ConfigurationError):
            load_config()
