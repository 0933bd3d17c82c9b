"""
Unit tests for configuration management.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

import pytest

from ai_review_reconciler.config import (
    AppConfig,
    ConfigManager,
    IgnoreConfig,
    LoggingConfig,
    ReconcileConfig,
)
from ai_review_reconciler.exceptions import ConfigurationError
from ai_review_reconciler.models.issue import Issue, IssueSeverity, IssueType
from ai_review_reconciler.review.extractor import FAILED_PARSE_SUMMARY


class TestAppConfig:
    """Unit tests for AppConfig loading and validation."""

    def test_defaults(self):
        config = AppConfig()

        assert config.ignore.use_defaults
        assert config.ignore.custom_patterns == []
        assert config.extractor.failed_summary == FAILED_PARSE_SUMMARY
        assert config.reconcile.signature_description_chars == 100
        assert config.reconcile.filter_outside_diff
        assert config.logging.level == "INFO"
        assert not config.debug
        config.validate()

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("REVIEWER_IGNORE_DEFAULTS", "false")
        monkeypatch.setenv("REVIEWER_IGNORE_PATTERNS", "*.snap, fixtures/** ,")
        monkeypatch.setenv("REVIEWER_IGNORE_DIR", str(tmp_path))
        monkeypatch.setenv("REVIEWER_FAILED_SUMMARY", "could not parse")
        monkeypatch.setenv("REVIEWER_SIGNATURE_CHARS", "40")
        monkeypatch.setenv("REVIEWER_FILTER_OUTSIDE_DIFF", "False")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("DEBUG", "true")

        config = AppConfig.from_env()

        assert not config.ignore.use_defaults
        assert config.ignore.custom_patterns == ["*.snap", "fixtures/**"]
        assert config.ignore.ignore_file_dir == str(tmp_path)
        assert config.extractor.failed_summary == "could not parse"
        assert config.reconcile.signature_description_chars == 40
        assert not config.reconcile.filter_outside_diff
        assert config.logging.level == "DEBUG"
        assert config.debug
        config.validate()

    def test_from_yaml(self, tmp_path):
        config_file = tmp_path / "reviewer.yaml"
        config_file.write_text(
            "ignore:\n"
            "  use_defaults: true\n"
            "  custom_patterns:\n"
            "    - '*.generated.ts'\n"
            "reconcile:\n"
            "  signature_description_chars: 60\n"
            "logging:\n"
            "  level: WARNING\n"
            "debug: true\n",
            encoding="utf-8",
        )

        config = AppConfig.from_yaml(str(config_file))

        assert config.ignore.custom_patterns == ["*.generated.ts"]
        assert config.reconcile.signature_description_chars == 60
        assert config.reconcile.filter_outside_diff
        assert config.logging.level == "WARNING"
        assert config.debug

    def test_from_yaml_empty_file(self, tmp_path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("", encoding="utf-8")

        assert AppConfig.from_yaml(str(config_file)).to_dict() == AppConfig().to_dict()

    def test_from_yaml_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.from_yaml(str(tmp_path / "missing.yaml"))

    @pytest.mark.parametrize("content", [
        "reconcile: [unclosed\n",
        "- just\n- a list\n",
        "reconcile:\n  unknown_key: 1\n",
    ])
    def test_from_yaml_invalid(self, tmp_path, content):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigurationError):
            AppConfig.from_yaml(str(config_file))

    def test_validate_errors(self, tmp_path):
        config = AppConfig(
            ignore=IgnoreConfig(ignore_file_dir=str(tmp_path / "nowhere")),
            reconcile=ReconcileConfig(signature_description_chars=0),
            logging=LoggingConfig(level="LOUD"),
        )

        with pytest.raises(ConfigurationError) as exc_info:
            config.validate()

        message = str(exc_info.value)
        assert "Signature description length" in message
        assert "Ignore file directory does not exist" in message
        assert "Invalid log level" in message

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            AppConfig(reconcile=ReconcileConfig(signature_description_chars=-1)).validate()


class TestConfigManager:
    """Unit tests for ConfigManager."""

    def test_invalid_config_rejected(self):
        with pytest.raises(ConfigurationError):
            ConfigManager(AppConfig(logging=LoggingConfig(level="nope")), setup_logging=False)

    def test_update_config(self):
        manager = ConfigManager(AppConfig(), setup_logging=False)

        manager.update_config(**{"reconcile.filter_outside_diff": False, "debug": True})

        assert not manager.config.reconcile.filter_outside_diff
        assert manager.config.debug

    @pytest.mark.parametrize("updates", [
        {"nosuch.key": 1},
        {"reconcile.nosuch": 1},
        {"reconcile.signature_description_chars": 0},
    ])
    def test_update_config_rejects_bad_values(self, updates):
        manager = ConfigManager(AppConfig(), setup_logging=False)

        with pytest.raises(ConfigurationError):
            manager.update_config(**updates)

        assert manager.config.reconcile.signature_description_chars == 100

    def test_build_ignore_filter(self, tmp_path):
        (tmp_path / ".reviewignore").write_text("*.snap\n", encoding="utf-8")
        config = AppConfig(ignore=IgnoreConfig(
            use_defaults=False,
            custom_patterns=["fixtures/**"],
            ignore_file_dir=str(tmp_path),
        ))

        ignore_filter = ConfigManager(config, setup_logging=False).build_ignore_filter()

        assert ignore_filter.patterns == ["*.snap", "fixtures/**"]
        assert not ignore_filter.should_ignore("package-lock.json")

    def test_build_extractor(self):
        config = AppConfig()
        config.extractor.failed_summary = "unparsable"

        extractor = ConfigManager(config, setup_logging=False).build_extractor()

        assert extractor.extract("garbage").summary == "unparsable"

    def test_build_reconciler_uses_signature_length(self):
        config = AppConfig(reconcile=ReconcileConfig(signature_description_chars=5))
        reconciler = ConfigManager(config, setup_logging=False).build_reconciler()

        def issue(description):
            return Issue(id="x", type=IssueType.BUG, severity=IssueSeverity.LOW, title="t",
                         description=description, location="a.py:1", file_path="a.py", line_number=1)

        comparison = reconciler.reconcile([issue("null pointer here")], [issue("null deref")])

        assert comparison.modified_count == 1

    def test_file_logging_attached_once(self, tmp_path):
        log_file = tmp_path / "reviewer.log"
        config = AppConfig(logging=LoggingConfig(file_path=str(log_file)))
        root_logger = logging.getLogger()

        def file_handlers():
            return [
                h for h in root_logger.handlers
                if isinstance(h, RotatingFileHandler) and h.baseFilename == os.path.abspath(str(log_file))
            ]

        try:
            manager = ConfigManager(config)
            manager.update_config(**{"logging.backup_count": 2})

            assert len(file_handlers()) == 1
        finally:
            for handler in file_handlers():
                root_logger.removeHandler(handler)
                handler.close()
