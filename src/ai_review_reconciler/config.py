"""
Configuration Management

Settings for ignore filtering, extraction, reconciliation and logging
"""

import functools
import logging
import os
from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .diff.ignore import IgnoreFilter
from .exceptions import ConfigurationError
from .review.extractor import FAILED_PARSE_SUMMARY, IssueExtractor
from .review.reconciler import SIGNATURE_DESCRIPTION_CHARS, ReviewReconciler, issue_signature


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_list(name: str) -> List[str]:
    value = os.getenv(name, "")
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class IgnoreConfig:
    """Ignore filter settings"""
    use_defaults: bool = True
    custom_patterns: List[str] = field(default_factory=list)
    ignore_file_dir: Optional[str] = None  # directory holding .reviewignore


@dataclass
class ExtractorConfig:
    """Issue extraction settings"""
    failed_summary: str = FAILED_PARSE_SUMMARY


@dataclass
class ReconcileConfig:
    """Reconciliation settings"""
    signature_description_chars: int = SIGNATURE_DESCRIPTION_CHARS
    filter_outside_diff: bool = True


@dataclass
class LoggingConfig:
    """Logging settings"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass
class AppConfig:
    """Complete application configuration"""
    ignore: IgnoreConfig = field(default_factory=IgnoreConfig)
    extractor: ExtractorConfig = field(default_factory=ExtractorConfig)
    reconcile: ReconcileConfig = field(default_factory=ReconcileConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    debug: bool = False

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load settings from environment variables"""
        return cls(
            ignore=IgnoreConfig(
                use_defaults=_env_bool("REVIEWER_IGNORE_DEFAULTS", "true"),
                custom_patterns=_env_list("REVIEWER_IGNORE_PATTERNS"),
                ignore_file_dir=os.getenv("REVIEWER_IGNORE_DIR"),
            ),
            extractor=ExtractorConfig(
                failed_summary=os.getenv("REVIEWER_FAILED_SUMMARY", FAILED_PARSE_SUMMARY),
            ),
            reconcile=ReconcileConfig(
                signature_description_chars=int(
                    os.getenv("REVIEWER_SIGNATURE_CHARS", str(SIGNATURE_DESCRIPTION_CHARS))
                ),
                filter_outside_diff=_env_bool("REVIEWER_FILTER_OUTSIDE_DIFF", "true"),
            ),
            logging=LoggingConfig(
                level=os.getenv("LOG_LEVEL", "INFO"),
                format=os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
                file_path=os.getenv("LOG_FILE"),
                max_file_size=int(os.getenv("LOG_MAX_SIZE", str(10 * 1024 * 1024))),
                backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5")),
            ),
            debug=_env_bool("DEBUG", "false"),
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> "AppConfig":
        """Load settings from a YAML file"""
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r', encoding='utf-8') as f:
            try:
                config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Config root must be a mapping: {config_path}")

        try:
            return cls(
                ignore=IgnoreConfig(**config_data.get('ignore', {})),
                extractor=ExtractorConfig(**config_data.get('extractor', {})),
                reconcile=ReconcileConfig(**config_data.get('reconcile', {})),
                logging=LoggingConfig(**config_data.get('logging', {})),
                debug=config_data.get('debug', False),
            )
        except TypeError as e:
            raise ConfigurationError(f"Unknown setting in {config_path}: {e}") from e

    def validate(self) -> None:
        """Validate settings"""
        errors = []

        if self.reconcile.signature_description_chars <= 0:
            errors.append("Signature description length must be positive")

        if not isinstance(self.ignore.custom_patterns, list):
            errors.append("Custom ignore patterns must be a list")

        if self.ignore.ignore_file_dir and not Path(self.ignore.ignore_file_dir).is_dir():
            errors.append(f"Ignore file directory does not exist: {self.ignore.ignore_file_dir}")

        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.logging.level.upper() not in valid_log_levels:
            errors.append(f"Invalid log level: {self.logging.level}")

        if errors:
            raise ConfigurationError(f"Configuration validation failed: {'; '.join(errors)}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ignore': {
                'use_defaults': self.ignore.use_defaults,
                'custom_patterns': list(self.ignore.custom_patterns),
                'ignore_file_dir': self.ignore.ignore_file_dir,
            },
            'extractor': {
                'failed_summary': self.extractor.failed_summary,
            },
            'reconcile': {
                'signature_description_chars': self.reconcile.signature_description_chars,
                'filter_outside_diff': self.reconcile.filter_outside_diff,
            },
            'logging': {
                'level': self.logging.level,
                'format': self.logging.format,
                'file_path': self.logging.file_path,
                'max_file_size': self.logging.max_file_size,
                'backup_count': self.logging.backup_count,
            },
            'debug': self.debug,
        }


class ConfigManager:
    """
    Holds a validated configuration and builds the components it describes.

    Construct one explicitly and pass it around; there is no module-level
    instance.
    """

    def __init__(self, config: Optional[AppConfig] = None, setup_logging: bool = True):
        self._config = config or AppConfig.from_env()
        self._config.validate()
        self._setup_logging_enabled = setup_logging
        if setup_logging:
            self._setup_logging()

    @property
    def config(self) -> AppConfig:
        return self._config

    def update_config(self, **kwargs) -> None:
        """
        Update settings using ``section.field`` keys.

        Example:
            manager.update_config(**{'reconcile.filter_outside_diff': False})
        """
        config_dict = self._config.to_dict()

        for key, value in kwargs.items():
            if '.' in key:
                section, name = key.split('.', 1)
                if section not in config_dict or not isinstance(config_dict[section], dict):
                    raise ConfigurationError(f"Unknown config section: {section}")
                config_dict[section][name] = value
            else:
                config_dict[key] = value

        try:
            new_config = AppConfig(
                ignore=IgnoreConfig(**config_dict['ignore']),
                extractor=ExtractorConfig(**config_dict['extractor']),
                reconcile=ReconcileConfig(**config_dict['reconcile']),
                logging=LoggingConfig(**config_dict['logging']),
                debug=config_dict['debug'],
            )
        except TypeError as e:
            raise ConfigurationError(f"Unknown setting: {e}") from e

        new_config.validate()
        self._config = new_config
        if self._setup_logging_enabled:
            self._setup_logging()

    def _setup_logging(self) -> None:
        level = logging.DEBUG if self._config.debug else getattr(logging, self._config.logging.level.upper())
        logging.basicConfig(
            level=level,
            format=self._config.logging.format,
        )

        if self._config.logging.file_path:
            root_logger = logging.getLogger()
            already_attached = any(
                isinstance(h, RotatingFileHandler)
                and getattr(h, 'baseFilename', None) == os.path.abspath(self._config.logging.file_path)
                for h in root_logger.handlers
            )
            if not already_attached:
                handler = RotatingFileHandler(
                    self._config.logging.file_path,
                    maxBytes=self._config.logging.max_file_size,
                    backupCount=self._config.logging.backup_count,
                )
                handler.setFormatter(logging.Formatter(self._config.logging.format))
                root_logger.addHandler(handler)

    def build_ignore_filter(self) -> IgnoreFilter:
        ignore = self._config.ignore
        if ignore.ignore_file_dir:
            return IgnoreFilter.from_directory(
                ignore.ignore_file_dir,
                use_defaults=ignore.use_defaults,
                extra_patterns=ignore.custom_patterns,
            )
        return IgnoreFilter(patterns=ignore.custom_patterns, use_defaults=ignore.use_defaults)

    def build_extractor(self) -> IssueExtractor:
        return IssueExtractor(failed_summary=self._config.extractor.failed_summary)

    def build_reconciler(self) -> ReviewReconciler:
        chars = self._config.reconcile.signature_description_chars
        signature = functools.partial(issue_signature, description_chars=chars)
        return ReviewReconciler(signature=signature)
