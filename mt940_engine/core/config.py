"""
MT940 Engine - Configuration Management

This module provides configuration for the statement parser, supporting
YAML files and environment variables.
"""

import os
import yaml
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from pathlib import Path
from enum import Enum
import logging

from .exceptions import ConfigurationException

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class InvalidTransactionPolicy(str, Enum):
    """What to do when a :61: line has an unparseable date or amount."""

    ABORT_STATEMENT = "abort_statement"
    SKIP_TRANSACTION = "skip_transaction"


@dataclass
class ParserConfig:
    """Statement parser configuration."""

    # Raise the first fatal error instead of collecting errors per statement
    strict: bool = True
    invalid_transaction_policy: InvalidTransactionPolicy = (
        InvalidTransactionPolicy.ABORT_STATEMENT
    )
    # Register the nominal MT940 grammar as the last-resort dialect
    enable_generic_fallback: bool = True
    # Bank codes (BLZ) accepted by the German bank dialect; empty accepts any
    german_bank_codes: List[str] = field(default_factory=list)
    metrics_enabled: bool = True

    def __post_init__(self):
        if isinstance(self.invalid_transaction_policy, str):
            try:
                self.invalid_transaction_policy = InvalidTransactionPolicy(
                    self.invalid_transaction_policy
                )
            except ValueError:
                raise ConfigurationException(
                    f"Unknown invalid transaction policy: {self.invalid_transaction_policy}",
                    config_key="invalid_transaction_policy",
                )
        self.german_bank_codes = [str(code) for code in self.german_bank_codes]


@dataclass
class Config:
    """Main configuration class."""

    debug: bool = False
    log_level: LogLevel = LogLevel.INFO
    json_logs: bool = False

    parser: ParserConfig = field(default_factory=ParserConfig)

    @classmethod
    def load_from_file(cls, config_path: Union[str, Path]) -> "Config":
        """Load configuration from YAML file."""
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigurationException(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, "r") as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ConfigurationException(f"Error loading configuration file: {e}")

        return cls._from_dict(config_data)

    @classmethod
    def load_from_env(cls, prefix: str = "MT940_") -> "Config":
        """Load configuration from environment variables."""
        config = cls()

        try:
            config.log_level = LogLevel(
                os.getenv(f"{prefix}LOG_LEVEL", config.log_level.value).upper()
            )
        except ValueError as e:
            raise ConfigurationException(f"Invalid environment setting: {e}")

        config.debug = os.getenv(f"{prefix}DEBUG", str(config.debug)).lower() == "true"
        config.json_logs = (
            os.getenv(f"{prefix}JSON_LOGS", str(config.json_logs)).lower() == "true"
        )

        # Parser settings
        config.parser.strict = (
            os.getenv(f"{prefix}STRICT", str(config.parser.strict)).lower() == "true"
        )
        policy = os.getenv(f"{prefix}INVALID_TRANSACTION_POLICY")
        if policy:
            try:
                config.parser.invalid_transaction_policy = InvalidTransactionPolicy(
                    policy.lower()
                )
            except ValueError:
                raise ConfigurationException(
                    f"Unknown invalid transaction policy: {policy}",
                    config_key="invalid_transaction_policy",
                )
        config.parser.enable_generic_fallback = (
            os.getenv(
                f"{prefix}GENERIC_FALLBACK", str(config.parser.enable_generic_fallback)
            ).lower()
            == "true"
        )
        if os.getenv(f"{prefix}GERMAN_BANK_CODES"):
            config.parser.german_bank_codes = [
                code.strip()
                for code in os.getenv(f"{prefix}GERMAN_BANK_CODES", "").split(",")
                if code.strip()
            ]
        config.parser.metrics_enabled = (
            os.getenv(f"{prefix}METRICS_ENABLED", str(config.parser.metrics_enabled)).lower()
            == "true"
        )

        return config

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create configuration from dictionary."""
        config = cls()

        try:
            if "log_level" in data:
                config.log_level = LogLevel(str(data["log_level"]).upper())
        except ValueError as e:
            raise ConfigurationException(f"Invalid configuration value: {e}")

        if "debug" in data:
            config.debug = bool(data["debug"])
        if "json_logs" in data:
            config.json_logs = bool(data["json_logs"])

        if "parser" in data:
            try:
                config.parser = ParserConfig(**(data["parser"] or {}))
            except TypeError as e:
                raise ConfigurationException(
                    f"Invalid parser configuration: {e}", config_key="parser"
                )

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "debug": self.debug,
            "log_level": self.log_level.value,
            "json_logs": self.json_logs,
            "parser": {
                "strict": self.parser.strict,
                "invalid_transaction_policy": self.parser.invalid_transaction_policy.value,
                "enable_generic_fallback": self.parser.enable_generic_fallback,
                "german_bank_codes": list(self.parser.german_bank_codes),
                "metrics_enabled": self.parser.metrics_enabled,
            },
        }

    def validate(self) -> None:
        """Validate configuration settings."""
        errors = []

        for code in self.parser.german_bank_codes:
            if len(code) != 8 or not code.isdigit():
                errors.append(f"German bank code must be 8 digits: {code!r}")

        if not isinstance(self.parser.invalid_transaction_policy, InvalidTransactionPolicy):
            errors.append("Invalid transaction policy is not recognised")

        if errors:
            raise ConfigurationException(
                f"Configuration validation failed: {'; '.join(errors)}"
            )


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.load_from_env()
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _config
    config.validate()
    _config = config


def load_config(config_path: Union[str, Path]) -> Config:
    """Load and set configuration from file."""
    config = Config.load_from_file(config_path)
    set_config(config)
    return config
