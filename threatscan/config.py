"""Configuration — YAML file merged over defaults, then env var overrides."""

import copy
import logging
import os
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"

MIN_INTERVAL_MINUTES = 5
MAX_INTERVAL_MINUTES = 1440

# (env var, section, key, cast)
ENV_OVERRIDES = [
    ("ANALYZER_URL", "analyzer", "url", str),
    ("ANALYZER_API_KEY", "analyzer", "api_key", str),
    ("ANALYZER_TIMEOUT", "analyzer", "timeout", float),
    ("STORE_BACKEND", "store", "backend", str),
    ("STORE_URL", "store", "url", str),
    ("STORE_API_KEY", "store", "api_key", str),
    ("SCAN_USER_ID", "scan", "user_id", str),
    ("SCAN_INTERVAL_MINUTES", "scan", "interval_minutes", int),
    ("MAX_RETRIES", "submission", "max_retries", int),
    ("INTER_ENTRY_DELAY", "submission", "inter_entry_delay", float),
    ("LOG_LEVEL", "logging", "level", str),
]


class Config:
    """Configuration manager that loads from YAML and merges with defaults."""

    DEFAULTS = {
        "analyzer": {
            "url": "http://localhost:54321/functions/v1/analyze-log",
            "api_key": "",
            "timeout": 60.0,
        },
        "store": {
            "backend": "memory",
            "url": "http://localhost:54321",
            "api_key": "",
            "table": "logs",
            "max_records": 10000,
        },
        "submission": {
            "max_retries": 5,
            "inter_entry_delay": 5.0,
            "min_retry_wait": 5.0,
            "retry_step": 2.0,
            "max_input_chars": 100000,
        },
        "scan": {
            "user_id": "local",
            "interval_minutes": 60,
        },
        "logging": {
            "level": "INFO",
        },
    }

    def __init__(self, config_path=None, environ=None):
        self._config = copy.deepcopy(self.DEFAULTS)

        if config_path is not None:
            try:
                with open(config_path, "r") as f:
                    user_config = yaml.safe_load(f)

                if user_config and isinstance(user_config, dict):
                    self._config = self._deep_merge(self._config, user_config)
            except FileNotFoundError:
                logger.debug("Config file %s not found, using defaults", config_path)
            except yaml.YAMLError:
                logger.warning("Invalid YAML in %s, using defaults", config_path)

        self._apply_env(os.environ if environ is None else environ)

    @staticmethod
    def _deep_merge(base, override):
        """Recursively merge override dict into base dict."""
        result = copy.deepcopy(base)
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = Config._deep_merge(result[key], value)
            else:
                result[key] = copy.deepcopy(value)
        return result

    def _apply_env(self, environ):
        for var, section, key, cast in ENV_OVERRIDES:
            raw = environ.get(var)
            if raw is None or raw == "":
                continue
            try:
                self._config[section][key] = cast(raw)
            except ValueError:
                logger.warning("Ignoring %s=%r: not a valid %s", var, raw, cast.__name__)

    def get(self, key, default=None):
        """Get a top-level config key."""
        return self._config.get(key, default)

    def __getitem__(self, key):
        return self._config[key]

    def __contains__(self, key):
        return key in self._config


def load_config(config_path: str | None = None) -> Config:
    """Load config from config_path, CONFIG_PATH, or ./config.yaml (in that order)."""
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)
    return Config(config_path)


@dataclass(frozen=True)
class SubmissionSettings:
    max_retries: int = 5
    inter_entry_delay: float = 5.0
    min_retry_wait: float = 5.0
    retry_step: float = 2.0
    max_input_chars: int = 100_000

    def __post_init__(self):
        if self.max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        if self.inter_entry_delay < 0 or self.min_retry_wait < 0 or self.retry_step < 0:
            raise ValueError("delays must be non-negative")
        if self.max_input_chars < 1:
            raise ValueError("max_input_chars must be >= 1")

    @classmethod
    def from_config(cls, config: Config) -> "SubmissionSettings":
        section = config["submission"]
        return cls(
            max_retries=int(section["max_retries"]),
            inter_entry_delay=float(section["inter_entry_delay"]),
            min_retry_wait=float(section["min_retry_wait"]),
            retry_step=float(section["retry_step"]),
            max_input_chars=int(section["max_input_chars"]),
        )


def validate_interval(minutes: int) -> int:
    if not MIN_INTERVAL_MINUTES <= minutes <= MAX_INTERVAL_MINUTES:
        raise ValueError(
            f"Scan interval must be between {MIN_INTERVAL_MINUTES} and "
            f"{MAX_INTERVAL_MINUTES} minutes"
        )
    return minutes
