"""
Configuration module for the Keyspaces table reconciler.

Loads configuration from environment variables. Covers the remote API
endpoint, per-operation timeouts, provider-level tag policy and logging.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

DEFAULT_OPERATION_TIMEOUT = 600  # seconds (10 minutes)
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _split_list(value: str) -> List[str]:
    """Split a comma separated env value, dropping blanks."""
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class APIConfig:
    """Remote control-plane API configuration."""

    region: str = "us-east-1"
    endpoint_url: str = ""
    auth_token: str = field(default="", repr=False)  # Never log token
    request_timeout: int = 30  # seconds
    max_retries: int = 3
    retry_base_delay: float = 1.0  # seconds

    def __post_init__(self):
        if not self.endpoint_url:
            self.endpoint_url = f"https://cassandra.{self.region}.amazonaws.com"

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(
            region=os.getenv("AWS_REGION", "us-east-1"),
            endpoint_url=os.getenv("KEYSPACES_ENDPOINT_URL", ""),
            auth_token=os.getenv("KEYSPACES_AUTH_TOKEN", ""),
            request_timeout=int(os.getenv("KEYSPACES_REQUEST_TIMEOUT", "30")),
            max_retries=int(os.getenv("KEYSPACES_MAX_RETRIES", "3")),
            retry_base_delay=float(os.getenv("KEYSPACES_RETRY_BASE_DELAY", "1.0")),
        )


@dataclass
class TimeoutConfig:
    """Per-operation wait deadlines and polling behaviour."""

    create: float = DEFAULT_OPERATION_TIMEOUT
    update: float = DEFAULT_OPERATION_TIMEOUT
    delete: float = DEFAULT_OPERATION_TIMEOUT
    poll_interval: Optional[float] = 10  # None = exponential backoff
    not_found_checks: int = 20

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        poll_interval = os.getenv("TABLE_POLL_INTERVAL", "10")
        return cls(
            create=float(os.getenv("TABLE_CREATE_TIMEOUT", DEFAULT_OPERATION_TIMEOUT)),
            update=float(os.getenv("TABLE_UPDATE_TIMEOUT", DEFAULT_OPERATION_TIMEOUT)),
            delete=float(os.getenv("TABLE_DELETE_TIMEOUT", DEFAULT_OPERATION_TIMEOUT)),
            poll_interval=float(poll_interval) if poll_interval else None,
            not_found_checks=int(os.getenv("TABLE_NOT_FOUND_CHECKS", "20")),
        )


@dataclass
class TagConfig:
    """Provider-level tag policy: default tags and ignored tags."""

    default_tags: Dict[str, str] = field(default_factory=dict)
    ignore_keys: List[str] = field(default_factory=list)
    ignore_key_prefixes: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        # Load default tags from JSON environment variable
        default_tags = {}
        if os.getenv("DEFAULT_TAGS"):
            try:
                default_tags = json.loads(os.getenv("DEFAULT_TAGS"))
            except json.JSONDecodeError:
                pass

        return cls(
            default_tags={str(k): str(v) for k, v in default_tags.items()}
            if isinstance(default_tags, dict)
            else {},
            ignore_keys=_split_list(os.getenv("IGNORE_TAG_KEYS", "")),
            ignore_key_prefixes=_split_list(os.getenv("IGNORE_TAG_KEY_PREFIXES", "")),
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        return cls(level=os.getenv("LOG_LEVEL", "INFO"))


@dataclass
class Config:
    """Main configuration object."""

    api: APIConfig
    timeouts: TimeoutConfig
    tags: TagConfig
    logging: LoggingConfig

    @classmethod
    def from_env(cls):
        """Load all configuration from environment variables."""
        return cls(
            api=APIConfig.from_env(),
            timeouts=TimeoutConfig.from_env(),
            tags=TagConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    @classmethod
    def default(cls):
        """Return default configuration."""
        return cls(
            api=APIConfig(),
            timeouts=TimeoutConfig(),
            tags=TagConfig(),
            logging=LoggingConfig(),
        )


# Global config instance
config: Optional[Config] = None


def load_config() -> Config:
    """Load configuration (singleton pattern)."""
    global config
    if config is None:
        config = Config.from_env()
    return config


def get_config() -> Config:
    """Get the current configuration."""
    if config is None:
        return load_config()
    return config


def reset_config() -> None:
    """Reset configuration (mainly for testing)."""
    global config
    config = None


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging with the configured level."""
    level = level or get_config().logging.level
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
