"""Unit tests for config.py - Configuration management."""

from unittest.mock import patch

import config
from config import (
    DEFAULT_OPERATION_TIMEOUT,
    APIConfig,
    Config,
    LoggingConfig,
    TagConfig,
    TimeoutConfig,
    get_config,
    load_config,
    reset_config,
    setup_logging,
)


class TestAPIConfig:
    """Tests for APIConfig class."""

    def test_default_values(self):
        cfg = APIConfig()
        assert cfg.region == "us-east-1"
        assert cfg.endpoint_url == "https://cassandra.us-east-1.amazonaws.com"
        assert cfg.auth_token == ""
        assert cfg.request_timeout == 30
        assert cfg.max_retries == 3
        assert cfg.retry_base_delay == 1.0

    def test_endpoint_follows_region(self):
        cfg = APIConfig(region="eu-west-1")
        assert cfg.endpoint_url == "https://cassandra.eu-west-1.amazonaws.com"

    def test_explicit_endpoint(self):
        cfg = APIConfig(endpoint_url="http://localhost:4566")
        assert cfg.endpoint_url == "http://localhost:4566"

    def test_token_not_in_repr(self):
        cfg = APIConfig(auth_token="secret-token")
        assert "secret-token" not in repr(cfg)

    def test_from_env(self):
        env_vars = {
            "AWS_REGION": "ap-southeast-2",
            "KEYSPACES_ENDPOINT_URL": "http://keyspaces.local",
            "KEYSPACES_AUTH_TOKEN": "tok",
            "KEYSPACES_REQUEST_TIMEOUT": "15",
            "KEYSPACES_MAX_RETRIES": "5",
            "KEYSPACES_RETRY_BASE_DELAY": "0.5",
        }
        with patch.dict("os.environ", env_vars, clear=True):
            cfg = APIConfig.from_env()

        assert cfg.region == "ap-southeast-2"
        assert cfg.endpoint_url == "http://keyspaces.local"
        assert cfg.auth_token == "tok"
        assert cfg.request_timeout == 15
        assert cfg.max_retries == 5
        assert cfg.retry_base_delay == 0.5

    def test_from_env_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            cfg = APIConfig.from_env()
        assert cfg.endpoint_url == "https://cassandra.us-east-1.amazonaws.com"


class TestTimeoutConfig:
    """Tests for TimeoutConfig class."""

    def test_default_values(self):
        cfg = TimeoutConfig()
        assert cfg.create == DEFAULT_OPERATION_TIMEOUT == 600
        assert cfg.update == 600
        assert cfg.delete == 600
        assert cfg.poll_interval == 10
        assert cfg.not_found_checks == 20

    def test_from_env(self):
        env_vars = {
            "TABLE_CREATE_TIMEOUT": "1200",
            "TABLE_UPDATE_TIMEOUT": "300",
            "TABLE_DELETE_TIMEOUT": "900",
            "TABLE_POLL_INTERVAL": "2.5",
            "TABLE_NOT_FOUND_CHECKS": "5",
        }
        with patch.dict("os.environ", env_vars, clear=True):
            cfg = TimeoutConfig.from_env()

        assert cfg.create == 1200
        assert cfg.update == 300
        assert cfg.delete == 900
        assert cfg.poll_interval == 2.5
        assert cfg.not_found_checks == 5

    def test_empty_poll_interval_uses_backoff(self):
        with patch.dict("os.environ", {"TABLE_POLL_INTERVAL": ""}, clear=True):
            cfg = TimeoutConfig.from_env()
        assert cfg.poll_interval is None


class TestTagConfig:
    """Tests for TagConfig class."""

    def test_default_values(self):
        cfg = TagConfig()
        assert cfg.default_tags == {}
        assert cfg.ignore_keys == []
        assert cfg.ignore_key_prefixes == []

    def test_from_env(self):
        env_vars = {
            "DEFAULT_TAGS": '{"team": "data", "env": "prod"}',
            "IGNORE_TAG_KEYS": "owner, cost_center",
            "IGNORE_TAG_KEY_PREFIXES": "kubernetes.io/,",
        }
        with patch.dict("os.environ", env_vars, clear=True):
            cfg = TagConfig.from_env()

        assert cfg.default_tags == {"team": "data", "env": "prod"}
        assert cfg.ignore_keys == ["owner", "cost_center"]
        assert cfg.ignore_key_prefixes == ["kubernetes.io/"]

    def test_invalid_default_tags_json_ignored(self):
        with patch.dict("os.environ", {"DEFAULT_TAGS": "{not json"}, clear=True):
            cfg = TagConfig.from_env()
        assert cfg.default_tags == {}

    def test_non_object_default_tags_ignored(self):
        with patch.dict("os.environ", {"DEFAULT_TAGS": '["a", "b"]'}, clear=True):
            cfg = TagConfig.from_env()
        assert cfg.default_tags == {}


class TestConfig:
    """Tests for the main Config class and singleton helpers."""

    def test_default(self):
        cfg = Config.default()
        assert isinstance(cfg.api, APIConfig)
        assert isinstance(cfg.timeouts, TimeoutConfig)
        assert isinstance(cfg.tags, TagConfig)
        assert isinstance(cfg.logging, LoggingConfig)

    def test_from_env(self):
        with patch.dict("os.environ", {"LOG_LEVEL": "DEBUG"}, clear=True):
            cfg = Config.from_env()
        assert cfg.logging.level == "DEBUG"

    def test_load_config_singleton(self):
        with patch.dict("os.environ", {}, clear=True):
            first = load_config()
            second = load_config()
        assert first is second
        assert config.config is first

    def test_get_config_loads_once(self):
        with patch.dict("os.environ", {}, clear=True):
            cfg = get_config()
        assert get_config() is cfg

    def test_reset_config(self):
        with patch.dict("os.environ", {}, clear=True):
            load_config()
        reset_config()
        assert config.config is None


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_uses_explicit_level(self):
        with patch("config.logging.basicConfig") as mock_basic:
            setup_logging("debug")
        mock_basic.assert_called_once_with(level="DEBUG", format=config.LOG_FORMAT)

    def test_uses_configured_level(self):
        with patch.dict("os.environ", {"LOG_LEVEL": "WARNING"}, clear=True):
            with patch("config.logging.basicConfig") as mock_basic:
                setup_logging()
        mock_basic.assert_called_once_with(level="WARNING", format=config.LOG_FORMAT)
