"""
Configuration management module for Tableau API Client.
Loads and validates configuration from config.yaml.
"""

import os
from pathlib import Path
from typing import Any, Optional
import yaml


PASSWORD_ENV_VAR = 'TABLEAU_PASSWORD'


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


class Config:
    """
    Configuration manager for the Tableau API Client.
    Loads configuration from config.yaml and provides validated access to settings.
    """

    def __init__(self, config_path: str = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to config.yaml. If None, uses config/config.yaml
                in the project root.
        """
        if config_path is None:
            config_path = Path(__file__).parent.parent.parent / "config" / "config.yaml"
        else:
            config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigError(
                f"Configuration file not found: {config_path}\n"
                f"Please copy config/config.example.yaml to config/config.yaml and configure it."
            )

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ConfigError(f"Error reading configuration file: {e}")

        if not isinstance(self._config, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level")

        self._validate_config()

    def _validate_config(self):
        """Validate that all required configuration is present."""
        required_fields = [
            'server.url',
            'server.api_version',
            'auth.username',
        ]

        missing_fields = []
        for field in required_fields:
            if not self._get_nested(field):
                missing_fields.append(field)

        if missing_fields:
            raise ConfigError(
                f"Missing required configuration fields:\n" +
                "\n".join(f"  - {field}" for field in missing_fields)
            )

        url = str(self._get_nested('server.url'))
        if not url.startswith(('http://', 'https://')):
            raise ConfigError(
                f"Invalid server URL '{url}'. Must start with http:// or https://."
            )

        for field in ('api_settings.connect_timeout', 'api_settings.read_timeout'):
            value = self._get_nested(field)
            if value is not None and (not isinstance(value, (int, float)) or value <= 0):
                raise ConfigError(f"{field} must be a positive number, got {value!r}")

        omit = self._get_nested('server.omit_default_site_name')
        if omit is not None and not isinstance(omit, bool):
            raise ConfigError(
                f"server.omit_default_site_name must be true or false, got {omit!r}"
            )

    def _get_nested(self, key: str, default=None) -> Any:
        """
        Get a nested configuration value using dot notation.

        Args:
            key: Dot-separated key (e.g., 'server.url')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    @property
    def server_url(self) -> str:
        """Get server base URL without trailing slash."""
        return str(self._get_nested('server.url')).rstrip('/')

    @property
    def api_version(self) -> str:
        """Get REST API version string."""
        return str(self._get_nested('server.api_version'))

    @property
    def default_site_name(self) -> str:
        """Get the name the server uses for its default site."""
        return self._get_nested('server.default_site_name', 'Default')

    @property
    def omit_default_site_name(self) -> bool:
        """Whether sign-in sends an empty content URL for the default site."""
        value = self._get_nested('server.omit_default_site_name')
        return True if value is None else value

    @property
    def username(self) -> str:
        return str(self._get_nested('auth.username'))

    @property
    def password(self) -> str:
        """Get password; the TABLEAU_PASSWORD environment variable wins."""
        env_password = os.environ.get(PASSWORD_ENV_VAR)
        if env_password:
            return env_password
        return str(self._get_nested('auth.password', '') or '')

    @property
    def site(self) -> str:
        """Get content URL of the site to sign in to."""
        return str(self._get_nested('auth.site', '') or '')

    @property
    def impersonate_user_id(self) -> Optional[str]:
        return self._get_nested('auth.impersonate_user_id') or None

    @property
    def connect_timeout(self) -> float:
        """Get connect-phase timeout in seconds."""
        return self._get_nested('api_settings.connect_timeout', 10)

    @property
    def read_timeout(self) -> float:
        """Get read/write timeout in seconds."""
        return self._get_nested('api_settings.read_timeout', 30)

    @property
    def log_level(self) -> str:
        return self._get_nested('logging.level', 'INFO')

    @property
    def log_file(self) -> Path:
        """Get log file path."""
        return Path(self._get_nested('logging.file', './logs/tableau-api-client.log'))

    @property
    def log_max_size_mb(self) -> int:
        """Get maximum log file size in MB."""
        return self._get_nested('logging.max_size_mb', 10)

    @property
    def log_backup_count(self) -> int:
        """Get number of backup log files to keep."""
        return self._get_nested('logging.backup_count', 5)
