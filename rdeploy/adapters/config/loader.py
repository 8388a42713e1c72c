"""
Configuration loader with priority: CLI > env > TOML
"""
import os
import tomllib
from pathlib import Path
from typing import Dict, Any, Mapping, Optional

from ...core.constants import ENV_PREFIX
from ...core.exceptions import ConfigError


# Environment variable → config key
ENV_MAPPINGS = {
    "HOST": "host",
    "USER": "user",
    "PORT": "port",
    "KEY": "key",
    "PASSWORD": "password",
    "TIMEOUT": "timeout",
    "LOCAL_DIR": "local_dir",
    "REMOTE_DIR": "remote_dir",
    "REVISION": "revision",
    "EXCLUDE": "exclude",
    "DRY_RUN": "dry_run",
    "COMMAND_TIMEOUT": "command_timeout",
}

# Values kept as strings even if they look like numbers or booleans
_STRING_KEYS = {"password", "revision", "exclude", "user", "host", "local_dir", "remote_dir", "key"}


class ConfigLoader:
    """Configuration loader with priority support"""

    def __init__(self, env_prefix: str = ENV_PREFIX, environ: Optional[Mapping[str, str]] = None):
        self._env_prefix = env_prefix
        self._environ = environ if environ is not None else os.environ

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Load TOML configuration file"""
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            return tomllib.loads(path.read_text(encoding='utf-8'))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
            raise ConfigError(f"Failed to parse TOML configuration {path}: {e}") from e

    def load_env(self) -> Dict[str, Any]:
        """Load configuration from RDEPLOY_* environment variables"""
        config = {}

        for suffix, config_key in ENV_MAPPINGS.items():
            value = self._environ.get(self._env_prefix + suffix)
            if value:
                if config_key in _STRING_KEYS:
                    config[config_key] = value
                else:
                    config[config_key] = self._convert_value(value)

        return config

    def _convert_value(self, value: str) -> Any:
        """Convert string value to appropriate type"""
        if value.lower() in ("true", "yes", "1"):
            return True
        if value.lower() in ("false", "no", "0"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configurations with priority.
        Later configs override earlier ones.
        """
        result: Dict[str, Any] = {}

        for config in configs:
            result = self._deep_merge(result, config)

        return result

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def load(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> Dict[str, Any]:
        """
        Load configuration with priority: CLI > env > TOML

        Args:
            toml_path: Path to TOML configuration file
            cli_overrides: CLI parameter overrides (None values are dropped)
            use_env: Whether to load from environment variables

        Returns:
            Merged configuration dictionary
        """
        configs = []

        if toml_path:
            configs.append(self.load_toml(toml_path))

        if use_env:
            env_config = self.load_env()
            if env_config:
                configs.append(env_config)

        if cli_overrides:
            configs.append({k: v for k, v in cli_overrides.items() if v is not None})

        return self.merge_configs(*configs)
