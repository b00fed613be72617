"""Configuration management for prkit.

Settings come from, in increasing precedence: the ``Config`` model defaults,
``~/.prkit/config.yaml``, ``<repo>/.prkit/config.yaml`` and ``PRKIT_*``
environment variables.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from prkit.models import Config
from prkit.utils.logger import get_logger
from prkit.utils.shell import get_git_root

logger = get_logger(__name__)

ENV_PREFIX = "PRKIT_"
CONFIG_DIR = ".prkit"
CONFIG_FILE = "config.yaml"

# ${VAR}, ${VAR:-default} or $VAR
_ENV_REFERENCE = re.compile(r"\$\{(?P<braced>[^}:]+)(?::-(?P<default>[^}]*))?\}|\$(?P<bare>[A-Z_][A-Z0-9_]*)")


class ConfigError(Exception):
    """Configuration error."""
    pass


def expand_env_vars(data: Any) -> Any:
    """Substitute environment variable references in every string of ``data``.

    References to unset variables without a default are kept verbatim.
    """
    if isinstance(data, dict):
        return {key: expand_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [expand_env_vars(item) for item in data]
    if not isinstance(data, str):
        return data

    def substitute(match: "re.Match[str]") -> str:
        name = match.group("braced") or match.group("bare")
        value = os.environ.get(name)
        if value is not None:
            return value
        if match.group("default") is not None:
            return match.group("default")
        logger.warning(f"Environment variable '{name}' not found")
        return match.group(0)

    return _ENV_REFERENCE.sub(substitute, data)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` into a copy of ``base``, descending into nested mappings."""
    merged = dict(base)
    for key, value in override.items():
        existing = merged.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            merged[key] = deep_merge(existing, value)
        else:
            merged[key] = value
    return merged


def _parse_env_value(raw: str) -> Any:
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if raw.isdigit():
        return int(raw)
    return raw


class ConfigManager:
    """Loads and caches the effective configuration."""

    def __init__(self):
        self._config: Optional[Config] = None
        self._user_config_path = Path.home() / CONFIG_DIR / CONFIG_FILE
        self._project_config_path: Optional[Path] = None
        self._find_project_config()

    def _find_project_config(self) -> None:
        """Look for a config file at the root of the current repository."""
        self._project_config_path = None
        root = get_git_root()
        if root is None:
            return

        candidate = root / CONFIG_DIR / CONFIG_FILE
        # Running from $HOME when it is itself a repository
        if candidate == self._user_config_path or not candidate.exists():
            return
        self._project_config_path = candidate
        logger.debug(f"Using project config {candidate}")

    def _read(self, path: Path) -> Dict[str, Any]:
        """Read one YAML file; a missing file is an empty mapping.

        Raises:
            ConfigError: If the file cannot be read, is not YAML or is not a mapping
        """
        if not path.exists():
            return {}

        logger.debug(f"Reading {path}")
        try:
            data = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML file {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to read config file {path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return expand_env_vars(data)

    def _env_overrides(self) -> Dict[str, Any]:
        """Nested mapping built from ``PRKIT_SECTION__KEY=value`` variables."""
        overrides: Dict[str, Any] = {}
        for name, raw in os.environ.items():
            if not name.startswith(ENV_PREFIX):
                continue

            *sections, key = name[len(ENV_PREFIX):].lower().split("__")
            target = overrides
            for section in sections:
                target = target.setdefault(section, {})
            target[key] = _parse_env_value(raw)
            logger.debug(f"Environment override {'.'.join([*sections, key])}={target[key]!r}")
        return overrides

    def load_config(self) -> Config:
        """Build the configuration from every source.

        Raises:
            ConfigError: If a file is unreadable or the result fails validation
        """
        data = self._read(self._user_config_path)
        if self._project_config_path is not None:
            data = deep_merge(data, self._read(self._project_config_path))
        data = deep_merge(data, self._env_overrides())

        try:
            self._config = Config.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}")
        return self._config

    def get_config(self) -> Config:
        """Cached configuration, loaded on first use."""
        if self._config is None:
            self.load_config()
        return self._config

    def reload_config(self) -> Config:
        """Forget the cached configuration and load it again."""
        self._config = None
        self._find_project_config()
        return self.load_config()

    def get_config_value(self, key: str) -> Any:
        """Value at a dotted path such as ``ai.review_agent``.

        Raises:
            ConfigError: If there is no such key
        """
        value: Any = self.get_config().model_dump(mode="json")
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                raise ConfigError(f"Configuration key not found: {key}")
            value = value[part]
        return value

    def list_config_files(self) -> Dict[str, Optional[Path]]:
        """Configuration files currently in effect, None where absent."""
        user = self._user_config_path
        return {
            "user": user if user.exists() else None,
            "project": self._project_config_path,
        }


config_manager = ConfigManager()


def get_config() -> Config:
    """Get current configuration."""
    return config_manager.get_config()


def get_config_value(key: str) -> Any:
    """Get configuration value by dot-separated key."""
    return config_manager.get_config_value(key)
