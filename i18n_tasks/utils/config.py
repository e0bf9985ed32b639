from copy import deepcopy
from pathlib import Path

import yaml

from i18n_tasks.errors import ConfigError
from i18n_tasks.utils.logging_setup import get_logger

logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path("config") / "i18n-tasks.yml"

DEFAULT_CONFIG = {
    "base_locale": "en",
    # Empty means: every locale found in the data directory
    "locales": [],
    "data": {
        "read": ["config/locales/%{locale}.yml"],
        "write": None,
    },
    "ignore": [],
    "ignore_missing": [],
    "ignore_plurals": [],
    "ignore_scope": "key",
    "plurals": {
        "unknown_locale": "skip",
        "default_forms": ["one", "other"],
    },
    "translation": {
        "backend": "argos",
        "max_workers": 4,
        "models_dir": "models/argos",
        "auto_install": True,
    },
}


class ConfigManager:
    """Configuration for a task, loaded from ``config/i18n-tasks.yml``.

    User values are recursively merged over ``DEFAULT_CONFIG``. Values are read
    and written with dot notation, e.g. ``config.get("plurals.unknown_locale")``.
    """

    def __init__(self, config_path=None, root_dir=None):
        self.root_dir = Path(root_dir) if root_dir else Path.cwd()
        self.config_path = Path(config_path) if config_path else self.root_dir / DEFAULT_CONFIG_PATH
        self.config = self.load_config()

    @classmethod
    def from_dict(cls, user_config, root_dir=None):
        """Build a configuration from an in-memory mapping, skipping the config file."""
        instance = cls.__new__(cls)
        instance.root_dir = Path(root_dir) if root_dir else Path.cwd()
        instance.config_path = None
        instance.config = instance.merge_configs(DEFAULT_CONFIG, user_config or {})
        return instance

    def load_config(self):
        """Load configuration from the config file, merging it over the defaults."""
        user_config = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    user_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Could not parse config file {self.config_path}: {e}") from e
            if not isinstance(user_config, dict):
                raise ConfigError(f"Config file {self.config_path} must contain a mapping")
            logger.debug(f"Loaded config from {self.config_path}")
        else:
            logger.debug(f"No config file at {self.config_path}, using defaults")
        return self.merge_configs(DEFAULT_CONFIG, user_config)

    def merge_configs(self, default, user):
        """Recursively merge user config with default config."""
        merged = deepcopy(default)

        for key, value in user.items():
            key = str(key)
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self.merge_configs(merged[key], value)
            else:
                merged[key] = value

        return merged

    def get(self, key, default=None):
        """Get a configuration value using dot notation."""
        try:
            value = self.config
            for k in key.split("."):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key, value):
        """Set a configuration value using dot notation. Only the in-memory config changes."""
        keys = key.split(".")
        current = self.config

        for k in keys[:-1]:
            if not isinstance(current.get(k), dict):
                current[k] = {}
            current = current[k]

        current[keys[-1]] = value

    def get_list(self, key):
        """Get a configuration value that must be a list of strings.

        A single string is accepted and wrapped in a list.
        """
        value = self.get(key)
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if not isinstance(value, (list, tuple)):
            raise ConfigError(f"Config value '{key}' must be a list, got {type(value).__name__}")
        return [str(v) for v in value]
