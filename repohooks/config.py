"""
Configuration utilities for loading and managing application configuration.

Settings are read from a YAML file in the user's home directory (never from
the repository being operated on, whose contents are untrusted) and merged
over built-in defaults.
"""
import copy
import os
import re
import yaml
import logging
from typing import Dict, Any, List, Optional
from dotenv import load_dotenv

from repohooks.pipeline.error_handling import ConfigError

logger = logging.getLogger(__name__)

# Environment variable pointing at an alternative configuration file
CONFIG_PATH_ENV = "GITHOOKS_CONFIG"

DEFAULT_CONFIG_DIR = os.path.join("~", ".githooks")
DEFAULT_CONFIG_PATH = os.path.join(DEFAULT_CONFIG_DIR, "config.yaml")
DEFAULT_DOTENV_PATH = os.path.join(DEFAULT_CONFIG_DIR, ".env")

# Manual trigger name used to refresh shared hook repositories
SHARED_REFRESH_TRIGGER = ".githooks.shared.trigger"

DEFAULT_CONFIG: Dict[str, Any] = {
    "hooks": {
        "directory": ".githooks",
        "checksum_file": ".githooks.checksum",
        "legacy_suffix": ".replaced.githook",
        "trust_all_marker": "trust-all",
        "shared_list_file": ".shared",
        "ignore_file": ".ignore",
    },
    "shared": {
        "cache_dir": os.path.join("~", ".githooks.shared"),
        "refresh_triggers": ["post-merge", SHARED_REFRESH_TRIGGER],
    },
    "logging": {
        "level": "INFO",
        "log_dir": None,
        "console_output": True,
        "console_format": "%(message)s",
    },
    "prompts": {
        "interactive": True,
    },
}

# Regex for finding environment variable references in the format ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r'\${([^}]+)}')


def substitute_env_vars(value: str) -> str:
    """
    Replace environment variable references in the string with their values.

    Args:
        value: String that may contain environment variable references.

    Returns:
        String with environment variables replaced with their values.
    """
    def replace_env_var(match):
        env_var_name = match.group(1)
        env_var_value = os.environ.get(env_var_name)

        if env_var_value is None:
            logger.warning(f"Environment variable '{env_var_name}' not found")
            return match.group(0)  # Return the original placeholder if variable not found

        logger.debug(f"Substituted environment variable: {env_var_name}")
        return env_var_value

    if isinstance(value, str):
        return ENV_VAR_PATTERN.sub(replace_env_var, value)
    return value


def process_config_dict(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Process configuration dictionary, substituting environment variables.

    Args:
        config: Configuration dictionary.

    Returns:
        Processed configuration dictionary.
    """
    result = {}

    for key, value in config.items():
        if isinstance(value, dict):
            result[key] = process_config_dict(value)
        elif isinstance(value, list):
            result[key] = [
                process_config_dict(item) if isinstance(item, dict)
                else substitute_env_vars(item) if isinstance(item, str)
                else item
                for item in value
            ]
        elif isinstance(value, str):
            result[key] = substitute_env_vars(value)
        else:
            result[key] = value

    return result


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_config(result[key], value)
        else:
            result[key] = value
    return result


def default_config_path() -> str:
    """Return the configuration file path, honouring ``$GITHOOKS_CONFIG``."""
    return os.path.expanduser(os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file merged over the defaults.

    Args:
        config_path: Path to configuration file. If None, uses default path.

    Returns:
        Configuration dictionary.

    Raises:
        ConfigError: If the file exists but cannot be parsed.
    """
    dotenv_path = os.path.expanduser(DEFAULT_DOTENV_PATH)
    if os.path.isfile(dotenv_path):
        load_dotenv(dotenv_path)

    if not config_path:
        config_path = default_config_path()

    if not os.path.exists(config_path):
        logger.debug(f"No configuration file at {config_path}, using defaults")
        return process_config_dict(copy.deepcopy(DEFAULT_CONFIG))

    logger.debug(f"Loading configuration from {config_path}")

    try:
        with open(config_path, 'r') as f:
            user_config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(
            f"Error loading configuration from {config_path}",
            original_exception=e,
        )

    if not isinstance(user_config, dict):
        raise ConfigError(f"Configuration in {config_path} must be a mapping")

    return process_config_dict(merge_config(DEFAULT_CONFIG, user_config))


class ConfigManager:
    """
    Configuration manager for the hook pipeline.
    Handles loading configuration from YAML files and environment variables.
    """

    def __init__(self, config_path: Optional[str] = None, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the YAML configuration file
            config: Already loaded configuration, merged over the defaults
                instead of reading a file
        """
        self.config_path = config_path
        if config is not None:
            self.config = process_config_dict(merge_config(DEFAULT_CONFIG, config))
        else:
            self.config = load_config(config_path)

    def get_hooks_config(self) -> Dict[str, Any]:
        """
        Get repository hook layout configuration.

        Returns:
            Dict containing hook layout configuration
        """
        return self.config.get("hooks", {})

    def get_shared_config(self) -> Dict[str, Any]:
        """
        Get shared repository configuration.

        Returns:
            Dict containing shared repository configuration
        """
        return self.config.get("shared", {})

    def get_logging_config(self) -> Dict[str, Any]:
        """
        Get logging-specific configuration.

        Returns:
            Dict containing logging configuration
        """
        return self.config.get("logging", {})

    @property
    def hooks_dir_name(self) -> str:
        return self.get_hooks_config().get("directory", ".githooks")

    @property
    def checksum_file_name(self) -> str:
        return self.get_hooks_config().get("checksum_file", ".githooks.checksum")

    @property
    def legacy_suffix(self) -> str:
        return self.get_hooks_config().get("legacy_suffix", ".replaced.githook")

    @property
    def trust_all_marker(self) -> str:
        return self.get_hooks_config().get("trust_all_marker", "trust-all")

    @property
    def shared_list_file(self) -> str:
        return self.get_hooks_config().get("shared_list_file", ".shared")

    @property
    def ignore_file(self) -> str:
        return self.get_hooks_config().get("ignore_file", ".ignore")

    @property
    def shared_cache_dir(self) -> str:
        cache_dir = self.get_shared_config().get("cache_dir") or DEFAULT_CONFIG["shared"]["cache_dir"]
        return os.path.expanduser(cache_dir)

    @property
    def refresh_triggers(self) -> List[str]:
        return list(self.get_shared_config().get("refresh_triggers") or [])

    @property
    def interactive(self) -> bool:
        return bool(self.config.get("prompts", {}).get("interactive", True))
