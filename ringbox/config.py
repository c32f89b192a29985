#!/usr/bin/env python3
"""
Ringbox Configuration Management System
Handles the configuration file, environment variables, and defaults
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict
from .exceptions import ConfigurationError
from .logger import logger, resolve_level
from .version import __version__

log = logger.get_logger("config")


class ConfigManager:
    """Manage Ringbox configuration"""

    _instance = None
    _initialized = False

    DEFAULT_CONFIG = {
        "tool": {
            "name": "Ringbox",
            "version": __version__
        },
        "shell": {
            "prompt": "ringbox> ",
            "history_file": "~/.ringbox_history"
        },
        "bruteforce": {
            "timeout": 10,
            "delay_ms": 0,
            "verify_tls": False
        },
        "session": {
            "export_path": "./report.json",
            "report_path": "./report.html"
        },
        "logging": {
            "level": "INFO",
            "directory": ".ringbox/logs"
        }
    }

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if ConfigManager._initialized:
            return

        self.config_dir = Path(os.environ.get("RINGBOX_HOME", Path.home() / ".ringbox"))
        self.config_file = self.config_dir / "config.json"

        self.config = self._load_config()
        self.apply_logging()

        ConfigManager._initialized = True

    def apply_logging(self):
        """Point the log file and level at the ``logging`` section"""
        try:
            logger.configure(self.get("logging.directory", ".ringbox/logs"), self.get("logging.level", "INFO"))
        except ConfigurationError as e:
            log.warning(f"Logging settings ignored: {e.message}")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file and environment"""
        config = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    self._deep_merge(config, json.load(f))
                log.info(f"Loaded configuration from {self.config_file}")
            except (OSError, json.JSONDecodeError) as e:
                log.warning(f"Failed to load config file: {e}")

        self._load_from_env(config)
        return config

    def _deep_merge(self, base: Dict, overlay: Dict):
        """Deep merge overlay config into base"""
        for key, value in overlay.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _load_from_env(self, config: Dict):
        """Load configuration from environment variables"""
        # Pattern: RINGBOX_SECTION_KEY=value
        for env_key, env_value in os.environ.items():
            if env_key.startswith("RINGBOX_"):
                parts = env_key[8:].lower().split("_", 1)
                if len(parts) == 2:
                    section, key = parts
                    if section in config and isinstance(config[section], dict):
                        config[section][key] = self._parse_env_value(env_value)

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        """Parse environment variable value to appropriate type"""
        if value.lower() in ('true', 'yes'):
            return True
        elif value.lower() in ('false', 'no'):
            return False
        elif value.isdigit():
            return int(value)
        else:
            try:
                return float(value)
            except ValueError:
                return value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value with dot notation

        Args:
            key: Configuration key (e.g., "bruteforce.timeout")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self.config
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value

    def set(self, key: str, value: Any):
        """Set configuration value with dot notation"""
        parts = key.split(".")
        config = self.config

        for part in parts[:-1]:
            if part not in config:
                config[part] = {}
            config = config[part]

        config[parts[-1]] = value
        log.debug(f"Configuration updated: {key} = {value}")

    def save(self) -> Path:
        """Save configuration to file"""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(self.config, f, indent=2)
            log.info(f"Configuration saved to {self.config_file}")
            return self.config_file
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration: {e}")

    def reset_to_defaults(self):
        """Reset configuration to defaults"""
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)
        log.info("Configuration reset to defaults")

    def validate(self):
        """Validate configuration"""
        timeout = self.get("bruteforce.timeout")
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigurationError("bruteforce.timeout must be greater than 0", "bruteforce.timeout")

        delay = self.get("bruteforce.delay_ms")
        if not isinstance(delay, int) or delay < 0:
            raise ConfigurationError("bruteforce.delay_ms must be a non-negative integer", "bruteforce.delay_ms")

        resolve_level(self.get("logging.level", "INFO"))

        log.debug("Configuration validation passed")

    def to_dict(self) -> Dict[str, Any]:
        """Get entire configuration as dictionary"""
        return copy.deepcopy(self.config)


# Singleton instance
config = ConfigManager()
