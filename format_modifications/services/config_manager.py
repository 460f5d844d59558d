"""
Configuration Manager - Persist the base formatting configuration
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manage configuration persistence"""

    _instance = None
    _config_file = None

    def __init__(self):
        try:
            # 1. environment variable
            config_dir = os.environ.get("FORMAT_MODIFICATIONS_CONFIG_DIR")

            # 2. ~/.format_modifications
            if not config_dir:
                config_dir = os.path.expanduser("~/.format_modifications")

            if config_dir:
                config_path = Path(config_dir)
                try:
                    config_path.mkdir(parents=True, exist_ok=True)
                    self._config_file = config_path / "config.json"
                except OSError as e:
                    logger.warning("Cannot write to %s: %s", config_dir, e)
                    self._config_file = None

            # 3. temp directory when the others are not writable
            if not self._config_file:
                tmp_dir = Path(tempfile.gettempdir()) / "format_modifications"
                tmp_dir.mkdir(parents=True, exist_ok=True)
                self._config_file = tmp_dir / "config.json"
                logger.info("Using temporary config path: %s", self._config_file)

        except OSError as e:
            logger.error("Cannot prepare a config directory: %s", e)
            self._config_file = Path(tempfile.gettempdir()) / "format_modifications_config_fallback.json"

        self._config = self._load_config()

    @classmethod
    def get_instance(cls) -> "ConfigManager":
        """Get singleton instance"""
        if cls._instance is None:
            cls._instance = ConfigManager()
        return cls._instance

    @property
    def config_file(self) -> Path:
        return self._config_file

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from file, filling in missing defaults"""
        config = self._default_config()
        if not self._config_file.exists():
            return config

        try:
            with open(self._config_file) as f:
                stored = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error("Error loading config: %s", e)
            return config

        config.update(stored)
        config["diff_options"] = {
            **self._default_config()["diff_options"],
            **stored.get("diff_options", {}),
        }
        return config

    def _default_config(self) -> dict[str, Any]:
        """Get default configuration"""
        return {
            # options passed to the line diff
            "diff_options": {
                "algorithm": "patience",
                "ctxlen": 0,
                "interhunkctxlen": 0,
                "indent_heuristic": True,
                "ignore_cr_at_eol": True,
            },
            # run the attached formatters when the editor saves the buffer
            "format_on_save": False,
            "vcs": "git",
            # formatter client definitions by name, see FormatterClientConfig
            "formatters": {},
            # None: external commands may run as long as they like
            "command_timeout_s": None,
            "log_level": os.environ.get("FORMAT_MODIFICATIONS_LOG_LEVEL", "INFO"),
            "server": {"host": "127.0.0.1", "port": 8000},
        }

    def get_config(self) -> dict[str, Any]:
        """Get current configuration"""
        # Reload config from file to ensure we have the latest
        self._config = self._load_config()
        return copy.deepcopy(self._config)

    def save_config(self, config: dict[str, Any]):
        """Save configuration to file"""
        # Merge with existing config
        self._config.update(config)

        # Ensure config directory exists
        self._config_file.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(self._config_file, "w") as f:
                json.dump(self._config, f, indent=2)
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}")

    def set(self, key: str, value: Any):
        """Set specific config value"""
        self._config[key] = value
        self.save_config(self._config)

    def base_attach_config(self) -> dict[str, Any]:
        """Defaults that every attachment starts from"""
        config = self.get_config()
        return {
            "diff_options": config["diff_options"],
            "format_on_save": config["format_on_save"],
            "vcs": config["vcs"],
        }

    def get_formatters(self) -> dict[str, dict[str, Any]]:
        return self.get_config().get("formatters", {})

    def set_formatter(self, name: str, definition: dict[str, Any]):
        formatters = self.get_formatters()
        formatters[name] = definition
        self.set("formatters", formatters)

    def remove_formatter(self, name: str) -> bool:
        formatters = self.get_formatters()
        if formatters.pop(name, None) is None:
            return False
        self.set("formatters", formatters)
        return True
