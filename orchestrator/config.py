#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration management for the folder icon pipeline.
Loads YAML config with environment variable support.
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from stages.errors import ConfigurationError

DEFAULT_CONFIG_PATH = "folder-icons.yaml"


class ConfigManager:
    """
    Configuration manager that loads settings from a YAML file.
    Missing keys fall back to built-in defaults.
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path or DEFAULT_CONFIG_PATH)
        self.explicit = config_path is not None
        self._config: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        """Load configuration file, merged over the defaults"""
        self._config = self._default_config()

        if not self.config_path.exists():
            if self.explicit:
                raise ConfigurationError(f"Config file not found: {self.config_path}")
            return

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid config file {self.config_path}: {e}")

        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Config file {self.config_path} must contain a mapping")
        self._merge(self._config, loaded)

    def _default_config(self) -> Dict[str, Any]:
        """Return default configuration"""
        return copy.deepcopy({
            'library': {
                'root': '~/Music',
                'artists_dir': 'Artists',
                'albums_dir': 'Albums',
                'tracks_dir': 'Tracks'
            },
            'art': {
                'marker_name': 'folder.jpg',
                'backend': 'ffmpeg',
                'timeout': 60,
                'workers': 1
            },
            'icons': {
                'strategy': 'auto',
                'descriptor_name': '.directory',
                'timeout': 30
            }
        })

    def _merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> None:
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                self._merge(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get config value with dot notation.

        Examples:
            config.get('art.marker_name')
            config.get('library.root')

        Environment variables are expanded if value is like ${VAR_NAME}
        """
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
            if value is None:
                return default

        # Expand environment variables
        if isinstance(value, str) and value.startswith('${') and value.endswith('}'):
            env_var = value[2:-1]
            return os.environ.get(env_var, default)

        return value

    def set(self, key: str, value: Any) -> None:
        """Override a value with dot notation (used for CLI flags)"""
        keys = key.split('.')
        target = self._config
        for k in keys[:-1]:
            target = target.setdefault(k, {})
        target[keys[-1]] = value

    @property
    def music_dir(self) -> Path:
        return Path(self.get('library.root', '~/Music')).expanduser()

    def _library_path(self, key: str, default: str) -> Path:
        path = Path(self.get(f'library.{key}', default)).expanduser()
        return path if path.is_absolute() else self.music_dir / path

    @property
    def artists_path(self) -> Path:
        return self._library_path('artists_dir', 'Artists')

    @property
    def albums_path(self) -> Path:
        return self._library_path('albums_dir', 'Albums')

    @property
    def tracks_path(self) -> Path:
        return self._library_path('tracks_dir', 'Tracks')

    @property
    def marker_name(self) -> str:
        return self.get('art.marker_name', 'folder.jpg')

    @property
    def backend(self) -> str:
        return self.get('art.backend', 'ffmpeg')

    @property
    def art_timeout(self) -> float:
        return float(self.get('art.timeout', 60))

    @property
    def workers(self) -> int:
        return int(self.get('art.workers', 1))

    @property
    def strategy(self) -> str:
        return self.get('icons.strategy', 'auto')

    @property
    def descriptor_name(self) -> str:
        return self.get('icons.descriptor_name', '.directory')

    @property
    def icon_timeout(self) -> float:
        return float(self.get('icons.timeout', 30))

    def __repr__(self) -> str:
        return f"ConfigManager(config={self.config_path})"
