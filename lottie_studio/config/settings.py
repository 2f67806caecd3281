"""
Configuration management for LottieStudio

This module provides the importer/exporter configuration with YAML/JSON file
support, environment variable overrides, and type validation.
"""

import os
import json
import yaml
from pathlib import Path
from typing import Any, Dict, Optional, Union
from dataclasses import dataclass
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..core.lottie_format import DEFAULT_LOTTIE_VERSION
from ..core.exceptions import ConfigError
from ..core.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ImportSettings:
    """Lottie import settings"""
    default_name: str = "Imported Animation"
    # Tangents closer than this to the linear handles are treated as linear
    tangent_tolerance: float = 1e-6


@dataclass
class ExportSettings:
    """Lottie export settings"""
    lottie_version: str = DEFAULT_LOTTIE_VERSION
    pretty_json: bool = True
    json_indent: int = 2
    # Frame numbers within this distance of an integer are written as integers
    frame_snap_tolerance: float = 1e-6


class SettingsConfig(BaseModel):
    """Main configuration model"""
    importer: ImportSettings = Field(default_factory=ImportSettings)
    exporter: ExportSettings = Field(default_factory=ExportSettings)

    # General settings
    log_level: str = "INFO"
    debug_mode: bool = False

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Invalid log level: {v}')
        return v.upper()


class Settings:
    """Main settings manager"""

    ENV_MAPPING = {
        'LOTTIE_STUDIO_LOG_LEVEL': ['log_level'],
        'LOTTIE_STUDIO_DEBUG': ['debug_mode'],
        'LOTTIE_STUDIO_DEFAULT_NAME': ['importer', 'default_name'],
        'LOTTIE_STUDIO_LOTTIE_VERSION': ['exporter', 'lottie_version'],
        'LOTTIE_STUDIO_PRETTY_JSON': ['exporter', 'pretty_json'],
        'LOTTIE_STUDIO_JSON_INDENT': ['exporter', 'json_indent'],
    }

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self.config_path = Path(config_path) if config_path else self._get_default_config_path()
        self._config: Optional[SettingsConfig] = None
        self._load_config()

    def _get_default_config_path(self) -> Path:
        """Get default configuration file path"""
        return Path.home() / ".lottie_studio" / "config.yaml"

    def _load_config(self):
        """Load configuration from file and environment variables"""
        config_data: Dict[str, Any] = {}

        # Load from file if it exists
        if self.config_path.exists():
            try:
                config_data = self._read_file(self.config_path)
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config file {self.config_path}: {e}")
                config_data = {}

        # Override with environment variables
        self._deep_merge(config_data, self._load_env_config())

        self._config = self._build(config_data)

    @staticmethod
    def _read_file(path: Path) -> Dict[str, Any]:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() == '.json':
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be a mapping, got {type(data).__name__}")
        return data

    @staticmethod
    def _build(config_data: Dict[str, Any]) -> SettingsConfig:
        try:
            return SettingsConfig(**config_data)
        except ValidationError as e:
            raise ConfigError(f"Configuration validation failed: {e}")

    def _load_env_config(self) -> Dict[str, Any]:
        """Load configuration from environment variables"""
        config: Dict[str, Any] = {}
        for env_var, config_path in self.ENV_MAPPING.items():
            value = os.getenv(env_var)
            if value is None:
                continue

            # Navigate nested dictionary
            current = config
            for key in config_path[:-1]:
                current = current.setdefault(key, {})

            # Convert to appropriate type
            final_key = config_path[-1]
            if final_key in ['json_indent']:
                try:
                    value = int(value)
                except ValueError:
                    logger.warning(f"Ignoring non-integer {env_var}={value!r}")
                    continue
            elif final_key in ['debug_mode', 'pretty_json']:
                value = value.lower() in ['true', '1', 'yes', 'on']

            current[final_key] = value

        return config

    @staticmethod
    def _deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
        for key, value in update.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                Settings._deep_merge(base[key], value)
            else:
                base[key] = value
        return base

    def save(self):
        """Save current configuration to file"""
        self.export_config(self.config_path)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation"""
        value: Any = self._config
        try:
            for k in key.split('.'):
                if isinstance(value, dict):
                    value = value[k]
                else:
                    value = getattr(value, k)
            return value
        except (AttributeError, KeyError):
            return default

    def set(self, key: str, value: Any):
        """Set configuration value using dot notation"""
        data = self._config.model_dump()
        current = data
        keys = key.split('.')
        for k in keys[:-1]:
            current = current.setdefault(k, {})
        current[keys[-1]] = value
        self._config = self._build(data)

    @property
    def config(self) -> SettingsConfig:
        """Get the full configuration object"""
        return self._config

    @property
    def importer(self) -> ImportSettings:
        return self._config.importer

    @property
    def exporter(self) -> ExportSettings:
        return self._config.exporter

    def reset_to_defaults(self):
        """Reset all settings to default values"""
        self._config = SettingsConfig()

    def export_config(self, path: Union[str, Path]):
        """Export configuration to a file"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = self._config.model_dump()

        with open(path, 'w', encoding='utf-8') as f:
            if path.suffix.lower() == '.json':
                json.dump(config_dict, f, indent=2, ensure_ascii=False)
            else:
                yaml.dump(config_dict, f, default_flow_style=False, allow_unicode=True)

    def import_config(self, path: Union[str, Path]):
        """Import configuration from a file"""
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Configuration file missing: {path}", key=str(path))

        self._config = self._build(self._read_file(path))


_settings: Optional[Settings] = None


def get_settings(config_path: Optional[Union[str, Path]] = None) -> Settings:
    """获取全局配置实例"""
    global _settings
    if _settings is None or config_path is not None:
        _settings = Settings(config_path)
    return _settings


def reset_settings() -> None:
    """丢弃全局配置实例（测试使用）"""
    global _settings
    _settings = None
