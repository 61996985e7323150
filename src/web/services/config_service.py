from __future__ import annotations

import os
from typing import Any, Dict, Optional

import yaml


class ConfigService:
    """
    Manages layered config:
    - config/default.yaml (checked in)
    - config/config.yaml (local overrides)
    - an optional explicit file passed with --config (applied last)
    """

    DEFAULT_PATH = os.path.join("config", "default.yaml")

    @staticmethod
    def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge override into base and return base. Lists are replaced."""
        for k, v in (override or {}).items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                ConfigService.deep_merge(base[k], v)
            else:
                base[k] = v
        return base

    @staticmethod
    def _load_yaml(path: str) -> Dict[str, Any]:
        if not os.path.exists(path):
            return {}
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a YAML mapping")
        return data

    @staticmethod
    def load_effective_config(config_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Merge default.yaml, config.yaml and config_path (in that order).

        The two layered files are looked up next to config_path when given,
        otherwise in ./config.
        """
        config_dir = os.path.dirname(config_path) if config_path else os.path.dirname(ConfigService.DEFAULT_PATH)
        overrides_path = os.path.join(config_dir, "config.yaml")

        merged = ConfigService._load_yaml(os.path.join(config_dir, "default.yaml"))
        ConfigService.deep_merge(merged, ConfigService._load_yaml(overrides_path))
        if config_path and os.path.abspath(config_path) != os.path.abspath(overrides_path):
            ConfigService.deep_merge(merged, ConfigService._load_yaml(config_path))
        return merged
