from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import yaml

from models.config import Config


class ConfigService:
    """
    Manages layered config:
    - config/default.yaml (checked in)
    - config/config.yaml (local overrides)
    - an explicit file given on the command line (applied last)
    """

    CONFIG_DIR = "config"
    DEFAULT_NAME = "default.yaml"
    OVERRIDES_NAME = "config.yaml"

    @staticmethod
    def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge override into base and return base."""
        for k, v in (override or {}).items():
            if isinstance(v, dict) and isinstance(base.get(k), dict):
                ConfigService.deep_merge(base[k], v)
            else:
                base[k] = v
        return base

    @staticmethod
    def read_yaml(path: str) -> Dict[str, Any]:
        if not os.path.exists(path):
            return {}
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def load_effective_config(cls, config_dir: Optional[str] = None,
                              explicit_path: Optional[str] = None) -> Dict[str, Any]:
        config_dir = config_dir or cls.CONFIG_DIR
        overrides_path = os.path.join(config_dir, cls.OVERRIDES_NAME)

        merged = cls.read_yaml(os.path.join(config_dir, cls.DEFAULT_NAME))
        cls.deep_merge(merged, cls.read_yaml(overrides_path))
        if explicit_path and os.path.abspath(explicit_path) != os.path.abspath(overrides_path):
            if not os.path.exists(explicit_path):
                raise FileNotFoundError(explicit_path)
            cls.deep_merge(merged, cls.read_yaml(explicit_path))
        logging.debug(f"Loaded config from {config_dir} (explicit: {explicit_path})")
        return merged

    @classmethod
    def load_typed(cls, config_dir: Optional[str] = None,
                   explicit_path: Optional[str] = None) -> Config:
        return Config.from_dict(cls.load_effective_config(config_dir, explicit_path))

    @classmethod
    def save_overrides(cls, overrides: Dict[str, Any], config_dir: Optional[str] = None) -> None:
        config_dir = config_dir or cls.CONFIG_DIR
        os.makedirs(config_dir, exist_ok=True)
        with open(os.path.join(config_dir, cls.OVERRIDES_NAME), "w") as f:
            yaml.safe_dump(overrides or {}, f, sort_keys=False)
