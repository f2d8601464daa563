from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from stock_relay.app.models.config import AppConfig
from stock_relay.util.errors import ConfigError

SUPPORTED_SCHEMA_VERSIONS = {1}

ENV_OVERRIDES = {
    "WOOCOMMERCE_STORE_URL": ("catalog", "store_url"),
    "WOOCOMMERCE_CONSUMER_KEY": ("catalog", "consumer_key"),
    "WOOCOMMERCE_CONSUMER_SECRET": ("catalog", "consumer_secret"),
    "STOCK_RELAY_ARTIFACT_BUCKET": ("report", "artifact_bucket"),
}


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    for variable, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(variable)
        if value:
            data.setdefault(section, {})[key] = value
    return data


def load_app_config(path: Optional[str | Path] = None) -> AppConfig:
    data: Dict[str, Any] = {}
    if path:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    config = AppConfig.model_validate(_apply_env_overrides(data))
    if config.schema_version not in SUPPORTED_SCHEMA_VERSIONS:
        raise ConfigError(f"Unsupported schema_version {config.schema_version}")
    return config
