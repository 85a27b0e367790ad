"""Configuration loader for scrtsync presets."""
import os
import logging
from pathlib import Path
from typing import Optional
import yaml

from .errors import ConfigError
from .models import Config, PresetConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = ".scrtsync.json"
CONFIG_ENV_VAR = "SCRTSYNC_CONFIG"

PRESETS_FORMAT = (
    "Required format:\n"
    "{\n"
    '  "presets": {\n'
    '    "<name>": {"from": "<uri>", "to": "<uri>"}\n'
    "  }\n"
    "}"
)


def _get_config_path(path: Optional[str] = None) -> str:
    """
    Get the config file path.

    Priority order:
    1. Explicit path (--config flag)
    2. SCRTSYNC_CONFIG environment variable
    3. Default location: ./.scrtsync.json

    Returns:
        Config file path (not necessarily existing)
    """
    if path:
        return path

    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        logger.debug(f"Using config path from {CONFIG_ENV_VAR}: {env_path}")
        return env_path

    return DEFAULT_CONFIG


def load_config(path: Optional[str] = None) -> Config:
    """
    Load and validate configuration from a JSON or YAML file.

    Args:
        path: Config file path; resolved with _get_config_path when omitted

    Returns:
        Parsed Config. If the default config file does not exist, an empty
        Config is returned.

    Raises:
        ConfigError: If an explicitly requested file is missing, or a file is invalid
    """
    config_path = _get_config_path(path)

    if not Path(config_path).exists():
        if config_path == DEFAULT_CONFIG:
            logger.debug(f"No {DEFAULT_CONFIG} found, using empty config")
            return Config.empty()
        raise ConfigError(f"Configuration file not found at: {config_path}")

    # JSON is a subset of YAML, so safe_load reads both
    try:
        with open(config_path, 'r', encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config at {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}") from e

    if raw is None:
        raise ConfigError(f"Config file at {config_path} is empty")

    if not isinstance(raw, dict):
        raise ConfigError(f"Config at {config_path} must be a mapping\n{PRESETS_FORMAT}")

    presets_raw = raw.get("presets") or {}
    if not isinstance(presets_raw, dict):
        raise ConfigError(f"'presets' in {config_path} must be a mapping\n{PRESETS_FORMAT}")

    presets = {}
    for name, preset in presets_raw.items():
        if not isinstance(preset, dict):
            raise ConfigError(f"Preset '{name}' in {config_path} must be a mapping\n{PRESETS_FORMAT}")

        for field in ("from", "to"):
            if not isinstance(preset.get(field), str) or not preset[field]:
                raise ConfigError(f"Missing or invalid '{field}' in preset '{name}' at {config_path}")

        presets[str(name)] = PresetConfig(from_uri=preset["from"], to_uri=preset["to"])

    logger.info(f"Configuration loaded successfully from {config_path}")
    logger.debug(f"Presets: {', '.join(sorted(presets)) or '(none)'}")

    return Config(presets=presets)
