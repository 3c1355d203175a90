from pathlib import Path
from typing import Dict

from .domain.errors import ConfigError
from .registry.encoders import ENCODERS
from .registry.transports import is_supported_url

CONFIG_DIR = Path.home() / ".almanac"
CONFIG_FILE = CONFIG_DIR / "config"

DEFAULT_REGISTRY_URL = "https://registry.npmjs.org/"
DEFAULT_ENCODER = "npm"
DEFAULT_SPINNER_INTERVAL_MS = 80

REGISTRY_KEY = "ALMANAC_REGISTRY_URL"
ENCODER_KEY = "ALMANAC_ENCODER"
SPINNER_KEY = "ALMANAC_SPINNER_INTERVAL_MS"


def read_config() -> Dict[str, str]:
    """read all key/value pairs from the config file."""
    config = {}
    if not CONFIG_FILE.exists():
        return config

    try:
        with open(CONFIG_FILE, "r") as f:
            for line in f:
                line = line.strip()
                if "=" in line:
                    key, value = line.split("=", 1)
                    config[key] = value
    except (IOError, PermissionError, OSError):
        # if we can't read the file, treat as not configured
        return {}
    return config


def write_config_value(key: str, value: str):
    """set a single config value, preserving the others."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    config = read_config()
    config[key] = value

    try:
        with open(CONFIG_FILE, "w") as f:
            for k, v in config.items():
                f.write(f"{k}={v}\n")
    except (IOError, PermissionError, OSError) as e:
        raise ConfigError(f"failed to write config file: {e}") from e


def get_registry_url() -> str:
    """get the configured registry URL, falling back to the public npm registry."""
    return read_config().get(REGISTRY_KEY) or DEFAULT_REGISTRY_URL


def set_registry_url(url: str):
    if not is_supported_url(url):
        raise ConfigError(f"unsupported registry URL: {url}")
    write_config_value(REGISTRY_KEY, url)


def get_encoder_name() -> str:
    return read_config().get(ENCODER_KEY) or DEFAULT_ENCODER


def set_encoder_name(name: str):
    if name not in ENCODERS:
        raise ConfigError(f"unknown encoder '{name}', expected one of: {', '.join(sorted(ENCODERS))}")
    write_config_value(ENCODER_KEY, name)


def get_spinner_interval() -> float:
    """spinner frame interval in seconds."""
    raw = read_config().get(SPINNER_KEY)
    try:
        interval_ms = int(raw) if raw else DEFAULT_SPINNER_INTERVAL_MS
    except ValueError:
        interval_ms = DEFAULT_SPINNER_INTERVAL_MS
    if interval_ms <= 0:
        interval_ms = DEFAULT_SPINNER_INTERVAL_MS
    return interval_ms / 1000
