# pylint: disable=too-many-return-statements
"""radarfetch.utils.config – user paths and TOML config loader"""

from __future__ import annotations

import os
import pathlib
import tomllib
from functools import lru_cache
from typing import Any, Dict, List, cast

DEFAULT_CONFIG_DIR = pathlib.Path.home() / ".config" / "radarfetch"
# Allow overriding the config directory at import time via environment variable
CONFIG_DIR = pathlib.Path(os.getenv("RADARFETCH_CONFIG_DIR", str(DEFAULT_CONFIG_DIR))).expanduser()
CONFIG_FILE = CONFIG_DIR / "config.toml"

DEFAULT_URL_TEMPLATE = (
    "https://climate.weather.gc.ca/radar/image_e.html"
    "?time={time:%Y%m%d%H%M}&site={site}&image_type={image_type}"
)


def get_config_path() -> pathlib.Path:
    """Return config file path honoring environment variables."""
    env_file = os.getenv("RADARFETCH_CONFIG_FILE")
    if env_file:
        return pathlib.Path(env_file).expanduser()
    env_dir = os.getenv("RADARFETCH_CONFIG_DIR")
    if env_dir:
        return pathlib.Path(env_dir).expanduser() / "config.toml"
    return CONFIG_FILE


DEFAULTS: Dict[str, Any] = {
    "output_dir": str(pathlib.Path.home() / "Documents/radarfetch"),
    "archive": {
        "url_template": DEFAULT_URL_TEMPLATE,
        "timeout": 60,
        "concurrency": 4,
        "retries": 0,
        "user_agent": "radarfetch/0.3",
        "extension": "gif",
    },
    "logging": {
        "level": "INFO",
    },
    "catalog": {
        "sites": [],
        "image_types": [],
    },
}

# Expected config schema for validation
EXPECTED_SCHEMA: Dict[str, Any] = {
    "output_dir": str,
    "archive": {
        "url_template": str,
        "timeout": int,
        "concurrency": int,
        "retries": int,
        "user_agent": str,
        "extension": str,
    },
    "logging": {"level": str},
    "catalog": {"sites": list, "image_types": list},
}


def _validate_config(data: Dict[str, Any]) -> None:
    errors: list[str] = []
    for key, expected in EXPECTED_SCHEMA.items():
        if key not in data:
            data[key] = DEFAULTS[key]
            continue
        value = data[key]
        if isinstance(expected, dict):
            if not isinstance(value, dict):
                errors.append(f"section '{key}' must be a table")
                continue
            for sub, exptype in expected.items():
                if sub not in value:
                    value[sub] = DEFAULTS[key][sub]
                    continue
                subval = value[sub]
                # bool is an int subclass; reject it for numeric settings
                if exptype is int and isinstance(subval, bool):
                    errors.append(f"'{key}.{sub}' must be int")
                elif exptype is list:
                    if not isinstance(subval, list) or not all(isinstance(v, str) for v in subval):
                        errors.append(f"'{key}.{sub}' must be a list of strings")
                elif not isinstance(subval, exptype):
                    errors.append(f"'{key}.{sub}' must be {exptype.__name__}")
        elif not isinstance(value, expected):
            errors.append(f"'{key}' must be {expected.__name__}")

    archive = data.get("archive", {})
    if isinstance(archive, dict):
        for sub in ("timeout", "concurrency"):
            val = archive.get(sub)
            if isinstance(val, int) and not isinstance(val, bool) and val < 1:
                errors.append(f"'archive.{sub}' must be at least 1")
        retries = archive.get("retries")
        if isinstance(retries, int) and not isinstance(retries, bool) and retries < 0:
            errors.append("'archive.retries' must not be negative")

    if errors:
        raise ValueError("Invalid configuration: " + "; ".join(errors))


@lru_cache(maxsize=1)
def _load_config() -> Dict[str, Any]:
    """Load configuration from TOML and validate."""
    # Copy nested tables so merging never mutates DEFAULTS
    data: Dict[str, Any] = {
        key: dict(value) if isinstance(value, dict) else value for key, value in DEFAULTS.items()
    }

    cfg_path = get_config_path()
    if cfg_path.exists():
        with cfg_path.open("rb") as fp:
            try:
                loaded_data = tomllib.load(fp)
            except tomllib.TOMLDecodeError as exc:
                raise ValueError(f"Invalid TOML in {cfg_path}: {exc}") from exc

            for key, value in loaded_data.items():
                if key in data and isinstance(data[key], dict) and isinstance(value, dict):
                    data[key].update(value)
                else:
                    data[key] = value

    _validate_config(data)
    return data


# public helpers -----------------------------------------------------------


def _archive_setting(name: str) -> Any:
    archive_config = _load_config().get("archive", {})
    return archive_config.get(name, DEFAULTS["archive"][name])


def get_output_dir() -> pathlib.Path:
    output_dir_str = _load_config().get("output_dir", DEFAULTS["output_dir"])
    return pathlib.Path(output_dir_str).expanduser()


def get_url_template() -> str:
    return cast(str, _archive_setting("url_template"))


def get_timeout() -> int:
    return cast(int, _archive_setting("timeout"))


def get_concurrency() -> int:
    return cast(int, _archive_setting("concurrency"))


def get_retries() -> int:
    return cast(int, _archive_setting("retries"))


def get_user_agent() -> str:
    return cast(str, _archive_setting("user_agent"))


def get_file_extension() -> str:
    """Extension (without the dot) used for downloaded images."""
    return cast(str, _archive_setting("extension")).lstrip(".")


def get_logging_level() -> str:
    logging_config = _load_config().get("logging", {})
    level = logging_config.get("level", DEFAULTS["logging"]["level"])
    return cast(str, level)


def get_extra_sites() -> List[str]:
    """
    Site codes added by the user on top of the built-in catalog.

    Returns:
        Upper-cased codes from the ``[catalog] sites`` list
    """
    catalog_config = _load_config().get("catalog", {})
    return [code.upper() for code in catalog_config.get("sites", [])]


def get_extra_image_types() -> List[str]:
    """
    Image type codes added by the user on top of the built-in catalog.

    Returns:
        Upper-cased codes from the ``[catalog] image_types`` list
    """
    catalog_config = _load_config().get("catalog", {})
    return [code.upper() for code in catalog_config.get("image_types", [])]
