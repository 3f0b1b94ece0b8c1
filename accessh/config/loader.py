import json
import logging
import os
import re
from pathlib import Path
from typing import Iterator, Optional

import yaml
from pydantic import BaseModel, ValidationError

from accessh.config.schema import AccesshConfig
from accessh.paths import DEFAULT_CONFIG_PATH

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {".yml", ".yaml"}


class ConfigError(Exception):
    """Raised when the configuration source is missing, unreadable or invalid."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"error loading config {path}: {reason}")
        self.path = path
        self.reason = reason


ENV_REFERENCE = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(value: object) -> object:
    """Substitute ${NAME} references in every string of a parsed document.

    References to unset variables are left as written.
    """
    if isinstance(value, str):
        return ENV_REFERENCE.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)
    if isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    if isinstance(value, dict):
        return {key: expand_env_vars(item) for key, item in value.items()}  # type: ignore[misc]
    return value


def _extra_keys(model: BaseModel, prefix: str) -> Iterator[tuple[str, list[str]]]:
    if model.model_extra:
        yield prefix, sorted(model.model_extra)
    for name in type(model).model_fields:
        child = getattr(model, name)
        children = child.items() if isinstance(child, dict) else [(None, child)]
        for key, item in children:
            if isinstance(item, BaseModel):
                where = f"{prefix}.{name}" if key is None else f"{prefix}.{name}.{key}"
                yield from _extra_keys(item, where)


def _warn_unknown_keys(config: AccesshConfig, config_path: Path) -> None:
    """Log keys the schema does not know; they are kept but never read."""
    for where, keys in _extra_keys(config, "config"):
        logger.warning("Ignoring unknown keys %s under %s in %s", keys, where, config_path)


def _read_document(path: Path) -> object:
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in YAML_SUFFIXES:
                return yaml.safe_load(f) or {}
            return json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(path, "file not found") from e
    except OSError as e:
        raise ConfigError(path, f"error opening config file: {e}") from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(path, f"error decoding config: {e}") from e


def load_config(path: Path) -> AccesshConfig:
    """Load and validate configuration from a JSON or YAML file.

    Args:
        path: Path to the configuration document.

    Returns:
        The validated configuration model.

    Raises:
        ConfigError: The file is missing, unreadable, malformed or fails validation.
    """
    raw = _read_document(path)
    if not isinstance(raw, dict):
        raise ConfigError(path, "top-level document must be a mapping")

    try:
        model = AccesshConfig.model_validate(expand_env_vars(raw))
    except ValidationError as e:
        raise ConfigError(path, str(e)) from e
    _warn_unknown_keys(model, path)
    return model


class ConfigSource:
    """Re-readable handle on the configuration document.

    Local mode reads it once; the SSH server reads it once per session so
    that every connection sees the file as it is when the client connects.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else resolve_config_path()

    def load(self) -> AccesshConfig:
        return load_config(self.path)


def resolve_config_path(override: Optional[str] = None) -> Path:
    """Pick the config path from an explicit override, `ACCESSH_CONFIG`, or the default."""
    candidate = override or os.getenv("ACCESSH_CONFIG")
    if candidate:
        return Path(candidate).expanduser()
    return DEFAULT_CONFIG_PATH
