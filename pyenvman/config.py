"""Layered configuration: compiled-in defaults, config file, command line.

Precedence is strict per key: a command-line override beats the config file,
which beats the defaults. The config file holds ``KEY=VALUE`` lines; a file
named ``*.yaml`` or ``*.yml`` is read as a YAML mapping with the same keys.
"""

import os
from pathlib import Path
from typing import Optional, Union

import yaml

from pyenvman.log import EventLog
from pyenvman.models import Defaults, EffectiveConfig

# Config file key -> EffectiveConfig field. The upper-case names are the
# variables understood by the old shell-sourced config format.
CONFIG_KEYS = {
    "storagePath": "storage_path",
    "PYENV_STORAGE_PATH": "storage_path",
    "logFilePath": "log_file",
    "PYENV_LOG_FILE": "log_file",
}

YAML_SUFFIXES = {".yaml", ".yml"}


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def parse_config_text(text: str) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines, keeping only recognized keys.

    Blank lines, ``#`` comments and lines without ``=`` are skipped. A leading
    ``export`` and quotes around the value are stripped. Later lines win.
    """
    values = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        field = CONFIG_KEYS.get(key.strip())
        if field:
            values[field] = _unquote(value.strip())
    return values


def parse_config_yaml(text: str) -> dict[str, str]:
    """Parse a YAML mapping, keeping only recognized keys"""
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError("expected a mapping of settings")
    values = {}
    for key, value in data.items():
        field = CONFIG_KEYS.get(str(key))
        if field and value is not None:
            values[field] = str(value)
    return values


def load_config_file(path: Path) -> dict[str, str]:
    """Read recognized settings from a config file.

    Raises OSError, ValueError or yaml.YAMLError if the file cannot be used.
    """
    with open(path, encoding="utf-8") as f:
        text = f.read()
    if path.suffix.lower() in YAML_SUFFIXES:
        return parse_config_yaml(text)
    return parse_config_text(text)


def _to_path(value: Union[str, Path]) -> Path:
    """Expand ``$VAR`` and ``~`` and make the path absolute"""
    return Path(os.path.expandvars(str(value))).expanduser().absolute()


def resolve_config(
    defaults: Defaults,
    log: EventLog,
    config_file: Optional[Union[str, Path]] = None,
    storage_override: Optional[Union[str, Path]] = None,
) -> EffectiveConfig:
    """Merge the configuration layers into an EffectiveConfig.

    Args:
        defaults: Compiled-in defaults
        log: Log used for configuration messages (bound to the default log file)
        config_file: Config file to read (default: ``defaults.config_file``)
        storage_override: Value of ``--path``; wins when non-empty
    """
    config_file = Path(config_file) if config_file else defaults.config_file
    storage_path: Union[str, Path] = defaults.storage_path
    log_file: Union[str, Path] = defaults.log_file

    if config_file.is_file():
        log.info(f"Loading configuration from {config_file}...")
        try:
            values = load_config_file(config_file)
        except (OSError, ValueError, yaml.YAMLError) as e:
            log.warning(
                f"Configuration file {config_file} is not readable ({e}). "
                "Using default settings."
            )
        else:
            if values.get("storage_path"):
                storage_path = values["storage_path"]
            if values.get("log_file"):
                log_file = values["log_file"]
            log.success("Configuration loaded.")
    elif config_file.exists():
        log.warning(
            f"Configuration file {config_file} is not a regular file. "
            "Using default settings."
        )
    else:
        log.info(
            f"Configuration file not found at {config_file}. Using default settings."
        )
        try:
            config_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log.warning(f"Failed to create config directory: {config_file.parent} ({e})")

    if storage_override:
        storage_path = storage_override

    return EffectiveConfig(
        storage_path=_to_path(storage_path),
        log_file=_to_path(log_file),
        config_file=config_file,
    )
