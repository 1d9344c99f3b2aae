"""ht core - config loading and environment variable resolution."""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values

from ht.errors import ConfigError
from ht.printing import PRETTY_CHOICES

GLOBAL_DIR = Path.home() / ".ht"
GLOBAL_CONFIG = GLOBAL_DIR / "config.yaml"

CWD_CONFIG_CANDIDATES = [
    ".ht.yaml",
    ".ht.yml",
    "ht.yaml",
    "ht.yml",
]

DEFAULT_TIMEOUT = 30


def resolve_path(candidates: list[Path]) -> Path | None:
    """Return the first candidate that exists, resolved."""
    for p in candidates:
        if p.exists():
            return p.resolve()
    return None


def resolve_config_path(config_file: str | None) -> Path | None:
    """Pick the config file: --config if given (a missing file means no
    config, with no fallback), else the first of CWD_CONFIG_CANDIDATES,
    else ~/.ht/config.yaml.
    """
    if config_file:
        return resolve_path([Path(config_file)])
    return resolve_path([Path(c) for c in CWD_CONFIG_CANDIDATES] + [GLOBAL_CONFIG])


def load_config(config_path: str | Path | None) -> dict:
    """Read the `defaults` block of a YAML config file.

    A missing file yields empty defaults. `_config_dir` is the file's
    directory, so a relative env_file resolves beside it. Unreadable YAML
    or a wrongly typed default raises ConfigError.
    """
    if config_path is None:
        return {"defaults": {}, "_config_dir": None}
    path = Path(config_path)
    if not path.exists():
        return {"defaults": {}, "_config_dir": None}
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config '{path}': {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config '{path}': {e.strerror or e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config '{path}': expected a mapping at the top level")
    return {
        "defaults": check_defaults(data.get("defaults") or {}, path),
        "_config_dir": path.resolve().parent,
    }


def check_defaults(defaults: Any, path: Path) -> dict:
    """Reject config defaults whose type the request pipeline cannot use."""

    def _fail(msg: str):
        raise ConfigError(f"Invalid config '{path}': {msg}")

    if not isinstance(defaults, dict):
        _fail("'defaults' must be a mapping")

    timeout = defaults.get("timeout")
    if timeout is not None and (
        isinstance(timeout, bool) or not isinstance(timeout, int | float) or timeout <= 0
    ):
        _fail(f"'timeout' must be a positive number of seconds, got {timeout!r}")

    for key in ("headers", "auth"):
        if defaults.get(key) is not None and not isinstance(defaults[key], dict):
            _fail(f"'{key}' must be a mapping")

    for key in ("default_scheme", "env_file"):
        if defaults.get(key) is not None and not isinstance(defaults[key], str):
            _fail(f"'{key}' must be a string")

    pretty = defaults.get("pretty")
    if pretty is not None and pretty not in PRETTY_CHOICES:
        _fail(f"'pretty' must be one of {', '.join(PRETTY_CHOICES)}, got {pretty!r}")

    return defaults


def load_env(env_file: str | None, base_dir: str | Path = ".") -> dict[str, str]:
    """Load .env file and merge with os.environ.

    .env values take precedence over os.environ for the variables they set.
    """
    env = dict(os.environ)
    if env_file:
        dotenv_path = Path(base_dir) / env_file
        if dotenv_path.exists():
            dotenv_vars = dotenv_values(str(dotenv_path))
            env.update({k: v for k, v in dotenv_vars.items() if v is not None})
    return env


def resolve_value(value: Any, env: dict[str, str]) -> Any:
    """Resolve $VAR and ${VAR} references in a string value.

    Unknown variables are left as written. Non-strings pass through.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value

    def _replace(m: re.Match) -> str:
        var_name = m.group(1) or m.group(2)
        return env.get(var_name, os.environ.get(var_name, m.group(0)))

    return re.sub(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)", _replace, value)


def resolve_headers(headers: dict | None, env: dict[str, str]) -> dict[str, str]:
    """Resolve env references in config headers, stringifying YAML scalars."""
    return {str(k): str(resolve_value(v, env)) for k, v in (headers or {}).items()}


def resolve_setting(*sources, default=None):
    """Return the first source that is not None, or default.

    CLI flags come first, then config defaults.
    """
    for s in sources:
        if s is not None:
            return s
    return default
