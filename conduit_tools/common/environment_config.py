"""
================================================================================
Environment Configuration
================================================================================

Layered configuration for the harness, resolved once per process.

Resolution order (lowest to highest priority):
    1. Built-in DEFAULTS
    2. YAML configuration file (config/config.yaml or $CONDUIT_CONFIG)
    3. Environment-specific YAML (config/{ENV}.yaml), deep-merged
    4. Environment variables

Environment Variable Mapping:
    - api.base_url            -> API_BASE_URL
    - ui.base_url             -> UI_BASE_URL
    - users.primary.email     -> USERS_PRIMARY_EMAIL
    - legacy aliases          -> TEST_BASE_URL, TEST_API_URL, TEST_USER_A_EMAIL, ...

The resolved values are frozen. Missing required keys raise ConfigError,
which aborts the run before any test starts.

================================================================================
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

import yaml
from loguru import logger

from .exceptions import ConfigError, PreconditionNotMet


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "config.yaml"

DEFAULTS: Dict[str, Any] = {
    "ui": {
        "base_url": "http://localhost:3000",
        "browser": "chromium",
        "headless": True,
        "slow_mo": 0,
        "default_timeout_ms": 10000,
        "navigation_timeout_ms": 15000,
        "viewport_width": 1920,
        "viewport_height": 1080,
        "auth_storage_key": "user",
    },
    "api": {
        "base_url": "http://localhost:8080",
        "timeout": 30.0,
    },
    "wait": {
        "timeout": 5.0,
        "poll_interval": 0.25,
    },
    "users": {
        "primary": {"email": "john@example.com", "password": "password123", "username": "johnjacob"},
        "secondary": {"email": None, "password": None, "username": None},
        "tertiary": {"email": None, "password": None, "username": None},
    },
    "logging": {
        "level": "INFO",
        "file": None,
        "rotation": "10 MB",
        "retention": "7 days",
    },
    "report": {
        "dir": "reports",
        "name": "run-report",
    },
}

REQUIRED_KEYS: Tuple[str, ...] = (
    "ui.base_url",
    "api.base_url",
    "users.primary.email",
    "users.primary.password",
)

URL_KEYS: Tuple[str, ...] = ("ui.base_url", "api.base_url")

NUMERIC_KEYS: Tuple[str, ...] = (
    "ui.slow_mo",
    "ui.default_timeout_ms",
    "ui.navigation_timeout_ms",
    "ui.viewport_width",
    "ui.viewport_height",
    "api.timeout",
    "wait.timeout",
    "wait.poll_interval",
)

# Legacy CI variable names; canonical names take precedence
ENV_ALIASES: Dict[str, str] = {
    "TEST_BASE_URL": "ui.base_url",
    "TEST_API_URL": "api.base_url",
    "TEST_USER_A_EMAIL": "users.primary.email",
    "TEST_USER_A_PASSWORD": "users.primary.password",
    "TEST_USER_A_USERNAME": "users.primary.username",
    "TEST_USER_B_EMAIL": "users.secondary.email",
    "TEST_USER_B_PASSWORD": "users.secondary.password",
    "TEST_USER_B_USERNAME": "users.secondary.username",
    "TEST_USER_C_EMAIL": "users.tertiary.email",
    "TEST_USER_C_PASSWORD": "users.tertiary.password",
    "TEST_USER_C_USERNAME": "users.tertiary.username",
}


@dataclass(frozen=True)
class Credentials:
    """Login credentials for one seeded user."""
    email: str
    password: str
    username: Optional[str] = None


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep merges two dictionaries, with override taking precedence."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _iter_leaves(tree: Mapping[str, Any], prefix: str = "") -> Iterator[str]:
    for key, value in tree.items():
        path = f"{prefix}{key}"
        if isinstance(value, Mapping):
            yield from _iter_leaves(value, f"{path}.")
        else:
            yield path


def _lookup(tree: Mapping[str, Any], key: str) -> Any:
    value: Any = tree
    for part in key.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
        if value is None:
            return None
    return value


def _set_nested(tree: Dict[str, Any], key: str, value: Any) -> None:
    parts = key.split(".")
    for part in parts[:-1]:
        node = tree.get(part)
        if not isinstance(node, dict):
            node = {}
            tree[part] = node
        tree = node
    tree[parts[-1]] = value


def _convert_type(key: str, value: str, reference: Any) -> Any:
    """
    Convert an environment string to the type of the reference value.

    Raises:
        ConfigError: When a numeric key receives a non-numeric value
    """
    if reference is None:
        return value
    if isinstance(reference, bool):
        return value.strip().lower() in ("true", "1", "yes", "on")
    try:
        if isinstance(reference, int):
            return int(value)
        if isinstance(reference, float):
            return float(value)
    except ValueError as e:
        raise ConfigError(f"Invalid value for {key}: {value!r} (expected a number)") from e
    return value


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping at top level")
    return data


class EnvironmentConfig:
    """
    Immutable, layered harness configuration.

    Usage:
        >>> config = EnvironmentConfig.instance()
        >>> config.api_base_url
        'http://localhost:8080'
        >>> config.user("primary").email
        'john@example.com'

    Use `EnvironmentConfig.load(...)` with explicit inputs in unit tests;
    `instance()` resolves from the real process environment once.
    """

    _instance: Optional["EnvironmentConfig"] = None

    def __init__(self, values: Mapping[str, Any], sources: Tuple[str, ...] = ()) -> None:
        self._values = _freeze(values)
        self.sources = sources

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def load(
        cls,
        config_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> "EnvironmentConfig":
        """
        Resolve configuration from defaults, files and environment.

        Args:
            config_path: YAML file to load. Falls back to $CONDUIT_CONFIG,
                        then DEFAULT_CONFIG_PATH.
            environ: Environment mapping (defaults to os.environ)
            defaults: Base values (defaults to DEFAULTS)

        Raises:
            ConfigError: On invalid YAML, bad types or missing required keys
        """
        environ = os.environ if environ is None else environ
        base = copy.deepcopy(dict(defaults if defaults is not None else DEFAULTS))
        sources: List[str] = ["defaults"]

        if config_path is None:
            config_path = Path(environ.get("CONDUIT_CONFIG", DEFAULT_CONFIG_PATH))
        config_path = Path(config_path)

        if config_path.exists():
            base = _deep_merge(base, _read_yaml(config_path))
            sources.append(str(config_path))
            logger.debug(f"Loaded configuration from: {config_path}")

            env_name = environ.get("ENVIRONMENT", environ.get("ENV"))
            if env_name:
                env_path = config_path.parent / f"{env_name}.yaml"
                if env_path.exists():
                    base = _deep_merge(base, _read_yaml(env_path))
                    sources.append(str(env_path))
                    logger.debug(f"Merged environment config: {env_path}")
        else:
            logger.debug(f"Configuration file not found: {config_path}. Using defaults and environment.")

        overrides = cls._collect_env_overrides(base, environ)
        for key, value in overrides.items():
            _set_nested(base, key, value)
        if overrides:
            sources.append("environment")

        cls._validate(base)
        return cls(base, tuple(sources))

    @staticmethod
    def _collect_env_overrides(
        base: Mapping[str, Any],
        environ: Mapping[str, str],
    ) -> Dict[str, Any]:
        overrides: Dict[str, Any] = {}

        for env_key, key in ENV_ALIASES.items():
            raw = environ.get(env_key)
            if raw:
                overrides[key] = _convert_type(key, raw, _lookup(base, key))

        # Canonical names win over legacy aliases
        for key in _iter_leaves(base):
            env_key = key.upper().replace(".", "_")
            raw = environ.get(env_key)
            if raw is not None and raw != "":
                overrides[key] = _convert_type(key, raw, _lookup(base, key))

        return overrides

    @staticmethod
    def _validate(values: Mapping[str, Any]) -> None:
        missing = [key for key in REQUIRED_KEYS if _lookup(values, key) in (None, "")]
        if missing:
            raise ConfigError(f"Missing required configuration keys: {', '.join(missing)}")

        for key in URL_KEYS:
            parsed = urlparse(str(_lookup(values, key)))
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ConfigError(f"Invalid URL for {key}: {_lookup(values, key)!r}")

        for key in NUMERIC_KEYS:
            value = _lookup(values, key)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                try:
                    float(value)
                except (TypeError, ValueError) as e:
                    raise ConfigError(f"Invalid value for {key}: {value!r} (expected a number)") from e

    @classmethod
    def instance(cls) -> "EnvironmentConfig":
        """Return the process-wide configuration, resolving it on first use."""
        if cls._instance is None:
            cls._instance = cls.load()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Forget the cached instance (for testing)."""
        cls._instance = None

    # =========================================================================
    # Access
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation path."""
        value = _lookup(self._values, key)
        return default if value is None else value

    def require(self, key: str) -> Any:
        value = _lookup(self._values, key)
        if value in (None, ""):
            raise ConfigError(f"Missing required configuration key: {key}")
        return value

    def get_section(self, section: str) -> Mapping[str, Any]:
        return self._values.get(section, MappingProxyType({}))

    def as_dict(self) -> Dict[str, Any]:
        """Return a mutable deep copy of the resolved values."""
        def thaw(value: Any) -> Any:
            if isinstance(value, Mapping):
                return {k: thaw(v) for k, v in value.items()}
            return value
        return thaw(self._values)

    @property
    def ui_base_url(self) -> str:
        return str(self.require("ui.base_url")).rstrip("/")

    @property
    def api_base_url(self) -> str:
        return str(self.require("api.base_url")).rstrip("/")

    @property
    def api_timeout(self) -> float:
        return float(self.get("api.timeout", 30.0))

    @property
    def browser_name(self) -> str:
        return str(self.get("ui.browser", "chromium")).lower()

    @property
    def headless(self) -> bool:
        return bool(self.get("ui.headless", True))

    @property
    def slow_mo(self) -> float:
        return float(self.get("ui.slow_mo", 0))

    @property
    def default_timeout_ms(self) -> int:
        return int(self.get("ui.default_timeout_ms", 10000))

    @property
    def navigation_timeout_ms(self) -> int:
        return int(self.get("ui.navigation_timeout_ms", 15000))

    @property
    def viewport(self) -> Dict[str, int]:
        return {
            "width": int(self.get("ui.viewport_width", 1920)),
            "height": int(self.get("ui.viewport_height", 1080)),
        }

    @property
    def auth_storage_key(self) -> str:
        return str(self.get("ui.auth_storage_key", "user"))

    @property
    def wait_timeout(self) -> float:
        return float(self.get("wait.timeout", 5.0))

    @property
    def poll_interval(self) -> float:
        return float(self.get("wait.poll_interval", 0.25))

    @property
    def report_dir(self) -> Path:
        return Path(str(self.get("report.dir", "reports")))

    def has_user(self, role: str) -> bool:
        return bool(self.get(f"users.{role}.email")) and bool(self.get(f"users.{role}.password"))

    def user(self, role: str = "primary") -> Credentials:
        """
        Get credentials for a seeded user.

        Raises:
            PreconditionNotMet: When an optional user is not configured
        """
        if not self.has_user(role):
            raise PreconditionNotMet(
                f"No credentials configured for '{role}' user "
                f"(set USERS_{role.upper()}_EMAIL / USERS_{role.upper()}_PASSWORD)"
            )
        return Credentials(
            email=str(self.get(f"users.{role}.email")),
            password=str(self.get(f"users.{role}.password")),
            username=self.get(f"users.{role}.username"),
        )

    def __repr__(self) -> str:
        return f"EnvironmentConfig(ui={self.get('ui.base_url')!r}, api={self.get('api.base_url')!r})"


__all__ = [
    "Credentials",
    "DEFAULTS",
    "EnvironmentConfig",
    "REQUIRED_KEYS",
]
