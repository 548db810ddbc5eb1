"""Configuration resolver with 4-level priority.

Priority (highest to lowest):
1. CLI arguments
2. Environment variables (JARSMITH_*)
3. Config files (user > system)
4. Defaults
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from jarsmith.core.errors import ConfigError

ALLOWED_LOGGING_LEVELS = frozenset({"quiet", "normal", "verbose", "debug"})
ALLOWED_DUPLICATE_ACTIONS = frozenset({"skip", "replace", "concat", "throw"})
DEFAULT_LOGGING_LEVEL = "normal"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class ConfigSource:
    """Represents where a config value came from."""

    value: Any
    source: str  # 'cli' | 'env' | 'user_config' | 'system_config' | 'default'


@dataclass(frozen=True)
class LoggingPolicy:
    """Resolved, immutable logging policy."""

    level_name: str  # quiet | normal | verbose | debug
    color: bool
    sources: dict[str, ConfigSource]


@dataclass(frozen=True)
class PolicySpec:
    """One configured duplicate policy: a path regex and an action name."""

    pattern: str
    action: str


class ConfigResolver:
    """Resolve configuration with strict 4-level priority.

    Example:
        resolver = ConfigResolver(
            cli_args={'duplicates': {'default_action': 'replace'}},
            user_config_path=Path('~/.config/jarsmith/config.yaml'),
        )

        action, source = resolver.resolve('duplicates.default_action')
        # action = 'replace', source = 'cli'
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        """Initialize config resolver.

        Args:
            cli_args: Arguments from CLI (highest priority); nested dicts or
                dotted keys are both accepted
            user_config_path: Path to user config file
            system_config_path: Path to system config file
            defaults: Default values (lowest priority)
        """
        self.cli_args = cli_args or {}
        self.user_config_path = user_config_path or Path.home() / ".config/jarsmith/config.yaml"
        self.system_config_path = system_config_path or Path("/etc/jarsmith/config.yaml")
        self.defaults = defaults if defaults is not None else self._default_config()

        self._user_config: dict[str, Any] | None = None
        self._system_config: dict[str, Any] | None = None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Resolve config value with priority.

        Args:
            key: Config key (supports dot notation: 'logging.level')

        Returns:
            (value, source) tuple

        Raises:
            ConfigError: If key not found in any source
        """
        value = self._from_cli(key)
        if value is not None:
            return value, "cli"

        value = self._from_env(key)
        if value is not None:
            return value, "env"

        value = self._get_nested(self._get_user_config(), key)
        if value is not None:
            return value, "user_config"

        value = self._get_nested(self._get_system_config(), key)
        if value is not None:
            return value, "system_config"

        value = self._get_nested(self.defaults, key)
        if value is not None:
            return value, "default"

        raise ConfigError(f"Config key '{key}' not found in any source")

    def resolve_optional(self, key: str) -> tuple[Any, str] | None:
        """Like resolve(), but returns None for keys no source provides."""
        try:
            return self.resolve(key)
        except ConfigError as e:
            if "not found in any source" in str(e):
                return None
            raise

    def resolve_logging_policy(self) -> LoggingPolicy:
        """Resolve canonical logging policy.

        Deterministic and side-effect free; see
        jarsmith.core.logging.apply_logging_policy for applying it.
        """
        key = "logging.level"
        found = self.resolve_optional(key)
        if found is None:
            level_src = ConfigSource(value=DEFAULT_LOGGING_LEVEL, source="default")
        else:
            value, source = found
            norm = self._normalize_choice(key, value, ALLOWED_LOGGING_LEVELS)
            level_src = ConfigSource(value=norm, source=source)

        color_found = self.resolve_optional("logging.color")
        color = True
        color_src = ConfigSource(value=True, source="default")
        if color_found is not None:
            color = self._coerce_bool("logging.color", color_found[0])
            color_src = ConfigSource(value=color, source=color_found[1])

        return LoggingPolicy(
            level_name=level_src.value,
            color=color,
            sources={"level_name": level_src, "color": color_src},
        )

    def resolve_default_action(self) -> str:
        """Resolve and validate duplicates.default_action (lower-cased name)."""
        key = "duplicates.default_action"
        found = self.resolve_optional(key)
        if found is None:
            return "skip"
        return self._normalize_choice(key, found[0], ALLOWED_DUPLICATE_ACTIONS)

    def resolve_policies(self) -> list[PolicySpec]:
        """Resolve duplicates.policies as an ordered list of PolicySpec.

        Each item is either a mapping with 'pattern' and 'action' keys or a
        'REGEX=ACTION' string (the CLI form). A plain string is read as a comma
        separated list of such items.
        """
        key = "duplicates.policies"
        found = self.resolve_optional(key)
        if found is None:
            return []
        raw = found[0]
        if isinstance(raw, str):
            # Env vars carry a comma separated list of REGEX=ACTION items.
            raw = [p for p in raw.split(",") if p]
        if not isinstance(raw, list):
            raise ConfigError(f"Config key '{key}' must be a list, got {type(raw).__name__}")

        specs: list[PolicySpec] = []
        for item in raw:
            if isinstance(item, str):
                pattern, sep, action = item.rpartition("=")
                if not sep:
                    raise ConfigError(
                        f"Invalid policy {item!r} in '{key}'",
                        "Use the form REGEX=ACTION, e.g. ^META-INF/services/=concat",
                    )
            elif isinstance(item, dict):
                pattern = item.get("pattern")
                action = item.get("action")
                if not isinstance(pattern, str) or action is None:
                    raise ConfigError(f"Each entry of '{key}' needs 'pattern' and 'action'")
            else:
                raise ConfigError(f"Invalid policy entry in '{key}': {item!r}")

            self._check_regex(key, pattern)
            specs.append(
                PolicySpec(
                    pattern=pattern,
                    action=self._normalize_choice(key, action, ALLOWED_DUPLICATE_ACTIONS),
                )
            )
        return specs

    def resolve_exclude_patterns(self) -> list[re.Pattern[str]]:
        """Resolve duplicates.exclude as compiled regexes."""
        key = "duplicates.exclude"
        found = self.resolve_optional(key)
        if found is None:
            return []
        raw = found[0]
        if isinstance(raw, str):
            # Env vars carry a comma separated list.
            raw = [p for p in raw.split(",") if p]
        if not isinstance(raw, list):
            raise ConfigError(f"Config key '{key}' must be a list, got {type(raw).__name__}")
        return [self._check_regex(key, p) for p in raw]

    def resolve_tmp_dir(self) -> Path | None:
        """Resolve archive.tmp_dir; None means 'next to the target'."""
        key = "archive.tmp_dir"
        found = self.resolve_optional(key)
        if found is None:
            return None
        value = found[0]
        if not isinstance(value, str) or value.strip() == "":
            raise ConfigError(f"Config key '{key}' must be a non-empty path string")
        return Path(value).expanduser()

    def _normalize_choice(self, key: str, value: Any, allowed: frozenset[str]) -> str:
        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")

        norm = value.strip().lower()
        if norm not in allowed:
            choices = ", ".join(sorted(allowed))
            raise ConfigError(f"Invalid '{key}': {value!r}. Allowed values: {choices}")
        return norm

    def _coerce_bool(self, key: str, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            low = value.strip().lower()
            if low in _TRUE_VALUES:
                return True
            if low in _FALSE_VALUES:
                return False
        raise ConfigError(f"Config key '{key}' must be a bool")

    def _check_regex(self, key: str, pattern: Any) -> re.Pattern[str]:
        if not isinstance(pattern, str):
            raise ConfigError(f"Patterns in '{key}' must be strings, got {type(pattern).__name__}")
        try:
            return re.compile(pattern)
        except re.error as e:
            raise ConfigError(f"Invalid regex {pattern!r} in '{key}': {e}") from e

    def _from_cli(self, key: str) -> Any | None:
        if key in self.cli_args:
            return self.cli_args[key]
        return self._get_nested(self.cli_args, key)

    def _from_env(self, key: str) -> Any | None:
        """Get value from environment variables.

        Environment variable format: JARSMITH_KEY_NAME
        Example: JARSMITH_DUPLICATES_DEFAULT_ACTION, JARSMITH_LOGGING_LEVEL
        """
        env_key = f"JARSMITH_{key.upper().replace('.', '_')}"
        return os.environ.get(env_key)

    def _get_user_config(self) -> dict[str, Any]:
        if self._user_config is None:
            self._user_config = self._load_yaml(self.user_config_path)
        return self._user_config

    def _get_system_config(self) -> dict[str, Any]:
        if self._system_config is None:
            self._system_config = self._load_yaml(self.system_config_path)
        return self._system_config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

    def _get_nested(self, data: dict[str, Any], key: str) -> Any | None:
        """Get nested value using dot notation.

        Example:
            data = {'logging': {'level': 'debug'}}
            _get_nested(data, 'logging.level') -> 'debug'
        """
        current: Any = data

        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None

        return current

    @staticmethod
    def _default_config() -> dict[str, Any]:
        """Default configuration."""
        return {
            "duplicates": {
                "default_action": "skip",
                "policies": [],
                "exclude": [],
            },
            "archive": {
                "tmp_dir": None,
            },
            "logging": {
                "level": DEFAULT_LOGGING_LEVEL,
                "color": True,
            },
        }
