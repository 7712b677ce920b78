"""
Configuration module for doclink.

Supports loading from YAML/JSON files with environment variable overrides.
Default values are loaded from defaults.yaml for maintainability.
"""

import json
import logging
import os
import re
from dataclasses import asdict, dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml

from doclink.core.errors import ConfigError

logger = logging.getLogger(__name__)

# Path to the default configuration file
_DEFAULTS_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_COMMENT_OPENERS = ("//", "/*")


def _read_defaults(path: Path) -> dict[str, dict[str, Any]]:
    """
    Parse a defaults file into its sections.

    A missing or malformed file yields no defaults, so every field falls back
    to the value written beside it. Top-level entries that are not mappings
    are skipped.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning(f"Defaults config not found: {path}")
        return {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse defaults config {path}: {e}")
        return {}

    if not isinstance(data, dict):
        return {}
    sections: dict[str, dict[str, Any]] = {}
    for name, values in data.items():
        if isinstance(values, dict):
            sections[name] = values
        else:
            logger.warning(f"Ignoring defaults section '{name}' in {path}: not a mapping")
    return sections


@lru_cache(maxsize=1)
def _load_defaults() -> dict[str, dict[str, Any]]:
    return _read_defaults(_DEFAULTS_CONFIG_PATH)


def _get_default(section: str, key: str, fallback: Any = None) -> Any:
    return _load_defaults().get(section, {}).get(key, fallback)


def _default_markers(key: str) -> list[str] | None:
    """Marker overrides from defaults.yaml; None keeps the dialect preset."""
    markers = _get_default("scan", key)
    return list(markers) if markers is not None else None


@dataclass
class ScanConfig:
    """Configuration for a single-text scan."""

    window_max_tokens: int = field(
        default_factory=lambda: _get_default("scan", "window_max_tokens", 128)
    )
    include_inner_comments: bool = field(
        default_factory=lambda: _get_default("scan", "include_inner_comments", True)
    )
    ignore_line_patterns: list[str] = field(
        default_factory=lambda: list(_get_default("scan", "ignore_line_patterns", []) or [])
    )
    # Comment prefixes replacing the dialect's outer or inner doc markers
    outer_markers: list[str] | None = field(
        default_factory=lambda: _default_markers("outer_markers")
    )
    inner_markers: list[str] | None = field(
        default_factory=lambda: _default_markers("inner_markers")
    )

    def validate(self) -> None:
        """
        Check value ranges and pattern syntax.

        Raises:
            ConfigError: If a value is out of range or a pattern does not compile
        """
        if not isinstance(self.window_max_tokens, int) or self.window_max_tokens < 1:
            raise ConfigError(
                f"scan.window_max_tokens must be a positive integer, got {self.window_max_tokens!r}"
            )
        for pattern in self.ignore_line_patterns:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ConfigError(f"Invalid ignore line pattern '{pattern}': {e}") from e
        for key in ("outer_markers", "inner_markers"):
            markers = getattr(self, key)
            if markers is None:
                continue
            for marker in markers:
                if not isinstance(marker, str) or not marker.startswith(_COMMENT_OPENERS):
                    raise ConfigError(
                        f"scan.{key} entries must start with // or /*, got {marker!r}"
                    )


@dataclass
class BatchConfig:
    """Configuration for scanning many documents."""

    max_workers: int = field(default_factory=lambda: _get_default("batch", "max_workers", 4))
    chunk_size: int = field(default_factory=lambda: _get_default("batch", "chunk_size", 8))

    def validate(self) -> None:
        if self.max_workers < 1:
            raise ConfigError(f"batch.max_workers must be at least 1, got {self.max_workers}")
        if self.chunk_size < 1:
            raise ConfigError(f"batch.chunk_size must be at least 1, got {self.chunk_size}")


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = field(default_factory=lambda: _get_default("logging", "level", "WARNING"))
    format: str = field(
        default_factory=lambda: _get_default(
            "logging", "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    )

    def validate(self) -> None:
        if str(self.level).upper() not in _LOG_LEVELS:
            raise ConfigError(
                f"logging.level must be one of {', '.join(_LOG_LEVELS)}, got {self.level!r}"
            )


@dataclass
class DoclinkConfig:
    """Main configuration class for doclink."""

    scan: ScanConfig = field(default_factory=ScanConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "DoclinkConfig":
        """
        Load configuration from a YAML or JSON file.

        Args:
            path: Path to the configuration file (.yaml, .yml, or .json)

        Returns:
            DoclinkConfig instance with loaded values

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ConfigError: If the file format is unsupported or a value is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text(encoding="utf-8")

        try:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(content) or {}
            elif path.suffix == ".json":
                data = json.loads(content) if content.strip() else {}
            else:
                raise ConfigError(f"Unsupported config file format: {path.suffix}")
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to parse config file {path}: {e}") from e

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "DoclinkConfig":
        """Create DoclinkConfig from a dictionary."""
        config = cls()

        try:
            if "scan" in data:
                config.scan = ScanConfig(**data["scan"])
            if "batch" in data:
                config.batch = BatchConfig(**data["batch"])
            if "logging" in data:
                config.logging = LoggingConfig(**data["logging"])
        except TypeError as e:
            raise ConfigError(f"Unknown configuration key: {e}") from e

        config.validate()
        return config

    def validate(self) -> "DoclinkConfig":
        """Validate every section. Returns self."""
        self.scan.validate()
        self.batch.validate()
        self.logging.validate()
        return self

    def apply_env_overrides(self) -> "DoclinkConfig":
        """
        Apply environment variable overrides to the configuration.

        Environment variables follow the pattern: DOCLINK_<SECTION>_<KEY>
        Examples:
            - DOCLINK_SCAN_WINDOW_MAX_TOKENS
            - DOCLINK_SCAN_IGNORE_LINE_PATTERNS (comma separated)
            - DOCLINK_BATCH_MAX_WORKERS
            - DOCLINK_LOGGING_LEVEL

        Returns:
            Self with environment overrides applied

        Raises:
            ConfigError: If an override cannot be converted
        """
        env_mappings = {
            # Scan config
            "DOCLINK_SCAN_WINDOW_MAX_TOKENS": ("scan", "window_max_tokens", int),
            "DOCLINK_SCAN_INCLUDE_INNER_COMMENTS": ("scan", "include_inner_comments", _parse_bool),
            "DOCLINK_SCAN_IGNORE_LINE_PATTERNS": ("scan", "ignore_line_patterns", _parse_list),
            "DOCLINK_SCAN_OUTER_MARKERS": ("scan", "outer_markers", _parse_list),
            "DOCLINK_SCAN_INNER_MARKERS": ("scan", "inner_markers", _parse_list),
            # Batch config
            "DOCLINK_BATCH_MAX_WORKERS": ("batch", "max_workers", int),
            "DOCLINK_BATCH_CHUNK_SIZE": ("batch", "chunk_size", int),
            # Logging config
            "DOCLINK_LOGGING_LEVEL": ("logging", "level", str),
            "DOCLINK_LOGGING_FORMAT": ("logging", "format", str),
        }

        for env_var, (section, key, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                try:
                    converted = converter(value)
                except ValueError as e:
                    raise ConfigError(f"Invalid value for {env_var}: {value!r}") from e
                section_obj = getattr(self, section)
                setattr(section_obj, key, converted)

        return self

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Serialize configuration to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def to_json(self) -> str:
        """Serialize configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    def save(self, path: Path | str) -> None:
        """
        Save configuration to a file.

        Args:
            path: Path to save the configuration (.yaml, .yml, or .json)

        Raises:
            ConfigError: If the file format is unsupported
        """
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            content = self.to_yaml()
        elif path.suffix == ".json":
            content = self.to_json()
        else:
            raise ConfigError(f"Unsupported config file format: {path.suffix}")

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def _parse_bool(value: str) -> bool:
    """Parse a string to boolean."""
    return value.lower() in ("true", "1", "yes", "on")


def _parse_list(value: str) -> list[str]:
    """Parse a comma separated string to a list, dropping empty items."""
    return [item.strip() for item in value.split(",") if item.strip()]


def load_config(config_path: Optional[Path | str] = None, apply_env: bool = True) -> DoclinkConfig:
    """
    Load configuration with optional environment variable overrides.

    Args:
        config_path: Optional path to config file. If None, uses defaults.
        apply_env: Whether to apply environment variable overrides.

    Returns:
        DoclinkConfig instance
    """
    if config_path:
        config = DoclinkConfig.from_file(config_path)
    else:
        config = DoclinkConfig()

    if apply_env:
        config.apply_env_overrides()

    return config.validate()


def configure_logging(config: LoggingConfig | None = None) -> None:
    """
    Apply a logging configuration to the root logger.

    Library code only logs through module loggers; applications call this
    once at startup to route those records.
    """
    config = config or LoggingConfig()
    config.validate()
    logging.basicConfig(level=str(config.level).upper(), format=config.format, force=True)
