"""
Dialect registry for mapping file extensions to comment dialects.
"""

import logging
from pathlib import Path

import yaml

from doclink.core.dialects.rules import Dialect, get_rules
from doclink.core.errors import UnknownDialectError

logger = logging.getLogger(__name__)

# Default path to the extensions configuration file
_DEFAULT_EXTENSIONS_CONFIG = Path(__file__).parent.parent / "extensions.yaml"


class DialectRegistry:
    """
    Extensible registry for mapping file extensions to dialects.

    Loads the packaged extensions.yaml by default; callers may register extra
    extensions at runtime, e.g. for project-specific header suffixes.

    Example:
        >>> registry = DialectRegistry()
        >>> registry.register(Dialect.CPP, [".inl"])
        >>> registry.detect(".inl")
        <Dialect.CPP: 'cpp'>
    """

    def __init__(self, load_defaults: bool = True):
        """
        Initialize the dialect registry.

        Args:
            load_defaults: If True, load default mappings from extensions.yaml.
        """
        self._extension_to_dialect: dict[str, Dialect] = {}
        self._dialect_to_extensions: dict[Dialect, set[str]] = {}

        if load_defaults:
            self._load_from_yaml(_DEFAULT_EXTENSIONS_CONFIG)

    @classmethod
    def from_yaml(cls, config_path: Path | str) -> "DialectRegistry":
        """
        Create a DialectRegistry from a YAML configuration file.

        Raises:
            ValueError: If the config file format is invalid
        """
        registry = cls(load_defaults=False)
        registry._load_from_yaml(Path(config_path))
        return registry

    def _load_from_yaml(self, config_path: Path) -> None:
        """
        Load extension mappings from a YAML file.

        Expected format:
            dialect_name:
              - .ext1
              - .ext2
        """
        if not config_path.exists():
            logger.warning(f"Extensions config not found: {config_path}, using empty registry")
            return

        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse extensions config: {e}")
            raise ValueError(f"Invalid YAML in extensions config: {e}") from e

        if data is None:
            return

        if not isinstance(data, dict):
            raise ValueError(
                f"Invalid extensions config format: expected dict, got {type(data)}"
            )

        for name, extensions in data.items():
            try:
                dialect = Dialect(str(name).lower())
            except ValueError:
                logger.warning(f"Skipping unknown dialect in extensions config: {name}")
                continue
            if not isinstance(extensions, list):
                logger.warning(
                    f"Invalid extensions for {name}: expected list, got {type(extensions)}"
                )
                continue
            for ext in extensions:
                self._add_mapping(str(ext), dialect)

    def _add_mapping(self, extension: str, dialect: Dialect) -> None:
        ext_lower = extension.lower()
        self._extension_to_dialect[ext_lower] = dialect
        self._dialect_to_extensions.setdefault(dialect, set()).add(ext_lower)

    def register(self, dialect: Dialect | str, extensions: list[str]) -> "DialectRegistry":
        """
        Register extra extensions for a dialect. Returns self for chaining.

        Raises:
            UnknownDialectError: If the dialect is not supported
        """
        dialect = get_rules(dialect).dialect
        for ext in extensions:
            self._add_mapping(ext, dialect)
        return self

    def unregister(self, dialect: Dialect | str) -> "DialectRegistry":
        """
        Remove a dialect and all its extensions. Returns self for chaining.

        Raises:
            UnknownDialectError: If the dialect is not supported
        """
        dialect = get_rules(dialect).dialect
        for ext in self._dialect_to_extensions.pop(dialect, set()):
            self._extension_to_dialect.pop(ext, None)
        return self

    def detect(self, extension: str) -> Dialect | None:
        """Return the dialect for an extension (including the dot), or None."""
        return self._extension_to_dialect.get(extension.lower())

    def detect_from_path(self, file_path: Path | str) -> Dialect:
        """
        Detect the dialect of a file from its path.

        Raises:
            UnknownDialectError: If the extension is not registered
        """
        suffix = Path(file_path).suffix
        dialect = self.detect(suffix)
        if dialect is None:
            raise UnknownDialectError(f"No dialect registered for extension '{suffix}'")
        return dialect

    def get_extensions(self, dialect: Dialect) -> set[str]:
        return self._dialect_to_extensions.get(dialect, set()).copy()

    def get_all_extensions(self) -> set[str]:
        return set(self._extension_to_dialect.keys())

    def is_supported(self, extension: str) -> bool:
        return extension.lower() in self._extension_to_dialect


# Global default registry instance
_default_registry = DialectRegistry()


def get_default_registry() -> DialectRegistry:
    """Get the global default dialect registry."""
    return _default_registry


def dialect_for_path(file_path: Path | str) -> Dialect:
    """Resolve the dialect of a file path with the packaged extension map."""
    return _default_registry.detect_from_path(file_path)
