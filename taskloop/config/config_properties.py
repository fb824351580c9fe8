"""
config.properties support.

An optional Java-style properties file keeps taskloop settings next to the
project. Dotted keys (``server.port``) are read through ConfigProperties;
plain keys (``TASKLOOP_LOG_LEVEL=DEBUG``) are also exported to os.environ
unless the variable is already set. Environment variables always win.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from taskloop.utils.exceptions import ConfigurationError


_TRUE_VALUES = ("true", "1", "yes", "on")


class ConfigProperties:
    """
    Process-wide view of config.properties.

    Usage::

        ConfigProperties.load_env_file()
        port = ConfigProperties.resolve("TASKLOOP_PORT", "server.port", "8585")
        timeout = ConfigProperties.resolve_float("TASKLOOP_GATE_TIMEOUT", "gate.timeout_seconds", 0.0)
    """

    FILE_NAME = "config.properties"
    SEARCH_PARENTS = 3

    _properties: Dict[str, str] = {}
    _loaded: bool = False
    _source: Optional[Path] = None

    @classmethod
    def load(cls, path: Optional[str] = None) -> None:
        """Parse the properties file once; *path* forces a specific file."""
        if cls._loaded and path is None:
            return

        source = Path(path) if path else cls._discover()
        cls._properties = cls._parse(source) if source and source.is_file() else {}
        cls._source = source if source and source.is_file() else None
        cls._loaded = True

    @classmethod
    def load_env_file(cls, path: Optional[str] = None) -> bool:
        """
        Load the file and export its plain keys to the environment.

        Returns:
            True when a properties file was found.
        """
        cls.load(path)
        for key, value in cls._properties.items():
            if "." not in key:
                os.environ.setdefault(key, value)
        return cls._source is not None

    @classmethod
    def reload(cls, path: Optional[str] = None) -> None:
        """Forget the cached file and parse again (tests, cwd changes)."""
        cls._loaded = False
        cls._properties = {}
        cls._source = None
        cls.load(path)

    @classmethod
    def source(cls) -> Optional[Path]:
        return cls._source

    @classmethod
    def get(cls, key: str, default: Optional[str] = None) -> Optional[str]:
        cls.load()
        return cls._properties.get(key, default)

    # ------------------------------------------------------------------
    # Layered lookup: environment variable, then file key, then default
    # ------------------------------------------------------------------

    @classmethod
    def resolve(cls, env_key: str, file_key: str, default: str) -> str:
        return os.getenv(env_key) or cls.get(file_key) or default

    @classmethod
    def resolve_float(cls, env_key: str, file_key: str, default: float) -> float:
        raw = cls.resolve(env_key, file_key, str(default))
        try:
            return float(raw)
        except ValueError:
            raise ConfigurationError(file_key, "must be a number", raw)

    @classmethod
    def resolve_bool(cls, env_key: str, file_key: str, default: bool) -> bool:
        raw = cls.resolve(env_key, file_key, str(default))
        return raw.strip().lower() in _TRUE_VALUES

    @classmethod
    def logging_settings(cls) -> Dict[str, Any]:
        """
        Keyword arguments for ``ComprehensiveLogger.initialize``.

        A malformed number falls back to its default so that logging can
        always come up.
        """
        def _int(env_key: str, file_key: str, default: int) -> int:
            try:
                return int(cls.resolve(env_key, file_key, str(default)))
            except ValueError:
                return default

        return {
            "log_folder": cls.resolve("TASKLOOP_LOG_FOLDER", "logging.folder", "./logs"),
            "log_level": cls.resolve("TASKLOOP_LOG_LEVEL", "logging.level", "INFO"),
            "enable_console": cls.resolve_bool("TASKLOOP_ENABLE_CONSOLE_LOGGING", "logging.console", True),
            "enable_file": cls.resolve_bool("TASKLOOP_ENABLE_FILE_LOGGING", "logging.file", False),
            "max_bytes": _int("TASKLOOP_LOG_MAX_BYTES", "logging.max_bytes", 10 * 1024 * 1024),
            "backup_count": _int("TASKLOOP_LOG_BACKUP_COUNT", "logging.backup_count", 5),
        }

    @classmethod
    def _discover(cls) -> Optional[Path]:
        """The nearest config.properties in the cwd or its parents."""
        current = Path.cwd()
        for directory in [current, *current.parents][:cls.SEARCH_PARENTS + 1]:
            candidate = directory / cls.FILE_NAME
            if candidate.is_file():
                return candidate
        return None

    @staticmethod
    def _parse(path: Path) -> Dict[str, str]:
        properties = {}
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line[0] in "#!":
                continue
            # first of '=' or ':' separates key from value
            positions = [i for i in (line.find("="), line.find(":")) if i >= 0]
            if not positions:
                continue
            split_at = min(positions)
            properties[line[:split_at].strip()] = line[split_at + 1:].strip()
        return properties
