"""
Application settings - server address, loop config location and timeouts
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config_properties import ConfigProperties
from taskloop.utils.exceptions import ConfigurationError


DEFAULT_CONFIG_FILE = "taskloop.json"


@dataclass
class AppSettings:
    """
    Settings for the server, the CLI and the loop engine.

    Attributes:
        host: Interface the dashboard server binds to
        port: Port the dashboard server listens on
        config_path: Path to the persisted loop config (tasks + settings)
        work_dir: Directory providers and gates run in; defaults to the
            directory holding the loop config
        provider_timeout_seconds: Per-invocation provider timeout (0 = none)
        gate_timeout_seconds: Per-command gate timeout (0 = none)
        stop_timeout_seconds: How long stop/skip wait for a run to unwind
    """

    host: str = "127.0.0.1"
    port: int = 8585
    config_path: str = DEFAULT_CONFIG_FILE
    work_dir: Optional[str] = None
    provider_timeout_seconds: float = 0.0
    gate_timeout_seconds: float = 0.0
    stop_timeout_seconds: float = 10.0

    def __post_init__(self):
        if not 0 < self.port < 65536:
            raise ConfigurationError("server.port", "must be between 1 and 65535", self.port)
        for name in ("provider_timeout_seconds", "gate_timeout_seconds", "stop_timeout_seconds"):
            if getattr(self, name) < 0:
                raise ConfigurationError(name, "must not be negative", getattr(self, name))

    @property
    def resolved_work_dir(self) -> Path:
        """Working directory for providers and gates."""
        if self.work_dir:
            return Path(self.work_dir).resolve()
        return Path(self.config_path).resolve().parent

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "AppSettings":
        """
        Build settings from config.properties and TASKLOOP_* variables.

        Args:
            config_path: Explicit loop config path (e.g. from ``--config``);
                takes precedence over every other source.
        """
        ConfigProperties.load_env_file()
        port_raw = ConfigProperties.resolve("TASKLOOP_PORT", "server.port", "8585")
        try:
            port = int(port_raw)
        except ValueError:
            raise ConfigurationError("server.port", "must be an integer", port_raw)

        return cls(
            host=ConfigProperties.resolve("TASKLOOP_HOST", "server.host", "127.0.0.1"),
            port=port,
            config_path=config_path or ConfigProperties.resolve(
                "TASKLOOP_CONFIG", "loop.config_path", DEFAULT_CONFIG_FILE
            ),
            work_dir=ConfigProperties.resolve("TASKLOOP_WORK_DIR", "loop.work_dir", "") or None,
            provider_timeout_seconds=ConfigProperties.resolve_float(
                "TASKLOOP_PROVIDER_TIMEOUT", "provider.timeout_seconds", 0.0
            ),
            gate_timeout_seconds=ConfigProperties.resolve_float(
                "TASKLOOP_GATE_TIMEOUT", "gate.timeout_seconds", 0.0
            ),
            stop_timeout_seconds=ConfigProperties.resolve_float(
                "TASKLOOP_STOP_TIMEOUT", "loop.stop_timeout_seconds", 10.0
            ),
        )
