"""
Config Store - JSON persistence for the loop config aggregate.

The whole aggregate (settings + tasks) is always loaded and saved as a unit.
``lock`` is the single mutual-exclusion region for the process: every
read-modify-write of the file, and every change to the controller's run
state, happens while holding it.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Union

from taskloop.models import LoopConfig
from taskloop.utils.exceptions import ConfigStoreError


class ConfigStore:
    """File-based persistence for one loop config."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.lock = asyncio.Lock()

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> LoopConfig:
        """Read and parse the config file."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigStoreError(str(self.path), "loading", e.strerror or str(e), e) from e

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("top-level value must be an object")
            return LoopConfig.from_dict(data)
        except (ValueError, KeyError, TypeError) as e:
            raise ConfigStoreError(str(self.path), "parsing", str(e), e) from e

    def save(self, config: LoopConfig) -> None:
        """Write the config atomically (temp file + rename)."""
        payload = json.dumps(config.to_dict(), indent=2, ensure_ascii=False) + "\n"

        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ConfigStoreError(str(self.path), "saving", e.strerror or str(e), e) from e

    def initialize(self, name: str) -> LoopConfig:
        """Write a starter config; refuses to overwrite an existing file."""
        if self.exists():
            raise ConfigStoreError(str(self.path), "initializing", "file already exists")
        config = LoopConfig.template(name)
        self.save(config)
        return config
