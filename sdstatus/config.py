"""Scan configuration: defaults, optional JSON file, environment overrides."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Mapping

from sdstatus.render import FORMATS, MODES
from sdstatus.targets import DIRECTORY_URL
from sdstatus.transport import DEFAULT_PROXY_URL

logger = logging.getLogger(__name__)

ENV_PROXY = "SDSTATUS_PROXY"
ENV_TIMEOUT = "SDSTATUS_TIMEOUT"
ENV_DIRECTORY_URL = "SDSTATUS_DIRECTORY_URL"


@dataclass
class ScanConfig:
    """Settings for one scan run.

    Precedence, lowest first: defaults, JSON config file, environment,
    command-line flags (applied by the CLI).
    """

    proxy_url: str = DEFAULT_PROXY_URL
    timeout: float = 60.0  # seconds per probe
    directory_url: str = DIRECTORY_URL
    fmt: str = "json"
    mode: str = "batch"

    @classmethod
    def load(cls, path: str | Path | None = None) -> ScanConfig:
        """Build a config from *path* (if it exists), then the environment."""
        config = cls()
        if path is not None:
            config = cls.from_file(path)
        config.apply_env(os.environ)
        return config

    @classmethod
    def from_file(cls, path: str | Path) -> ScanConfig:
        path = Path(path)
        if not path.exists():
            logger.warning("Config not found at %s, using defaults", path)
            return cls()
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as exc:
            raise ValueError(f"{path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"{path}: config must be a JSON object")
        known = {k for k in cls.__dataclass_fields__}
        filtered = {k: v for k, v in data.items() if k in known}

        for key in ("proxy_url", "directory_url", "fmt", "mode"):
            if key in filtered and not isinstance(filtered[key], str):
                raise ValueError(f"{path}: '{key}' must be a string")
        if "timeout" in filtered:
            filtered["timeout"] = _seconds(filtered["timeout"], f"{path}: 'timeout'")
        return cls(**filtered)

    def apply_env(self, env: Mapping[str, str]) -> None:
        if env.get(ENV_PROXY):
            self.proxy_url = env[ENV_PROXY]
        if env.get(ENV_DIRECTORY_URL):
            self.directory_url = env[ENV_DIRECTORY_URL]
        if env.get(ENV_TIMEOUT):
            self.timeout = _seconds(env[ENV_TIMEOUT], ENV_TIMEOUT)

    def validate(self) -> None:
        if self.fmt not in FORMATS:
            raise ValueError("Output format may only be JSON or CSV.")
        if self.mode not in MODES:
            raise ValueError(f"Output mode must be one of {', '.join(MODES)}")
        if self.timeout <= 0:
            raise ValueError("Timeout must be a positive number of seconds")

    def to_dict(self) -> dict:
        return asdict(self)


def _seconds(value: object, name: str) -> float:
    # json.load gives bool for true/false, which float() would accept.
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number of seconds")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number of seconds") from exc
