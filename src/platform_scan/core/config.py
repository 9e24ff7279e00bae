"""Scan configuration: which lock-file packages to track and under which column."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError


class ConfigError(ValueError):
    """Raised when the configuration file cannot be read or is malformed."""


class ScanConfig(BaseModel):
    frameworks: dict[str, list[str]] | None = None
    packages: list[str] | None = None

    def packages_map(self) -> dict[str, str]:
        """Map every lock-file package name to the canonical column it is reported under.

        Tracked packages map to themselves; framework aliases map to their
        framework and win over a tracked package of the same name.
        """
        aliases: dict[str, str] = {}
        for name in self.packages or []:
            aliases[name] = name
        for framework, names in (self.frameworks or {}).items():
            for alias in names:
                aliases[alias] = framework
        return aliases

    def report_cols(self) -> list[str]:
        # a name listed as both framework and package gets one column
        return list(dict.fromkeys([*(self.frameworks or {}), *(self.packages or [])]))


def load_config(path: Path) -> ScanConfig:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file {path} is not valid YAML: {exc}") from exc
    try:
        return ScanConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Config file {path} is malformed: {exc}") from exc
