"""Configuration loader for the IAMPA CLI."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DEFAULTS = {
    "project_name": "iampa",
    "region": None,
    "profile": None,
    "declarations_path": "attachments.yml",
    "state_path": ".iampa-state.json",
    "default_format": "json",
    "log_level": "WARNING",
}


@dataclass(slots=True)
class Settings:
    project_name: str = DEFAULTS["project_name"]
    region: str | None = DEFAULTS["region"]
    profile: str | None = DEFAULTS["profile"]
    declarations_path: Path = Path(DEFAULTS["declarations_path"])
    state_path: Path = Path(DEFAULTS["state_path"])
    default_format: str = DEFAULTS["default_format"]
    log_level: str = DEFAULTS["log_level"]

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "Settings":
        return cls(
            project_name=data.get("project_name", DEFAULTS["project_name"]),
            region=data.get("region", DEFAULTS["region"]),
            profile=data.get("profile", DEFAULTS["profile"]),
            declarations_path=Path(data.get("declarations_path", DEFAULTS["declarations_path"])),
            state_path=Path(data.get("state_path", DEFAULTS["state_path"])),
            default_format=data.get("default_format", DEFAULTS["default_format"]),
            log_level=str(data.get("log_level", DEFAULTS["log_level"])).upper(),
        )

    def merge_cli(
        self,
        format_override: str | None = None,
        declarations: Path | None = None,
        state: Path | None = None,
        verbose: bool = False,
    ) -> "Settings":
        return Settings(
            project_name=self.project_name,
            region=self.region,
            profile=self.profile,
            declarations_path=declarations or self.declarations_path,
            state_path=state or self.state_path,
            default_format=format_override or self.default_format,
            log_level="DEBUG" if verbose else self.log_level,
        )


def load_settings(path: Path) -> Settings:
    if not path.exists():
        return Settings()

    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    if not isinstance(data, dict):
        raise ValueError("Configuration file must be a mapping of keys to values.")

    return Settings.from_mapping(data)


__all__ = ["Settings", "load_settings"]
