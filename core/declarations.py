"""Load declared policy attachments from YAML."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as ModelValidationError

from core.errors import ValidationError
from core.models import PolicyAttachment

DECLARATIONS_PATH = Path("attachments.yml")


def parse_declarations(data: Any, source: str = "<memory>") -> list[PolicyAttachment]:
    if data is None:
        return []
    if not isinstance(data, dict):
        raise ValidationError(f"{source} must be a mapping with an 'attachments' list")

    entries = data.get("attachments") or []
    if not isinstance(entries, list):
        raise ValidationError(f"'attachments' in {source} must be a list")

    attachments: list[PolicyAttachment] = []
    seen: set[str] = set()
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValidationError(f"attachment #{index} in {source} must be a mapping")
        try:
            attachment = PolicyAttachment.from_mapping(entry)
        except ModelValidationError as exc:
            raise ValidationError(f"attachment #{index} in {source} is invalid: {exc}") from exc
        if attachment.name in seen:
            raise ValidationError(f"duplicate attachment name {attachment.name!r} in {source}")
        seen.add(attachment.name)
        attachments.append(attachment)
    return attachments


def load_declarations(path: Path = DECLARATIONS_PATH) -> list[PolicyAttachment]:
    if not path.exists():
        return []

    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ValidationError(f"{path} is not valid YAML: {exc}") from exc
    return parse_declarations(data, source=str(path))


__all__ = ["DECLARATIONS_PATH", "load_declarations", "parse_declarations"]
