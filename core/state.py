"""JSON file recording the last observed state of each attachment."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError as ModelValidationError

from core.errors import ValidationError
from core.models import PolicyAttachment

STATE_PATH = Path(".iampa-state.json")
STATE_VERSION = 1

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StateStore:
    path: Path = STATE_PATH

    def load(self) -> dict[str, PolicyAttachment]:
        """Return recorded attachments keyed by name."""
        if not self.path.exists():
            return {}

        try:
            payload = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as exc:
            raise ValidationError(f"{self.path} is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise ValidationError(f"{self.path} must contain a JSON object")
        version = payload.get("version", STATE_VERSION)
        if version != STATE_VERSION:
            raise ValidationError(f"{self.path} has unsupported state version {version}")

        attachments: dict[str, PolicyAttachment] = {}
        for entry in payload.get("attachments", []) or []:
            try:
                attachment = PolicyAttachment.model_validate(entry)
            except ModelValidationError as exc:
                raise ValidationError(f"{self.path} contains an invalid attachment: {exc}") from exc
            attachments[attachment.name] = attachment
        return attachments

    def save(self, attachments: Iterable[PolicyAttachment]) -> None:
        entries = [attachment.model_dump(mode="json") for attachment in attachments]
        entries.sort(key=lambda entry: entry["name"])
        payload = {"version": STATE_VERSION, "attachments": entries}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        logger.debug("Wrote %d attachment(s) to %s", len(entries), self.path)


__all__ = ["STATE_PATH", "STATE_VERSION", "StateStore"]
