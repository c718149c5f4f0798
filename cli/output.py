"""Output helpers for the IAMPA CLI."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel

FORMATS = ("json", "md", "table")


def _default_serializer(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, Path):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def emit(data: list[dict[str, Any]], fmt: str, output_path: Path | None = None) -> None:
    if fmt == "json":
        rendered = json.dumps(data, indent=2, default=_default_serializer)
    elif fmt == "md":
        rendered = _to_markdown(data)
    elif fmt == "table":
        rendered = _to_table(data)
    else:
        raise ValueError(f"Unsupported format: {fmt}")

    if output_path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(rendered + ("\n" if not rendered.endswith("\n") else ""), encoding="utf-8")
    else:
        print(rendered)


def _cell(value: Any) -> str:
    if isinstance(value, (list, tuple, set, frozenset)):
        return ", ".join(str(item) for item in (sorted(value) if isinstance(value, (set, frozenset)) else value))
    return str(value)


def _headers(rows: list[dict[str, Any]]) -> list[str]:
    return list(dict.fromkeys(key for row in rows for key in row.keys()))


def _to_markdown(rows: list[dict[str, Any]]) -> str:
    if not rows:
        return "(no data)"
    headers = _headers(rows)
    lines = ["| " + " | ".join(headers) + " |", "| " + " | ".join(["---"] * len(headers)) + " |"]
    for row in rows:
        lines.append("| " + " | ".join(_cell(row.get(header, "")) for header in headers) + " |")
    return "\n".join(lines)


def _to_table(rows: list[dict[str, Any]]) -> str:
    if not rows:
        return "(no data)"
    headers = _headers(rows)
    widths = {header: max(len(header), *(len(_cell(row.get(header, ""))) for row in rows)) for header in headers}
    lines = [
        " ".join(header.ljust(widths[header]) for header in headers),
        " ".join("-" * widths[header] for header in headers),
    ]
    for row in rows:
        lines.append(" ".join(_cell(row.get(header, "")).ljust(widths[header]) for header in headers))
    return "\n".join(lines)


__all__ = ["FORMATS", "emit"]
