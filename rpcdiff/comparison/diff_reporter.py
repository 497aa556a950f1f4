"""Diff Reporter - Render structural differences between two responses."""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List

from rpcdiff.comparison.paths import StructuralPath, format_path

MAX_VALUE_CHARS = 200

CHANGED = "changed"
REMOVED = "removed"
ADDED = "added"
LENGTH = "length"


@dataclass(frozen=True)
class DiffEntry:
    """
    A single difference between the left and right document.

    ``removed`` entries exist only on the left, ``added`` entries only on the
    right. ``length`` entries carry array lengths as their values.
    """

    path: StructuralPath
    kind: str
    left: Any = None
    right: Any = None

    @property
    def location(self) -> str:
        return format_path(self.path)


def _json_text(value: Any) -> str:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        items = ", ".join(
            f"{json.dumps(key, ensure_ascii=False)}: {_json_text(item)}"
            for key, item in value.items()
        )
        return "{" + items + "}"
    if isinstance(value, list):
        return "[" + ", ".join(_json_text(item) for item in value) + "]"
    return json.dumps(value, ensure_ascii=False)


def render_value(value: Any) -> str:
    """JSON text for a value, shortened for display."""
    text = _json_text(value)
    if len(text) > MAX_VALUE_CHARS:
        return text[:MAX_VALUE_CHARS] + "..."
    return text


def render_entry(entry: DiffEntry) -> List[str]:
    location = entry.location
    if entry.kind == REMOVED:
        return [f"- {location}: {render_value(entry.left)}"]
    if entry.kind == ADDED:
        return [f"+ {location}: {render_value(entry.right)}"]
    if entry.kind == LENGTH:
        return [
            f"- {location}: array of length {entry.left}",
            f"+ {location}: array of length {entry.right}",
        ]
    return [
        f"- {location}: {render_value(entry.left)}",
        f"+ {location}: {render_value(entry.right)}",
    ]


def render_diff(entries: Iterable[DiffEntry]) -> str:
    """
    Render differences as ``-``/``+`` lines keyed by full path.

    ``-`` lines show what the left document has, ``+`` lines what the right
    document has. Returns an empty string when there are no entries.
    """
    lines: List[str] = []
    for entry in entries:
        lines.extend(render_entry(entry))
    return "\n".join(lines)


def render_mismatch_header(left_server: str, right_server: str) -> str:
    """Explain the direction of the ``-``/``+`` markers for a server pair."""
    return (
        "mismatch:\n"
        f"- = have in {left_server} and not in {right_server}\n"
        f"+ = have in {right_server} and not in {left_server}"
    )


def summarize(entries: Iterable[DiffEntry]) -> Dict[str, int]:
    """Count entries by kind."""
    counts: Dict[str, int] = {CHANGED: 0, REMOVED: 0, ADDED: 0, LENGTH: 0}
    for entry in entries:
        counts[entry.kind] = counts.get(entry.kind, 0) + 1
    counts["total"] = sum(counts[kind] for kind in (CHANGED, REMOVED, ADDED, LENGTH))
    return counts
