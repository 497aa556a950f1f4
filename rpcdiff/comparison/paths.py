"""Structural paths locating a node inside a parsed JSON document."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Tuple, Union

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class KeySegment:
    """Object member access by key."""

    key: str

    @property
    def label(self) -> str:
        return self.key

    def render(self) -> str:
        if _IDENTIFIER.match(self.key):
            return f".{self.key}"
        return f"[{json.dumps(self.key, ensure_ascii=False)}]"


@dataclass(frozen=True)
class IndexSegment:
    """Array element access by position."""

    index: int

    @property
    def label(self) -> str:
        return str(self.index)

    def render(self) -> str:
        return f"[{self.index}]"


PathSegment = Union[KeySegment, IndexSegment]
StructuralPath = Tuple[PathSegment, ...]

ROOT: StructuralPath = ()


def child(path: StructuralPath, segment: PathSegment) -> StructuralPath:
    """Return the path extended by one segment."""
    return path + (segment,)


def format_path(path: StructuralPath) -> str:
    """
    Render a path for humans, rooted at ``$``.

    Example:
        >>> format_path((KeySegment("result"), IndexSegment(0), KeySegment("odd key")))
        '$.result[0]["odd key"]'
    """
    return "$" + "".join(segment.render() for segment in path)
