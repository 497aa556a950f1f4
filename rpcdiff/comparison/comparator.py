"""
Structural comparison of parsed JSON documents.

Documents are trees of dicts, lists and scalars as produced by ``json.loads``.
Numbers are compared by value, so an integer and a decimal of the same value
are equal; booleans are never numbers.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterator, List, Optional

from rpcdiff.comparison.diff_reporter import (
    ADDED,
    CHANGED,
    LENGTH,
    REMOVED,
    DiffEntry,
    render_diff,
)
from rpcdiff.comparison.field_filter import PathPredicate, never_excluded
from rpcdiff.comparison.paths import (
    ROOT,
    IndexSegment,
    KeySegment,
    StructuralPath,
    child,
)


def json_type(value: Any) -> str:
    """Name of the JSON type a decoded value belongs to."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float, Decimal)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


def iter_differences(
    left: Any,
    right: Any,
    predicate: Optional[PathPredicate] = None,
    path: StructuralPath = ROOT,
) -> Iterator[DiffEntry]:
    """
    Yield every difference between two documents, depth first.

    Paths for which ``predicate`` returns True are skipped together with
    everything below them. Array elements are matched by index; an excluded
    index is skipped without shifting the remaining elements.
    """
    predicate = predicate or never_excluded

    left_type = json_type(left)
    right_type = json_type(right)
    if left_type != right_type:
        yield DiffEntry(path, CHANGED, left, right)
        return

    if left_type == "object":
        yield from _diff_objects(left, right, predicate, path)
    elif left_type == "array":
        yield from _diff_arrays(left, right, predicate, path)
    elif left != right:
        yield DiffEntry(path, CHANGED, left, right)


def _diff_objects(
    left: dict, right: dict, predicate: PathPredicate, path: StructuralPath
) -> Iterator[DiffEntry]:
    # Left key order first, then keys only the right side has
    keys: List[str] = list(left.keys())
    keys.extend(key for key in right.keys() if key not in left)

    for key in keys:
        key_path = child(path, KeySegment(key))
        if predicate(key_path):
            continue
        if key not in right:
            yield DiffEntry(key_path, REMOVED, left[key], None)
        elif key not in left:
            yield DiffEntry(key_path, ADDED, None, right[key])
        else:
            yield from iter_differences(left[key], right[key], predicate, key_path)


def _diff_arrays(
    left: list, right: list, predicate: PathPredicate, path: StructuralPath
) -> Iterator[DiffEntry]:
    common = min(len(left), len(right))
    for index in range(common):
        index_path = child(path, IndexSegment(index))
        if predicate(index_path):
            continue
        yield from iter_differences(left[index], right[index], predicate, index_path)

    if len(left) == len(right):
        return

    reported_extra = False
    for index in range(common, max(len(left), len(right))):
        index_path = child(path, IndexSegment(index))
        if predicate(index_path):
            continue
        reported_extra = True
        if index < len(left):
            yield DiffEntry(index_path, REMOVED, left[index], None)
        else:
            yield DiffEntry(index_path, ADDED, None, right[index])

    if not reported_extra:
        # Extra elements were all excluded, but arrays of different length never match
        yield DiffEntry(path, LENGTH, len(left), len(right))


def equal(left: Any, right: Any, predicate: Optional[PathPredicate] = None) -> bool:
    """Return True when the documents have no differences outside excluded paths."""
    for _ in iter_differences(left, right, predicate):
        return False
    return True


def differences(
    left: Any, right: Any, predicate: Optional[PathPredicate] = None
) -> List[DiffEntry]:
    return list(iter_differences(left, right, predicate))


def diff(left: Any, right: Any, predicate: Optional[PathPredicate] = None) -> str:
    """
    Render the differences between two documents.

    ``-`` lines come from ``left``, ``+`` lines from ``right``. Returns an
    empty string when the documents are equal.
    """
    return render_diff(iter_differences(left, right, predicate))
