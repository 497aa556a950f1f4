"""
Field exclusion for structural comparison.

A field name is ignored wherever it appears as a whole path segment, at any
depth, on either side of a comparison.
"""

from typing import Callable, Iterable

from rpcdiff.comparison.paths import StructuralPath
from rpcdiff.exceptions import ConfigError

PathPredicate = Callable[[StructuralPath], bool]


def never_excluded(path: StructuralPath) -> bool:
    """Predicate used for strict comparison."""
    return False


def build_ignore_predicate(ignore_names: Iterable[str]) -> PathPredicate:
    """
    Build a predicate marking paths that contain an ignored field name.

    Matching is exact per segment: ignoring ``ts`` excludes ``$.result.ts`` and
    everything below it, but not ``$.result.tsx``. Array index segments match
    by their decimal label, so ``"0"`` excludes every first array element.

    Args:
        ignore_names: Field names to exclude

    Returns:
        Predicate over StructuralPath; always False for an empty name set

    Raises:
        ConfigError: If a name is empty
    """
    names = frozenset(str(name) for name in ignore_names)
    if "" in names:
        raise ConfigError("Ignored field names must not be empty")

    if not names:
        return never_excluded

    def is_excluded(path: StructuralPath) -> bool:
        return any(segment.label in names for segment in path)

    return is_excluded
