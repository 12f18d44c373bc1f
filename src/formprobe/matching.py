"""Substring checks for decoded message content."""

from typing import Iterable


def missing_fragments(content: str, expected: Iterable[str]) -> list[str]:
    """Return the expected fragments absent from ``content``, in the given order."""
    return [fragment for fragment in expected if fragment not in content]


def contains_all(content: str, expected: Iterable[str]) -> bool:
    """
    Check that every expected fragment occurs in ``content``.

    Matching is exact and case-sensitive. Fragment order does not matter,
    and an empty ``expected`` is trivially satisfied.
    """
    return not missing_fragments(content, expected)
