"""Schema identity: signatures and header list comparison."""

import json
from collections.abc import Sequence
from typing import Optional


def signature_of(headers: Sequence[str]) -> str:
    """
    Derive a stable cache key for an ordered header list.

    The key is the JSON encoding of the list, so it is sensitive to order,
    membership, case and whitespace.
    """
    return json.dumps(list(headers), ensure_ascii=False)


def same_schema(a: Sequence[str], b: Sequence[str]) -> bool:
    """Check whether two header lists are identical, position by position."""
    return len(a) == len(b) and all(x == y for x, y in zip(a, b))


def first_mismatch(
    header_lists: Sequence[Sequence[str]], reference: Sequence[str]
) -> Optional[list[str]]:
    """Return the first header list that differs from the reference, if any."""
    for headers in header_lists:
        if not same_schema(headers, reference):
            return list(headers)
    return None


def all_same_schema(
    header_lists: Sequence[Sequence[str]], reference: Optional[Sequence[str]] = None
) -> bool:
    """
    Check whether every header list shares one schema.

    Args:
        header_lists: Header lists to compare
        reference: Schema to compare against (defaults to the first list)
    """
    if not header_lists:
        return True
    if reference is None:
        reference = header_lists[0]
    return first_mismatch(header_lists, reference) is None
