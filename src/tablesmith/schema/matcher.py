"""Fuzzy matching of new column names against existing columns."""

import logging
import re
from collections.abc import Sequence
from typing import Optional

from .models import ColumnMatch, MatchKind

logger = logging.getLogger(__name__)

EXACT_CONFIDENCE = 1.0
CASE_INSENSITIVE_CONFIDENCE = 0.95
DEFAULT_MIN_CONFIDENCE = 0.6
# Qualified-name matches rank below case-insensitive identity
TOKEN_MATCH_WEIGHT = 0.8

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_TOKEN = re.compile(r"[A-Z]?[a-z]+|[A-Z]+(?![a-z])|\d+")


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between two strings (insert, delete, substitute)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(
                    current[j - 1] + 1,
                    previous[j] + 1,
                    previous[j - 1] + cost,
                )
            )
        previous = current
    return previous[len(b)]


def similarity(a: str, b: str) -> float:
    """Normalized similarity in [0, 1]; two empty strings are identical."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(a, b)) / longest


def normalize_column_name(name: str) -> str:
    """Lowercase a column name and strip everything but letters and digits."""
    return _NON_ALNUM.sub("", name.lower())


def column_tokens(name: str) -> set[str]:
    """Split a column name into lowercase words ("emailAddress" -> email, address)."""
    return {token.lower() for token in _TOKEN.findall(name) if len(token) > 1}


def qualified_name_score(new_column: str, existing_column: str) -> float:
    """
    Score a new name that keeps every word of the existing name.

    Catches names that only add a qualifier word, such as "email_address"
    against "Email", where edit distance alone stays low. The reverse
    direction ("id" against "order_id") scores 0.
    """
    new_tokens = column_tokens(new_column)
    existing_tokens = column_tokens(existing_column)
    if not existing_tokens or not existing_tokens <= new_tokens:
        return 0.0
    return TOKEN_MATCH_WEIGHT


def fuzzy_confidence(new_column: str, existing_column: str) -> float:
    """Best of normalized, plain lowercase and qualified name similarity."""
    confidence = similarity(new_column.lower(), existing_column.lower())
    normalized_new = normalize_column_name(new_column)
    normalized_existing = normalize_column_name(existing_column)
    if normalized_new and normalized_existing:
        confidence = max(confidence, similarity(normalized_new, normalized_existing))
    return max(confidence, qualified_name_score(new_column, existing_column))


def find_best_match(
    new_column: str,
    existing_columns: Sequence[str],
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
) -> Optional[ColumnMatch]:
    """
    Find the existing column that best matches a new column name.

    Precedence:
    1. An exact match anywhere ends the scan with confidence 1.0.
    2. A case-insensitive match is recorded at 0.95 unless the best so far
       scores at least as high, so the first one wins. The scan continues and
       a later exact match still ends it.
    3. A fuzzy candidate at or above ``min_confidence`` replaces the best
       only with a strictly higher confidence. Ties keep the earlier column;
       only a fuzzy 1.0 outranks a case-insensitive match.

    Args:
        new_column: Incoming column name
        existing_columns: Columns of the current dataset, in order
        min_confidence: Minimum fuzzy confidence to accept

    Returns:
        ColumnMatch, or None if nothing qualifies
    """
    best: Optional[ColumnMatch] = None

    for existing in existing_columns:
        if new_column == existing:
            return ColumnMatch(
                column=existing, confidence=EXACT_CONFIDENCE, match_kind=MatchKind.EXACT
            )

        if new_column.lower() == existing.lower():
            if best is None or best.confidence < CASE_INSENSITIVE_CONFIDENCE:
                best = ColumnMatch(
                    column=existing,
                    confidence=CASE_INSENSITIVE_CONFIDENCE,
                    match_kind=MatchKind.CASE_INSENSITIVE,
                )
            continue

        confidence = fuzzy_confidence(new_column, existing)
        if confidence >= min_confidence and (best is None or confidence > best.confidence):
            best = ColumnMatch(
                column=existing, confidence=confidence, match_kind=MatchKind.FUZZY
            )

    if best is not None:
        logger.debug(
            f"Matched '{new_column}' -> '{best.column}' "
            f"({best.match_kind.value}, {format_confidence(best.confidence)})"
        )
    return best


def generate_mapping_suggestions(
    new_columns: Sequence[str],
    existing_columns: Sequence[str],
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
) -> dict[str, Optional[ColumnMatch]]:
    """Run find_best_match for every new column."""
    return {
        column: find_best_match(column, existing_columns, min_confidence)
        for column in new_columns
    }


def format_confidence(confidence: float) -> str:
    """Format a confidence as a whole percentage, e.g. "87%"."""
    return f"{round(confidence * 100)}%"
