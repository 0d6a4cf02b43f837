"""
Candidate filtering for fuzzy search.

The filter is a cheap boolean admission test run before scoring: a record is
a candidate when the query is a case-insensitive subsequence of at least one
of its searched fields. The same test can be pushed down to MongoDB as a
regular expression so the store only returns plausible records.
"""

import re
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Sequence, Union

import structlog

from search.exceptions import InvalidQueryError
from search.models import NoMatch

logger = structlog.get_logger(__name__)


def validate_query(query: Any) -> str:
    """
    Check that a query can be searched for.

    Args:
        query: Raw query value from the caller

    Returns:
        The query, unchanged

    Raises:
        InvalidQueryError: If the query is not a string or is empty
    """
    if not isinstance(query, str) or not query:
        raise InvalidQueryError()
    return query


def field_text(record: Any, field: str) -> str:
    """
    Read a searchable field from a record.

    Mappings (raw MongoDB documents) are read by key, anything else by
    attribute. Missing fields and non-text values read as an empty string.
    """
    if isinstance(record, Mapping):
        value = record.get(field)
    else:
        value = getattr(record, field, None)
    return value if isinstance(value, str) else ""


def is_subsequence(query: str, text: str) -> bool:
    """Check if every character of query appears in text, in order, ignoring case."""
    if not query or not text:
        return False
    remaining = iter(text.lower())
    return all(char in remaining for char in query.lower())


def build_subsequence_pattern(query: str) -> str:
    """
    Build a regular expression equivalent to the subsequence test.

    Every query character is escaped and joined by a greedy wildcard, so
    "a.b" becomes "a.*\\..*b". Match it case-insensitively.
    """
    validate_query(query)
    return ".*".join(re.escape(char) for char in query)


def build_candidate_filter(query: str, fields: Sequence[str]) -> Dict[str, Any]:
    """
    Build a MongoDB filter document admitting the same records as filter_candidates.

    Args:
        query: Search query
        fields: Field names to test

    Returns:
        A ``$or`` filter with one ``$regex`` clause per field, case-insensitive
        and with ``.`` matching newlines
    """
    if not fields:
        raise ValueError("At least one search field is required")
    pattern = build_subsequence_pattern(query)
    return {
        "$or": [
            {field: {"$regex": pattern, "$options": "is"}}
            for field in fields
        ]
    }


def filter_candidates(
    query: str,
    fields: Sequence[str],
    records: Iterable[Any]
) -> Union[List[Any], NoMatch]:
    """
    Narrow records down to the ones worth scoring.

    Args:
        query: Non-empty search query
        fields: Field names to test, e.g. ("title", "author", "genre")
        records: Records supplied by the caller, in store order

    Returns:
        Records whose query is a subsequence of at least one field, in their
        original order, or NoMatch when none qualify

    Raises:
        InvalidQueryError: If the query is empty
    """
    validate_query(query)
    if not fields:
        raise ValueError("At least one search field is required")

    candidates = [
        record for record in records
        if any(is_subsequence(query, field_text(record, field)) for field in fields)
    ]

    logger.debug("Candidate filter applied", query_length=len(query), candidates=len(candidates))

    if not candidates:
        return NoMatch(query=query)
    return candidates
