"""
The two-stage fuzzy search pipeline: candidate filter, then ranker.
"""

import time
from typing import Any, Iterable, Optional, Sequence, Union

import structlog

from search.candidate_filter import filter_candidates, validate_query
from search.models import DEFAULT_FIELDS, NoMatch, RankedResult
from search.ranker import DEFAULT_MAX_RESULTS, DEFAULT_SCORE_THRESHOLD, rank_scored

logger = structlog.get_logger(__name__)


def search_records(
    query: str,
    records: Iterable[Any],
    fields: Sequence[str] = DEFAULT_FIELDS,
    max_results: int = DEFAULT_MAX_RESULTS,
    score_threshold: float = DEFAULT_SCORE_THRESHOLD,
    deadline: Optional[float] = None
) -> Union[RankedResult, NoMatch]:
    """
    Run a fuzzy search over records.

    The query is validated before anything else runs. Records that cannot
    match are dropped by the cheap candidate filter, and only the survivors
    are scored and ranked.

    Args:
        query: Non-empty search query
        records: Records fetched by the caller, in store order
        fields: Field names to search
        max_results: Maximum number of results to return
        score_threshold: Minimum score a record needs to be returned
        deadline: Optional ``time.monotonic()`` value bounding the ranking step

    Returns:
        RankedResult, or NoMatch when the filter admits no records

    Raises:
        InvalidQueryError: If the query is empty
        SearchTimeoutError: If ranking runs past the deadline
    """
    validate_query(query)
    started = time.perf_counter()

    candidates = filter_candidates(query, fields, records)
    if isinstance(candidates, NoMatch):
        logger.debug("No candidates matched query", query_length=len(query))
        return candidates

    ranked = rank_scored(
        query,
        fields,
        candidates,
        max_results=max_results,
        score_threshold=score_threshold,
        deadline=deadline
    )

    logger.debug(
        "Fuzzy search completed",
        query_length=len(query),
        candidates=len(candidates),
        matched=ranked.total,
        returned=len(ranked),
        elapsed_ms=round((time.perf_counter() - started) * 1000, 2)
    )
    return ranked
