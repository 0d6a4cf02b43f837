"""
Ranking of filtered candidates.

Each candidate is scored on its own; scoring one record is the unit of work
between which a deadline is checked. Ranking either completes over the whole
candidate set or raises, it never returns a partial result.
"""

import time
from typing import Any, List, Optional, Sequence

from search.candidate_filter import validate_query
from search.exceptions import SearchTimeoutError
from search.models import RankedResult, ScoredRecord
from search.scoring import score_record

DEFAULT_MAX_RESULTS = 20
DEFAULT_SCORE_THRESHOLD = -1000


def rank_scored(
    query: str,
    fields: Sequence[str],
    candidates: Sequence[Any],
    max_results: int = DEFAULT_MAX_RESULTS,
    score_threshold: float = DEFAULT_SCORE_THRESHOLD,
    deadline: Optional[float] = None
) -> RankedResult:
    """
    Score, threshold, order and truncate candidates.

    Args:
        query: Non-empty search query
        fields: Field names to score
        candidates: Records that passed the candidate filter, in store order
        max_results: Maximum number of results to keep
        score_threshold: Minimum score a record needs to be kept
        deadline: Optional ``time.monotonic()`` value after which ranking stops

    Returns:
        RankedResult with scores in non-increasing order; ties keep the
        candidates' relative order

    Raises:
        InvalidQueryError: If the query is empty
        SearchTimeoutError: If the deadline passes before all candidates are scored
    """
    validate_query(query)
    if not fields:
        raise ValueError("At least one search field is required")
    if max_results < 1:
        raise ValueError("max_results must be at least 1")

    candidates = list(candidates)
    kept: List[ScoredRecord] = []
    for index, record in enumerate(candidates):
        if deadline is not None and time.monotonic() > deadline:
            raise SearchTimeoutError(scored=index, total=len(candidates))
        scored = score_record(query, record, fields, index=index)
        if scored.matched and scored.score >= score_threshold:
            kept.append(scored)

    # list.sort is stable, so equal scores keep candidate order
    kept.sort(key=lambda scored: scored.score, reverse=True)

    return RankedResult(results=kept[:max_results], total=len(kept))


def rank_matches(
    query: str,
    fields: Sequence[str],
    candidates: Sequence[Any],
    max_results: int = DEFAULT_MAX_RESULTS,
    score_threshold: float = DEFAULT_SCORE_THRESHOLD,
    deadline: Optional[float] = None
) -> List[Any]:
    """Rank candidates and return the original records, best match first."""
    return rank_scored(
        query,
        fields,
        candidates,
        max_results=max_results,
        score_threshold=score_threshold,
        deadline=deadline
    ).records
