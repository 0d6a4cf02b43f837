"""
Fuzzy search package for the Library API.

This package contains:
- Candidate filtering (cheap subsequence admission test)
- Subsequence alignment scoring
- Ranking and truncation of scored candidates
- The filter -> rank search pipeline
"""

from search.candidate_filter import filter_candidates
from search.exceptions import InvalidQueryError, SearchError, SearchTimeoutError
from search.models import DEFAULT_FIELDS, NoMatch, RankedResult, ScoredRecord
from search.pipeline import search_records
from search.ranker import rank_matches

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_FIELDS",
    "InvalidQueryError",
    "NoMatch",
    "RankedResult",
    "ScoredRecord",
    "SearchError",
    "SearchTimeoutError",
    "filter_candidates",
    "rank_matches",
    "search_records",
]
