"""
Subsequence alignment scoring.

A query scores against a field value by aligning each query character, in
order, to a distinct position in the value. Among all valid alignments the
best one is kept, where an alignment earns:

- MATCH_SCORE for every aligned character
- FIELD_START_BONUS when a character aligns to the first position
- WORD_BOUNDARY_BONUS when it aligns right after a non-alphanumeric character
- CONSECUTIVE_BONUS when it directly follows the previous aligned character
- minus GAP_PENALTY for every value character skipped between two aligned ones

A value equal to the query (ignoring case) also earns EXACT_MATCH_BONUS.
Resulting orderings: exact > word-start > contiguous > scattered.
"""

from typing import Any, List, Optional, Sequence

from search.candidate_filter import field_text
from search.models import FieldMatch, ScoredRecord

MATCH_SCORE = 16
GAP_PENALTY = 2
FIELD_START_BONUS = 12
WORD_BOUNDARY_BONUS = 8
# Must stay >= WORD_BOUNDARY_BONUS so longer contiguous runs outscore
# alignments that hop from one word start to the next
CONSECUTIVE_BONUS = 10
EXACT_MATCH_BONUS = 20

_UNREACHABLE = float("-inf")


def _position_bonuses(text: str) -> List[int]:
    bonuses = []
    for position, char in enumerate(text):
        if position == 0:
            bonuses.append(FIELD_START_BONUS)
        elif char.isalnum() and not text[position - 1].isalnum():
            bonuses.append(WORD_BOUNDARY_BONUS)
        else:
            bonuses.append(0)
    return bonuses


def score_text(query: str, text: str) -> Optional[int]:
    """
    Score the best alignment of query inside text.

    Args:
        query: Search query
        text: Field value to align against

    Returns:
        The alignment score (higher is better), or None when query is not
        a case-insensitive subsequence of text
    """
    if not query or not text:
        return None

    query = query.lower()
    text = text.lower()
    if len(query) > len(text):
        return None

    bonuses = _position_bonuses(text)

    # previous[j]: best score with the previous query character aligned at j
    previous: List[float] = []
    for row, query_char in enumerate(query):
        current = [_UNREACHABLE] * len(text)
        # Best previous[k] + GAP_PENALTY * k over k <= position - 2
        best_gapped = _UNREACHABLE

        for position, text_char in enumerate(text):
            if row and position >= 2:
                best_gapped = max(best_gapped, previous[position - 2] + GAP_PENALTY * (position - 2))

            if text_char != query_char:
                continue

            gained = MATCH_SCORE + bonuses[position]
            if not row:
                current[position] = gained
                continue

            best = best_gapped - GAP_PENALTY * (position - 1)
            if position >= 1:
                best = max(best, previous[position - 1] + CONSECUTIVE_BONUS)
            if best > _UNREACHABLE:
                current[position] = best + gained

        previous = current

    best_score = max(previous)
    if best_score == _UNREACHABLE:
        return None

    if query == text:
        best_score += EXACT_MATCH_BONUS
    return int(best_score)


def score_field(query: str, record: Any, field: str) -> FieldMatch:
    """Score a single field of a record. Non-text or missing fields never match."""
    return FieldMatch(field=field, score=score_text(query, field_text(record, field)))


def score_record(query: str, record: Any, fields: Sequence[str], index: int = 0) -> ScoredRecord:
    """
    Score a record by its best-matching field.

    Args:
        query: Search query
        record: Record to score
        fields: Field names to score, earlier fields win ties
        index: Position of the record in its candidate sequence

    Returns:
        ScoredRecord holding the maximum field score, or no score when
        none of the fields match
    """
    best: Optional[FieldMatch] = None
    for field in fields:
        match = score_field(query, record, field)
        if match.matched and (best is None or match.score > best.score):
            best = match

    if best is None:
        return ScoredRecord(record=record, index=index)
    return ScoredRecord(record=record, score=best.score, field=best.field, index=index)
