"""
Models for the fuzzy search pipeline.

This module defines:
- Per-field match results
- Scored records and ranked result sets
- The distinct "no match" outcome of candidate filtering
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


# Fields searched when the caller does not name any
DEFAULT_FIELDS = ("title", "author", "genre")


class FieldMatch(BaseModel):
    """Score of one field of one record against a query."""
    field: str = Field(..., description="Name of the scored field")
    score: Optional[int] = Field(None, description="Alignment score, None when the field does not match")

    class Config:
        """Pydantic configuration."""
        frozen = True

    @property
    def matched(self) -> bool:
        return self.score is not None


class ScoredRecord(BaseModel):
    """A record paired with the best score found across its fields."""
    record: Any = Field(..., description="The original record, passed through untouched")
    score: Optional[int] = Field(None, description="Best field score, None when no field matched")
    field: Optional[str] = Field(None, description="Field that produced the best score")
    index: int = Field(..., ge=0, description="Position of the record in the candidate sequence")

    class Config:
        """Pydantic configuration."""
        frozen = True
        arbitrary_types_allowed = True

    @property
    def matched(self) -> bool:
        return self.score is not None


class RankedResult(BaseModel):
    """Ordered search results, best match first."""
    results: List[ScoredRecord] = Field(default_factory=list, description="Scored records in rank order")
    total: int = Field(0, ge=0, description="Records that cleared the score threshold before truncation")

    @property
    def records(self) -> List[Any]:
        """Original records in rank order, without scores."""
        return [scored.record for scored in self.results]

    def __len__(self) -> int:
        return len(self.results)


class NoMatch(BaseModel):
    """
    Outcome of a search whose candidate filter admitted no records.

    This is not an error and not an empty result list: callers check for it
    explicitly and render a "no matches found" response.
    """
    query: str = Field(..., description="The query that matched nothing")

    class Config:
        """Pydantic configuration."""
        frozen = True

    def __bool__(self) -> bool:
        return False
