"""
Data models for search functionality.

This module defines Pydantic models for the state published by a query
controller and the performance figures derived from its telemetry.
"""

from pydantic import BaseModel, ConfigDict, Field

from .enums import ErrorKind
from .places import Place


class SearchState(BaseModel):
    """Snapshot of a search surface.

    Snapshots are immutable; every publication produces a new instance.
    """

    model_config = ConfigDict(frozen=True)

    query: str = Field(default="", description="Raw text of the active query")
    results: list[Place] = Field(default_factory=list, description="Ranked results")
    suggestions: list[str] = Field(default_factory=list, description="Suggestions")
    is_loading: bool = Field(default=False, description="A lookup is pending")
    has_searched: bool = Field(default=False, description="A lookup has settled")
    error: ErrorKind | None = Field(default=None, description="Last search failure")


class PerformanceStats(BaseModel):
    """Rolling latency figures, in milliseconds."""

    last_search_duration_ms: float = 0.0
    average_search_duration_ms: float = 0.0


class QueryCount(BaseModel):
    query: str
    count: int
