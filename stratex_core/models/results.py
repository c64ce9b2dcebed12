"""
Per-item execution results and the aggregate report returned by the dispatcher.
"""

from __future__ import annotations

from typing import Any

from beartype import beartype
from pydantic import BaseModel, ConfigDict, Field, model_validator

from stratex_core.executor.exceptions import ErrorKind, ExecutionError
from stratex_core.models.venue import Venue


class ExecutionResult(BaseModel):
    """
    Outcome of one Order or Swap.

    Exactly one of `venue_id` (success) or `error_kind` (failure) is set.
    """

    model_config = ConfigDict(frozen=True)

    venue: Venue
    index: int = Field(ge=0, description="Position of the item within its leg")
    item: str = Field(min_length=1, description="Human-readable item description")
    venue_id: str | None = Field(default=None, description="Order id or transaction hash")
    error_kind: ErrorKind | None = None
    error_message: str | None = None
    temporary: bool = False
    details: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_outcome(self) -> ExecutionResult:
        if (self.venue_id is None) == (self.error_kind is None):
            raise ValueError("exactly one of venue_id or error_kind must be set")
        return self

    @property
    def success(self) -> bool:
        return self.error_kind is None

    @classmethod
    @beartype
    def succeeded(
        cls,
        venue: Venue,
        index: int,
        item: str,
        venue_id: str,
        details: dict[str, str] | None = None,
    ) -> ExecutionResult:
        return cls(venue=venue, index=index, item=item, venue_id=venue_id, details=details or {})

    @classmethod
    @beartype
    def failed(cls, venue: Venue, index: int, item: str, error: ExecutionError) -> ExecutionResult:
        return cls(
            venue=venue,
            index=index,
            item=item,
            error_kind=error.kind,
            error_message=str(error),
            temporary=error.temporary,
        )


class ExecutionReport(BaseModel):
    """All results of one dispatched strategy: CEX results first, then DEX, each in input order."""

    model_config = ConfigDict(frozen=True)

    results: tuple[ExecutionResult, ...] = ()

    @property
    def succeeded(self) -> list[ExecutionResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[ExecutionResult]:
        return [r for r in self.results if not r.success]

    @beartype
    def for_venue(self, venue: Venue) -> list[ExecutionResult]:
        return [r for r in self.results if r.venue == venue]

    def summary(self) -> str:
        return f"executed {len(self.succeeded)} out of {len(self.results)} strategy items"

    def to_dict(self) -> dict[str, Any]:
        return {
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "results": [r.model_dump(mode="json") for r in self.results],
        }
