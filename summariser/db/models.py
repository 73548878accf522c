"""Dataclass models representing stored records.

These are plain Python objects – not ORM models.  Each store serialises /
deserialises to and from these types.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


@dataclass
class SummaryRecord:
    """Row in the summary store, keyed by ``url``."""

    url: str
    title: str
    summary: str
    urdu_summary: str
    word_count: int
    read_time: int
    created_at: str = field(default_factory=utc_now_iso)

    def to_row(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: Any) -> "SummaryRecord":
        return cls(
            url=row["url"],
            title=row["title"],
            summary=row["summary"],
            urdu_summary=row["urdu_summary"],
            word_count=int(row["word_count"]),
            read_time=int(row["read_time"]),
            created_at=str(row["created_at"]),
        )


@dataclass
class FullTextRecord:
    """Document in the full-text store, one current document per ``url``."""

    url: str
    title: str
    content: str
    created_at: str = field(default_factory=utc_now_iso)

    def to_row(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: Any) -> "FullTextRecord":
        return cls(
            url=row["url"],
            title=row["title"],
            content=row["content"],
            created_at=str(row["created_at"]),
        )


@dataclass
class PersistOutcome:
    """Which of the two writes landed, plus any non-fatal warnings."""

    summary_written: bool = False
    full_text_written: bool = False
    warnings: list[str] = field(default_factory=list)
