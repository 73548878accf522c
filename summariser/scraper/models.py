"""Data models for the scraper stage."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class RawPage:
    """The raw HTTP response for a single URL fetch."""

    url: str
    final_url: str
    html: str
    status_code: int


@dataclass
class Article:
    """Cleaned, readable article extracted from a :class:`RawPage`."""

    url: str
    title: str
    body: str


@dataclass(frozen=True)
class Metrics:
    word_count: int
    read_time: int
