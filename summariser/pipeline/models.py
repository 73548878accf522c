"""Data models owned by the orchestrator for the lifetime of one run."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional
from urllib.parse import urlsplit

import httpx

from summariser.errors import ErrorKind, InvalidRequestError


class Stage(str, Enum):
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    SUMMARIZING = "summarizing"
    TRANSLATING = "translating"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


# Forward-only order of the working states.
STAGE_ORDER = [
    Stage.FETCHING,
    Stage.EXTRACTING,
    Stage.SUMMARIZING,
    Stage.TRANSLATING,
    Stage.PERSISTING,
    Stage.DONE,
]


@dataclass(frozen=True)
class ProcessingRequest:
    url: str

    @classmethod
    def parse(cls, url: Any) -> "ProcessingRequest":
        """Validate *url* as an absolute ``http``/``https`` URL.

        Raises:
            InvalidRequestError: ``InvalidUrl`` for anything else.
        """
        if not isinstance(url, str) or not url.strip():
            raise InvalidRequestError(ErrorKind.INVALID_URL, "A URL is required")
        url = url.strip()
        try:
            parts = urlsplit(url)
            host = parts.hostname
            parts.port  # ValueError when out of range
            httpx.URL(url)
        except (ValueError, httpx.InvalidURL) as exc:
            raise InvalidRequestError(ErrorKind.INVALID_URL, f"Invalid URL: {url}") from exc
        if parts.scheme.lower() not in ("http", "https") or not host:
            raise InvalidRequestError(
                ErrorKind.INVALID_URL,
                f"URL must be an absolute http(s) URL: {url}",
            )
        if any(ch.isspace() for ch in parts.netloc):
            raise InvalidRequestError(ErrorKind.INVALID_URL, f"Invalid host in URL: {url}")
        return cls(url=url)


@dataclass
class ProcessedBlog:
    url: str
    title: str
    content: str
    summary: str
    urdu_summary: str
    word_count: int
    read_time: int

    def to_dict(self) -> dict[str, Any]:
        """camelCase projection consumed by the frontend."""
        return {
            "url": self.url,
            "title": self.title,
            "content": self.content,
            "summary": self.summary,
            "urduSummary": self.urdu_summary,
            "wordCount": self.word_count,
            "readTime": self.read_time,
        }


@dataclass
class PipelineEvent:
    """Progress notification emitted as a run moves between stages.

    ``status`` is one of ``started``, ``completed``, ``retrying``,
    ``warning`` or ``failed``.
    """

    stage: Stage
    status: str
    detail: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["stage"] = self.stage.value
        return payload


@dataclass
class PipelineResult:
    blog: ProcessedBlog
    warnings: list[str] = field(default_factory=list)
    summary_written: bool = True
    full_text_written: bool = True

    def to_dict(self) -> dict[str, Any]:
        payload = self.blog.to_dict()
        payload["warnings"] = list(self.warnings)
        return payload
