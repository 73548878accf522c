"""Typed failures raised by the processing pipeline.

Every stage raises a subclass of :class:`PipelineFailure` carrying a
machine-readable ``kind`` and the ``stage`` it originated from.  The
orchestrator re-tags ``stage`` with its active state before re-raising, and
the HTTP layer maps ``(stage, kind)`` onto a status code.

    FetchError          Timeout | Unreachable | HttpStatus | TooManyRedirects | TooLarge
    ExtractionError     EmptyContent
    SummarizationError  UpstreamUnavailable | RateLimited | InvalidResponse
    TranslationError    UpstreamUnavailable | InvalidResponse
    PersistenceError    SummaryWriteFailed
    PipelineError       DeadlineExceeded
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    INVALID_URL = "InvalidUrl"
    TIMEOUT = "Timeout"
    UNREACHABLE = "Unreachable"
    HTTP_STATUS = "HttpStatus"
    TOO_MANY_REDIRECTS = "TooManyRedirects"
    TOO_LARGE = "TooLarge"
    EMPTY_CONTENT = "EmptyContent"
    UPSTREAM_UNAVAILABLE = "UpstreamUnavailable"
    RATE_LIMITED = "RateLimited"
    INVALID_RESPONSE = "InvalidResponse"
    SUMMARY_WRITE_FAILED = "SummaryWriteFailed"
    DEADLINE_EXCEEDED = "DeadlineExceeded"


# Kinds the orchestrator is allowed to retry once.
TRANSIENT_KINDS = frozenset(
    {ErrorKind.TIMEOUT, ErrorKind.UPSTREAM_UNAVAILABLE, ErrorKind.RATE_LIMITED}
)


class PipelineFailure(Exception):
    """Base class for every failure the pipeline surfaces to its caller."""

    stage = "pipeline"
    kinds: frozenset[ErrorKind] = frozenset()

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        stage: Optional[str] = None,
    ) -> None:
        if self.kinds and kind not in self.kinds:
            raise ValueError(f"{type(self).__name__} cannot carry kind {kind.value!r}")
        super().__init__(message)
        self.kind = kind
        self.message = message
        if stage is not None:
            self.stage = stage

    @property
    def transient(self) -> bool:
        return self.kind in TRANSIENT_KINDS

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "stage": self.stage, "kind": self.kind.value}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.stage}/{self.kind.value}: {self.message!r})"


class InvalidRequestError(PipelineFailure):
    stage = "request"
    kinds = frozenset({ErrorKind.INVALID_URL})


class FetchError(PipelineFailure):
    stage = "fetching"
    kinds = frozenset(
        {
            ErrorKind.TIMEOUT,
            ErrorKind.UNREACHABLE,
            ErrorKind.HTTP_STATUS,
            ErrorKind.TOO_MANY_REDIRECTS,
            ErrorKind.TOO_LARGE,
        }
    )

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        status_code: Optional[int] = None,
        stage: Optional[str] = None,
    ) -> None:
        super().__init__(kind, message, stage=stage)
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.status_code is not None:
            payload["status_code"] = self.status_code
        return payload


class ExtractionError(PipelineFailure):
    stage = "extracting"
    kinds = frozenset({ErrorKind.EMPTY_CONTENT})


class SummarizationError(PipelineFailure):
    stage = "summarizing"
    kinds = frozenset(
        {
            ErrorKind.UPSTREAM_UNAVAILABLE,
            ErrorKind.RATE_LIMITED,
            ErrorKind.INVALID_RESPONSE,
        }
    )


class TranslationError(PipelineFailure):
    stage = "translating"
    kinds = frozenset({ErrorKind.UPSTREAM_UNAVAILABLE, ErrorKind.INVALID_RESPONSE})


class PersistenceError(PipelineFailure):
    stage = "persisting"
    kinds = frozenset({ErrorKind.SUMMARY_WRITE_FAILED})


class PipelineError(PipelineFailure):
    kinds = frozenset({ErrorKind.DEADLINE_EXCEEDED})
