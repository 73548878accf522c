"""Pipeline orchestrator — one URL in, one :class:`ProcessedBlog` out.

``BlogPipeline.process`` drives a run through a forward-only state machine:

    fetching → extracting → summarizing → translating → persisting → done

Any stage failure ends the run in ``failed`` with the active stage tagged on
the raised :class:`~summariser.errors.PipelineFailure`.  The one exception is
the full-text half of persistence, which only produces a warning (see
:mod:`summariser.db.persistence`).

Retry policy: the fetch, summary and translation stages get exactly one
extra attempt, after ``settings.retry_backoff`` seconds, when they fail with
a transient kind (``Timeout``, ``UpstreamUnavailable``, ``RateLimited``).
The whole run is bounded by ``settings.pipeline_deadline``; on expiry the
in-flight stage is cancelled and ``PipelineError{DeadlineExceeded}`` is
raised.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from summariser.ai.summarizer import summarize
from summariser.ai.translator import translate
from summariser.config import Settings, settings
from summariser.db.persistence import PersistenceCoordinator
from summariser.errors import (
    ErrorKind,
    ExtractionError,
    FetchError,
    PersistenceError,
    PipelineError,
    PipelineFailure,
    SummarizationError,
    TranslationError,
)
from summariser.pipeline.models import (
    STAGE_ORDER,
    PipelineEvent,
    PipelineResult,
    ProcessedBlog,
    ProcessingRequest,
    Stage,
)
from summariser.scraper.extractor import extract_article
from summariser.scraper.fetcher import fetch_html
from summariser.scraper.metrics import compute_metrics
from summariser.scraper.models import Article, RawPage

logger = logging.getLogger(__name__)

EventCallback = Callable[[PipelineEvent], None]

# Error raised when a collaborator fails with something other than a
# PipelineFailure.
_UNEXPECTED_FAILURES: dict[Stage, tuple[type[PipelineFailure], ErrorKind]] = {
    Stage.FETCHING: (FetchError, ErrorKind.UNREACHABLE),
    Stage.EXTRACTING: (ExtractionError, ErrorKind.EMPTY_CONTENT),
    Stage.SUMMARIZING: (SummarizationError, ErrorKind.UPSTREAM_UNAVAILABLE),
    Stage.TRANSLATING: (TranslationError, ErrorKind.UPSTREAM_UNAVAILABLE),
    Stage.PERSISTING: (PersistenceError, ErrorKind.SUMMARY_WRITE_FAILED),
}


class PipelineRun:
    """Mutable state of a single run; never shared between requests."""

    def __init__(self, request: ProcessingRequest, on_event: Optional[EventCallback] = None) -> None:
        self.request = request
        self.stage: Optional[Stage] = None
        self.failure: Optional[PipelineFailure] = None
        self.warnings: list[str] = []
        self._on_event = on_event

    def emit(self, stage: Stage, status: str, detail: Optional[str] = None) -> None:
        if self._on_event is not None:
            self._on_event(PipelineEvent(stage=stage, status=status, detail=detail))

    def enter(self, stage: Stage) -> None:
        if self.stage is not None and STAGE_ORDER.index(stage) <= STAGE_ORDER.index(self.stage):
            raise RuntimeError(f"Illegal transition {self.stage.value} -> {stage.value}")
        self.stage = stage
        logger.info("[%s] %s", stage.value, self.request.url)
        if stage is not Stage.DONE:
            self.emit(stage, "started")

    def fail(self, failure: PipelineFailure) -> None:
        self.failure = failure
        logger.error(
            "[failed] %s at %s: %s (%s)",
            self.request.url, failure.stage, failure.message, failure.kind.value,
        )
        self.emit(self.stage or Stage.FAILED, "failed", failure.message)
        self.stage = Stage.FAILED


class BlogPipeline:
    """Sequences fetch → extract → summarise → translate → persist.

    Each stage collaborator can be swapped out (tests, alternative
    providers); the defaults call the real implementations with *config*.
    """

    def __init__(
        self,
        persistence: PersistenceCoordinator,
        *,
        fetcher: Optional[Callable[[str], Awaitable[RawPage]]] = None,
        extractor: Optional[Callable[[RawPage], Article]] = None,
        summarizer: Optional[Callable[[Article], Awaitable[str]]] = None,
        translator: Optional[Callable[[str], Awaitable[str]]] = None,
        config: Settings = settings,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.persistence = persistence
        self.config = config
        self.fetcher = fetcher or (lambda url: fetch_html(url, config=config))
        self.extractor = extractor or (lambda raw: extract_article(raw, config.min_content_chars))
        self.summarizer = summarizer or (lambda article: summarize(article, config=config))
        self.translator = translator or (lambda text: translate(text, config=config))
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process(self, url: str, on_event: Optional[EventCallback] = None) -> PipelineResult:
        """Run the full pipeline for *url*.

        Args:
            url: Absolute ``http``/``https`` URL of the blog post.
            on_event: Optional callback receiving a :class:`PipelineEvent`
                on every stage transition, retry and warning.

        Returns:
            A :class:`PipelineResult` holding the finished blog and any
            non-fatal warnings.

        Raises:
            InvalidRequestError: If *url* is not an absolute http(s) URL.
            PipelineFailure: The typed failure of whichever stage failed,
                or ``PipelineError{DeadlineExceeded}``.
        """
        request = ProcessingRequest.parse(url)
        run = PipelineRun(request, on_event)
        deadline = self.config.pipeline_deadline
        started = time.monotonic()

        try:
            result = await asyncio.wait_for(self._run(run), timeout=deadline)
        except asyncio.TimeoutError:
            active = run.stage or Stage.FETCHING
            failure = PipelineError(
                ErrorKind.DEADLINE_EXCEEDED,
                f"Processing took longer than {deadline:g}s (stopped while {active.value})",
                stage=active.value,
            )
            run.fail(failure)
            raise failure from None

        logger.info(
            "[done] %s in %.2fs (%d words, %d warnings)",
            request.url, time.monotonic() - started,
            result.blog.word_count, len(result.warnings),
        )
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run(self, run: PipelineRun) -> PipelineResult:
        url = run.request.url

        raw: RawPage = await self._stage(run, Stage.FETCHING, lambda: self.fetcher(url), retry=True)
        article: Article = await self._stage(
            run, Stage.EXTRACTING, lambda: self.extractor(raw), offload=True
        )
        metrics = compute_metrics(article.body, self.config.words_per_minute)

        summary: str = await self._stage(
            run, Stage.SUMMARIZING, lambda: self.summarizer(article), retry=True
        )
        urdu_summary: str = await self._stage(
            run, Stage.TRANSLATING, lambda: self.translator(summary), retry=True
        )

        blog = ProcessedBlog(
            url=url,
            title=article.title,
            content=article.body,
            summary=summary,
            urdu_summary=urdu_summary,
            word_count=metrics.word_count,
            read_time=metrics.read_time,
        )

        outcome = await self._stage(run, Stage.PERSISTING, lambda: self.persistence.persist(blog))
        for warning in outcome.warnings:
            run.warnings.append(warning)
            run.emit(Stage.PERSISTING, "warning", warning)

        run.enter(Stage.DONE)
        return PipelineResult(
            blog=blog,
            warnings=list(run.warnings),
            summary_written=outcome.summary_written,
            full_text_written=outcome.full_text_written,
        )

    async def _stage(
        self,
        run: PipelineRun,
        stage: Stage,
        call: Callable[[], Any],
        retry: bool = False,
        offload: bool = False,
    ) -> Any:
        """Run one stage, applying the single-retry rule when *retry* is set.

        With *offload* the call runs in a worker thread, so blocking work
        (HTML parsing) neither stalls the event loop nor outlives the
        deadline.
        """
        run.enter(stage)
        attempts = 0
        while True:
            attempts += 1
            try:
                result = await asyncio.to_thread(call) if offload else call()
                if inspect.isawaitable(result):
                    result = await result
            except PipelineFailure as exc:
                exc.stage = stage.value
                if retry and exc.transient and attempts == 1:
                    logger.warning(
                        "[%s] %s failed with %s, retrying in %.2fs",
                        stage.value, run.request.url, exc.kind.value, self.config.retry_backoff,
                    )
                    run.emit(stage, "retrying", exc.message)
                    await self._sleep(self.config.retry_backoff)
                    continue
                run.fail(exc)
                raise
            except Exception as exc:
                error_cls, kind = _UNEXPECTED_FAILURES[stage]
                failure = error_cls(kind, f"Unexpected {stage.value} error: {exc}", stage=stage.value)
                run.fail(failure)
                raise failure from exc
            run.emit(stage, "completed")
            return result
