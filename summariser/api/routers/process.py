"""Blog processing endpoints.

Routes
------
POST /api/process-blog          Body: {"url": "https://..."}   → ProcessedBlog JSON
POST /api/process-blog/stream   Body: {"url": "https://..."}   → SSE progress + result

SSE event format
----------------
Each event is a JSON-encoded object on the ``data:`` line::

    data: {"event": "stage", "stage": "fetching", "status": "started", "detail": null}

    data: {"event": "result", "url": "...", "title": "...", ..., "warnings": []}

    data: {"event": "error", "error": "...", "stage": "fetching", "kind": "HttpStatus", "status": 422}
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from summariser.api.errors import status_for
from summariser.errors import PipelineFailure
from summariser.pipeline import BlogPipeline, PipelineEvent, ProcessingRequest

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ProcessBlogRequest(BaseModel):
    url: str


class ProcessedBlogResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    url: str
    title: str
    content: str
    summary: str
    urdu_summary: str
    word_count: int
    read_time: int
    warnings: list[str] = []


# ---------------------------------------------------------------------------
# SSE helpers
# ---------------------------------------------------------------------------

def _sse(payload: dict[str, Any]) -> str:
    """Format a payload dict as a single SSE ``data:`` line."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


async def _process_sse_generator(pipeline: BlogPipeline, url: str) -> AsyncIterator[str]:
    """Yield SSE frames for one pipeline run, ending with ``result`` or ``error``."""
    queue: asyncio.Queue[Optional[str]] = asyncio.Queue()

    def _on_event(event: PipelineEvent) -> None:
        queue.put_nowait(_sse({"event": "stage", **event.to_dict()}))

    async def _runner() -> None:
        try:
            result = await pipeline.process(url, on_event=_on_event)
            queue.put_nowait(_sse({"event": "result", **result.to_dict()}))
        except PipelineFailure as exc:
            queue.put_nowait(_sse({"event": "error", **exc.to_dict(), "status": status_for(exc)}))
        finally:
            queue.put_nowait(None)  # sentinel

    task = asyncio.create_task(_runner())
    try:
        while True:
            item = await queue.get()
            if item is None:
                break
            yield item
    finally:
        # Client went away mid-run: stop the pipeline and release its connections.
        if not task.done():
            task.cancel()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/process-blog", response_model=ProcessedBlogResponse)
async def process_blog(body: ProcessBlogRequest, request: Request) -> dict[str, Any]:
    """Fetch, summarise, translate and store the blog post at ``url``.

    Returns the finished ``ProcessedBlog``.  ``warnings`` lists non-fatal
    problems, e.g. the full text could not be stored.  Failures are turned
    into ``{"error", "stage", "kind"}`` responses by the app's exception
    handlers.
    """
    pipeline: BlogPipeline = request.app.state.pipeline
    result = await pipeline.process(body.url)
    return result.to_dict()


@router.post("/process-blog/stream")
async def process_blog_stream(body: ProcessBlogRequest, request: Request) -> StreamingResponse:
    """Same as ``/process-blog`` but streams stage progress as SSE.

    The URL is validated up front so a bad URL still gets a plain ``400``.
    """
    ProcessingRequest.parse(body.url)
    pipeline: BlogPipeline = request.app.state.pipeline
    return StreamingResponse(
        _process_sse_generator(pipeline, body.url),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
