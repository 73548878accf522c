"""Read access to stored records.

Routes
------
GET /api/blogs?url=<url>    Stored summary record and full-text document for a URL
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, HTTPException, Request

from summariser.db.persistence import PersistenceCoordinator

router = APIRouter()


@router.get("/blogs")
async def get_blog(url: str, request: Request) -> dict[str, Any]:
    """Return ``{"summary": {...}, "fullText": {...} | null}`` for *url*.

    ``fullText`` is ``null`` when the full-text write for that URL failed
    and has not been reconciled yet.
    """
    persistence: PersistenceCoordinator = request.app.state.pipeline.persistence
    summary, full_text = await asyncio.to_thread(persistence.lookup, url)
    if summary is None:
        raise HTTPException(status_code=404, detail=f"No processed blog for {url}")
    return {
        "summary": asdict(summary),
        "fullText": asdict(full_text) if full_text else None,
    }
