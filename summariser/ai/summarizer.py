"""English abstractive summary of an extracted article."""

from __future__ import annotations

import logging
from typing import Any, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from summariser.ai.llm import classify_upstream_error, get_llm, message_text, truncate_at_word
from summariser.config import Settings, settings
from summariser.errors import ErrorKind, SummarizationError
from summariser.scraper.models import Article

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are an editor who writes concise summaries of blog posts. "
    "Summarise the article the user provides in one paragraph of three to "
    "five sentences of plain English. Keep the author's main points and "
    "conclusions, add nothing that is not in the article, and reply with "
    "the summary only."
)


def build_messages(article: Article, max_chars: int) -> list[Any]:
    """Return the chat messages for summarising *article*.

    The body is cut at a word boundary to at most *max_chars* characters.
    """
    body = truncate_at_word(article.body, max_chars)
    return [
        SystemMessage(content=_SYSTEM_PROMPT),
        HumanMessage(content=f"Title: {article.title}\n\n{body}"),
    ]


async def summarize(
    article: Article,
    *,
    llm: Optional[Any] = None,
    config: Settings = settings,
) -> str:
    """Return an English summary of *article* from the configured chat model.

    Raises:
        SummarizationError: ``RateLimited`` or ``UpstreamUnavailable`` when
            the model call fails; ``InvalidResponse`` when the reply is
            empty or not shorter than the article body.
    """
    model = llm if llm is not None else get_llm(config)
    messages = build_messages(article, config.summary_max_input_chars)

    try:
        reply = await model.ainvoke(messages)
    except Exception as exc:
        kind = classify_upstream_error(exc)
        raise SummarizationError(kind, f"Summary model call failed: {exc}") from exc

    summary = message_text(reply)
    if not summary:
        raise SummarizationError(ErrorKind.INVALID_RESPONSE, "Summary model returned no text")
    if len(summary) >= len(article.body):
        raise SummarizationError(
            ErrorKind.INVALID_RESPONSE,
            f"Summary ({len(summary)} chars) is not shorter than the article "
            f"({len(article.body)} chars)",
        )

    logger.debug("Summarised %s into %d characters", article.url, len(summary))
    return summary
