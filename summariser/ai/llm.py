"""Shared chat-model plumbing for the summary and translation stages.

Chat providers
--------------
``ollama`` (default)
    Local Ollama server.  Configure via ``OLLAMA_BASE_URL`` and
    ``OLLAMA_CHAT_MODEL``.

``openai``
    OpenAI chat completions.  Requires ``OPENAI_API_KEY`` to be set.
    Configure via ``OPENAI_CHAT_MODEL``.

Set ``LLM_PROVIDER=openai`` in your ``.env`` to switch providers.
"""

from __future__ import annotations

from typing import Any, Optional

from summariser.config import Settings, settings
from summariser.errors import ErrorKind


def get_llm(config: Settings = settings) -> Any:
    """Return a configured LangChain chat model based on *config*."""
    if config.llm_provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(model=config.openai_chat_model, temperature=0)

    from langchain_ollama import ChatOllama

    return ChatOllama(
        model=config.ollama_chat_model,
        base_url=config.ollama_base_url,
        temperature=0,
    )


def message_text(message: Any) -> str:
    """Return the plain text of a chat-model reply.

    ``content`` may be a string or a list of content parts depending on the
    provider.
    """
    content = message.content if hasattr(message, "content") else message
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        content = "".join(parts)
    return str(content or "").strip()


def _status_code(exc: BaseException) -> Optional[int]:
    for attr in ("status_code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def classify_upstream_error(exc: BaseException) -> ErrorKind:
    """Map a provider exception onto ``RateLimited`` or ``UpstreamUnavailable``.

    Provider SDKs (openai, ollama, httpx) raise unrelated exception classes,
    so this looks at the HTTP status and the class name rather than types.
    """
    status = _status_code(exc)
    if status == 429 or "ratelimit" in type(exc).__name__.lower():
        return ErrorKind.RATE_LIMITED
    # Connection failures, timeouts, 5xx and anything else the provider
    # raises all mean no usable answer came back.
    return ErrorKind.UPSTREAM_UNAVAILABLE


def truncate_at_word(text: str, max_chars: int) -> str:
    """Cut *text* to at most *max_chars* without splitting a word.

    Falls back to a hard cut only when the first word alone is longer than
    the limit.
    """
    if len(text) <= max_chars:
        return text
    cut = text[: max_chars + 1]
    boundary = max(cut.rfind(" "), cut.rfind("\n"), cut.rfind("\t"))
    if boundary <= 0:
        return text[:max_chars]
    return cut[:boundary].rstrip()
