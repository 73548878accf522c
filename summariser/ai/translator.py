"""Translation of the English summary into the target language (Urdu)."""

from __future__ import annotations

import re
from typing import Any, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from summariser.ai.llm import get_llm, message_text
from summariser.config import Settings, settings
from summariser.errors import ErrorKind, TranslationError

LANGUAGE_NAMES = {
    "ur": "Urdu",
    "ar": "Arabic",
    "fa": "Persian",
    "hi": "Hindi",
    "en": "English",
}

# Languages written in Arabic script; a reply with no such characters is
# not a translation.
_ARABIC_SCRIPT_LANGUAGES = {"ur", "ar", "fa"}
_ARABIC_SCRIPT = re.compile(r"[\u0600-\u06FF\u0750-\u077F\uFB50-\uFDFF\uFE70-\uFEFF]")


def _system_prompt(language: str) -> str:
    return (
        f"You are a professional translator. Translate the user's text into "
        f"{language}. Preserve the meaning and tone, use natural {language} "
        f"phrasing, and reply with the translation only."
    )


async def translate(
    text: str,
    *,
    target_language: Optional[str] = None,
    llm: Optional[Any] = None,
    config: Settings = settings,
) -> str:
    """Translate *text* into *target_language* (``settings.translation_target_language``).

    Raises:
        TranslationError: ``UpstreamUnavailable`` for any model call
            failure; ``InvalidResponse`` for an empty reply or one not in
            the target script.
    """
    code = (target_language or config.translation_target_language).lower()
    language = LANGUAGE_NAMES.get(code, code)
    model = llm if llm is not None else get_llm(config)

    messages = [SystemMessage(content=_system_prompt(language)), HumanMessage(content=text)]
    try:
        reply = await model.ainvoke(messages)
    except Exception as exc:
        raise TranslationError(
            ErrorKind.UPSTREAM_UNAVAILABLE, f"Translation model call failed: {exc}"
        ) from exc

    translated = message_text(reply)
    if not translated:
        raise TranslationError(ErrorKind.INVALID_RESPONSE, "Translation model returned no text")
    if code in _ARABIC_SCRIPT_LANGUAGES and not _ARABIC_SCRIPT.search(translated):
        raise TranslationError(
            ErrorKind.INVALID_RESPONSE,
            f"Translation reply is not written in {language} script",
        )
    return translated
