"""Word count and read-time estimation for extracted article text."""

from __future__ import annotations

import math

from summariser.scraper.models import Metrics

DEFAULT_WORDS_PER_MINUTE = 200


def count_words(text: str) -> int:
    """Number of whitespace-delimited tokens in *text*."""
    return len(text.split())


def compute_metrics(text: str, words_per_minute: int = DEFAULT_WORDS_PER_MINUTE) -> Metrics:
    """Return the word count and estimated read time (minutes) for *text*.

    ``read_time`` is ``ceil(word_count / words_per_minute)`` and never less
    than one minute, even for empty text.
    """
    if words_per_minute <= 0:
        words_per_minute = DEFAULT_WORDS_PER_MINUTE
    word_count = count_words(text)
    read_time = max(1, math.ceil(word_count / words_per_minute))
    return Metrics(word_count=word_count, read_time=read_time)
