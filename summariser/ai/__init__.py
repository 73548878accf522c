"""AI stages: English summary and Urdu translation via a chat model."""

from summariser.ai.summarizer import summarize
from summariser.ai.translator import translate

__all__ = ["summarize", "translate"]
