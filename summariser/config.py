"""Centralised settings for the blog summariser backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / local storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("SUMMARISER_WORKSPACE", Path.home() / ".blog_summariser")
        )
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the local SQLite database file."""
        return self.workspace_dir / "summaries.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # Fetcher
    # ------------------------------------------------------------------
    fetch_timeout: float = field(
        default_factory=lambda: float(os.environ.get("FETCH_TIMEOUT", "10.0"))
    )
    fetch_max_bytes: int = field(
        default_factory=lambda: int(os.environ.get("FETCH_MAX_BYTES", str(5 * 1024 * 1024)))
    )
    fetch_max_redirects: int = field(
        default_factory=lambda: int(os.environ.get("FETCH_MAX_REDIRECTS", "5"))
    )

    # ------------------------------------------------------------------
    # Extraction / metrics
    # ------------------------------------------------------------------
    min_content_chars: int = field(
        default_factory=lambda: int(os.environ.get("MIN_CONTENT_CHARS", "50"))
    )
    words_per_minute: int = field(
        default_factory=lambda: int(os.environ.get("WORDS_PER_MINUTE", "200"))
    )

    # ------------------------------------------------------------------
    # Chat model (summary + translation)
    # ------------------------------------------------------------------
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "ollama")
    )
    ollama_base_url: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
    )
    ollama_chat_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_CHAT_MODEL", "ministral-3:8b")
    )
    openai_chat_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CHAT_MODEL", "gpt-4o-mini")
    )
    summary_max_input_chars: int = field(
        default_factory=lambda: int(os.environ.get("SUMMARY_MAX_INPUT_CHARS", "8000"))
    )
    translation_target_language: str = field(
        default_factory=lambda: os.environ.get("TRANSLATION_TARGET_LANGUAGE", "ur")
    )

    # ------------------------------------------------------------------
    # Orchestrator
    # ------------------------------------------------------------------
    retry_backoff: float = field(
        default_factory=lambda: float(os.environ.get("RETRY_BACKOFF", "0.5"))
    )
    pipeline_deadline: float = field(
        default_factory=lambda: float(os.environ.get("PIPELINE_DEADLINE", "30.0"))
    )

    # ------------------------------------------------------------------
    # Summary store (Supabase in production, SQLite locally)
    # ------------------------------------------------------------------
    summary_store: str = field(
        default_factory=lambda: os.environ.get("SUMMARY_STORE", "sqlite")
    )
    supabase_url: str = field(
        default_factory=lambda: os.environ.get("SUPABASE_URL", "")
    )
    supabase_key: str = field(
        default_factory=lambda: os.environ.get("SUPABASE_KEY", "")
    )
    supabase_table: str = field(
        default_factory=lambda: os.environ.get("SUPABASE_TABLE", "blog_summaries")
    )

    # ------------------------------------------------------------------
    # Full-text store (MongoDB in production, SQLite locally)
    # ------------------------------------------------------------------
    fulltext_store: str = field(
        default_factory=lambda: os.environ.get("FULLTEXT_STORE", "sqlite")
    )
    mongodb_uri: str = field(
        default_factory=lambda: os.environ.get("MONGODB_URI", "mongodb://localhost:27017")
    )
    mongodb_database: str = field(
        default_factory=lambda: os.environ.get("MONGODB_DATABASE", "blog_summariser")
    )
    mongodb_collection: str = field(
        default_factory=lambda: os.environ.get("MONGODB_COLLECTION", "full_texts")
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton, import this everywhere:
#   from summariser.config import settings
settings = Settings()
