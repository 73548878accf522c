"""Content extraction: turns a :class:`RawPage` into an :class:`Article`."""

from __future__ import annotations

import html as html_lib
import re
from typing import Optional

import trafilatura
from bs4 import BeautifulSoup

from summariser.config import settings
from summariser.errors import ErrorKind, ExtractionError
from summariser.scraper.models import Article, RawPage


_BOILERPLATE_TAGS = [
    "script", "style", "nav", "footer", "header", "aside",
    "form", "noscript", "iframe", "svg",
]

# Matched against an element's id and class names.
_BOILERPLATE_MARKERS = re.compile(
    r"\b(ad|ads|advert\w*|banner|sponsor\w*|promo\w*|cookie\w*|sidebar|"
    r"share|social|comments?|newsletter|popup|related)\b",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _extract_title(html: str) -> str:
    """Return the text content of the first ``<title>`` tag, or empty string."""
    match = re.search(r"<title[^>]*>([^<]+)</title>", html, re.IGNORECASE)
    if match:
        return " ".join(html_lib.unescape(match.group(1)).split())
    return ""


def _fallback_title(soup: BeautifulSoup) -> str:
    """``og:title`` meta, else the most prominent heading on the page."""
    og = soup.find("meta", attrs={"property": "og:title"})
    if og is not None and og.get("content"):
        return " ".join(og["content"].split())
    for level in ("h1", "h2", "h3"):
        heading = soup.find(level)
        if heading is not None:
            text = heading.get_text(separator=" ", strip=True)
            if text:
                return " ".join(text.split())
    return ""


def _normalise_whitespace(text: str) -> str:
    """Collapse runs of whitespace within lines and drop blank lines.

    Paragraphs are re-joined with a single blank line between them.
    """
    paragraphs = (" ".join(line.split()) for line in text.splitlines())
    return "\n\n".join(p for p in paragraphs if p)


def _strip_boilerplate(soup: BeautifulSoup) -> None:
    for tag in soup(_BOILERPLATE_TAGS):
        tag.decompose()
    for tag in soup.find_all(True):
        if tag.decomposed or tag.name in ("html", "body", "main", "article"):
            continue
        marker = " ".join([tag.get("id") or "", *(tag.get("class") or [])])
        if marker.strip() and _BOILERPLATE_MARKERS.search(marker):
            tag.decompose()


def _bs4_fallback(soup: BeautifulSoup) -> str:
    """Extract readable text using ``<main>``/``<article>`` heuristics."""
    _strip_boilerplate(soup)
    container = soup.find("main") or soup.find("article") or soup.body or soup
    return container.get_text(separator="\n", strip=True)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_article(raw: RawPage, min_chars: Optional[int] = None) -> Article:
    """Extract the title and clean body text from *raw*.

    Tries ``trafilatura`` first.  Falls back to a BeautifulSoup heuristic
    when trafilatura returns nothing usable (e.g., minimal or unusual
    markup).  Pure: no I/O, same input always gives the same article.

    Raises:
        ExtractionError: ``EmptyContent`` when the cleaned body is shorter
            than *min_chars* (``settings.min_content_chars`` by default).
    """
    if min_chars is None:
        min_chars = settings.min_content_chars

    text: Optional[str] = trafilatura.extract(
        raw.html,
        include_links=False,
        include_images=False,
        include_tables=True,
        include_comments=False,
        no_fallback=False,
        url=raw.final_url or raw.url,
    )
    body = _normalise_whitespace(text or "")

    soup = BeautifulSoup(raw.html, "html.parser")
    title = _extract_title(raw.html) or _fallback_title(soup)

    if len(body) < min_chars:
        body = _normalise_whitespace(_bs4_fallback(soup))

    if len(body) < min_chars:
        raise ExtractionError(
            ErrorKind.EMPTY_CONTENT,
            f"No readable article content found at {raw.url} "
            f"({len(body)} characters, need {min_chars})",
        )

    return Article(url=raw.url, title=title or raw.url, body=body)
