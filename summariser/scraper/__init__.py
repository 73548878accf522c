"""Scraper package — web fetch, content extraction and text metrics."""

from summariser.scraper.extractor import extract_article
from summariser.scraper.fetcher import fetch_html
from summariser.scraper.metrics import compute_metrics
from summariser.scraper.models import Article, Metrics, RawPage

__all__ = ["fetch_html", "extract_article", "compute_metrics", "RawPage", "Article", "Metrics"]
