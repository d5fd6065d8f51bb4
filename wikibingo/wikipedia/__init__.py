"""
Wikipedia interaction module.

Provides title normalization, the HTTP client, retry policy, redirect
resolution and article fetching.
"""

from wikibingo.wikipedia.articles import Article, ArticleFetcher, sanitize_html
from wikibingo.wikipedia.cache import BoundedCache
from wikibingo.wikipedia.client import WikiClient
from wikibingo.wikipedia.redirects import RedirectResolver, Resolution
from wikibingo.wikipedia.retry import RetryPolicy, retry_async, with_retry
from wikibingo.wikipedia.titles import normalize_title, title_to_url

__all__ = [
    "Article",
    "ArticleFetcher",
    "BoundedCache",
    "RedirectResolver",
    "Resolution",
    "RetryPolicy",
    "WikiClient",
    "normalize_title",
    "retry_async",
    "sanitize_html",
    "title_to_url",
    "with_retry",
]
