# ABOUTME: MediaWiki access layer: HTTP client, envelope decoding, and content transforms
# ABOUTME: Raw API replies → typed envelopes → markdown, links, and infobox fields

"""
Wiki Layer: Talk to MediaWiki installations and normalize what they return

This layer handles:
- API endpoint discovery and per-wiki rate limiting
- Decoding of the query/parse/compare/error reply envelopes
- HTML to markdown conversion and link extraction
- Infobox parsing from raw wikitext

Data Flow: MediaWiki API → Typed envelopes and cleaned text → core/ assembly
"""

from .client import MediaWikiClient
from .errors import (
    EndpointDiscoveryError,
    ErrorResponse,
    MarkdownConversionError,
    SectionNotFoundError,
    WikiAPIError,
    WikiError,
    WikiResponseError,
    WikiTransportError,
    to_error_response,
)
from .infobox import extract_infobox
from .markdown import count_words, extract_links, extract_preview, html_to_markdown
from .ratelimit import TokenBucket

__all__ = [
    "MediaWikiClient",
    "TokenBucket",
    "WikiError",
    "WikiTransportError",
    "EndpointDiscoveryError",
    "WikiAPIError",
    "WikiResponseError",
    "MarkdownConversionError",
    "SectionNotFoundError",
    "ErrorResponse",
    "to_error_response",
    "html_to_markdown",
    "extract_links",
    "count_words",
    "extract_preview",
    "extract_infobox",
]
