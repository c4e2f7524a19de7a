# ABOUTME: Content assembly layer and public response models
# ABOUTME: Typed wiki replies → section trees, outlines and listings served to callers

"""
Core Layer: Page-level operations over one or many wikis

This layer handles:
- Public response models (outlines, sections, listings, comparisons)
- Section tree construction and lookup
- Cache-first assembly of every content operation

Data Flow: wiki/ client and transforms → Assembled models → Cache → Callers
"""

from .models import (
    AdjacentSections,
    Backlink,
    BacklinksResponse,
    CategoryMember,
    CategoryResponse,
    CompareResponse,
    PageFull,
    PageOutline,
    PageSection,
    RevisionInfo,
    SearchResponse,
    SearchResult,
    Section,
    SectionRef,
    WikiInfo,
)

# Import service on-demand to avoid circular imports
# Use: from wiki_navigator.core.service import WikiContentService

__all__ = [
    "AdjacentSections",
    "Backlink",
    "BacklinksResponse",
    "CategoryMember",
    "CategoryResponse",
    "CompareResponse",
    "PageFull",
    "PageOutline",
    "PageSection",
    "RevisionInfo",
    "SearchResponse",
    "SearchResult",
    "Section",
    "SectionRef",
    "WikiInfo",
]
