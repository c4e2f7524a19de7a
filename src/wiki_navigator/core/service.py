# ABOUTME: Content assembler composing the MediaWiki client, markdown converter and infobox extractor
# ABOUTME: Implements every page-level operation with cache-first lookup and namespaced cache keys

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel

from wiki_navigator.config import Config
from wiki_navigator.core.models import (
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
    WikiInfo,
)
from wiki_navigator.core.sections import build_section_tree, flatten_sections, locate_section, section_ref, total_word_count
from wiki_navigator.lib.cache import (
    TTLCache,
    backlinks_cache_key,
    category_cache_key,
    info_cache_key,
    outline_cache_key,
    page_cache_key,
    search_cache_key,
    section_cache_key,
)
from wiki_navigator.utils.logging import get_logger, with_async_operation_context, with_wiki_context
from wiki_navigator.wiki.client import MediaWikiClient
from wiki_navigator.wiki.envelopes import CompareResult, TitleRef
from wiki_navigator.wiki.errors import MarkdownConversionError, WikiError
from wiki_navigator.wiki.infobox import extract_infobox
from wiki_navigator.wiki.markdown import count_words, extract_links, extract_preview, html_to_markdown

CATEGORY_PREFIX = "Category:"
SUBCATEGORY_TYPE = "subcat"
PAGE_TYPE = "page"

SUMMARY_WORDS = 100
LARGE_PAGE_WORDS = 5000
SEE_ALSO_LIMIT = 10
PARENT_CATEGORY_LIMIT = 10
META_NAMESPACE_PREFIXES = ("Category:", "File:", "Wikipedia:", "Template:", "Help:")

RELATIVE_FROM_REVISIONS = {"prev", "current"}
RELATIVE_TO_REVISIONS = {"prev", "current", "next"}
DIFF_SUMMARY = "Changes between revisions"

M = TypeVar("M", bound=BaseModel)


def strip_category_prefix(name: str) -> str:
    return name.removeprefix(CATEGORY_PREFIX).replace("_", " ")


def see_also_links(links: list[TitleRef], limit: int = SEE_ALSO_LIMIT) -> list[str]:
    """Approximate related pages from a page's outgoing links.

    Skips meta namespaces and duplicates, and keeps the first ``limit`` titles. This does
    not read the literal "See also" heading.
    """
    related: list[str] = []
    seen: set[str] = set()
    for link in links:
        title = link.title
        if not title or title.startswith(META_NAMESPACE_PREFIXES) or title in seen:
            continue
        seen.add(title)
        related.append(title)
        if len(related) >= limit:
            break
    return related


class WikiContentService:
    """Page-level wiki operations backed by a shared client and TTL cache.

    Every operation takes the wiki base URL first, consults the cache, and on a miss
    assembles its result from one or more API calls before caching it. Concurrent misses
    for the same key may both fetch; the results are identical. Callers always receive
    their own copy, so mutating a result never changes what later cache hits return.

    Args:
        client: MediaWiki client owning endpoint discovery and rate limiting
        cache: Cache for assembled responses
        cache_ttl: Lifetime of page content entries in seconds
        cache_ttl_info: Lifetime of wiki metadata entries in seconds
        cache_ttl_search: Lifetime of search results in seconds
    """

    def __init__(
        self,
        client: MediaWikiClient,
        cache: TTLCache,
        cache_ttl: float = 300.0,
        cache_ttl_info: float = 3600.0,
        cache_ttl_search: float = 60.0,
    ):
        self.client = client
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.cache_ttl_info = cache_ttl_info
        self.cache_ttl_search = cache_ttl_search
        self.logger = get_logger(__name__)

    @classmethod
    def from_config(cls, config: Config, start_sweeper: bool = True) -> WikiContentService:
        """Build a service with a fresh client and cache from application settings.

        The cache sweeper needs a running event loop when ``start_sweeper`` is set.
        """
        client = MediaWikiClient(
            user_agent=config.user_agent,
            timeout=config.request_timeout,
            rate_limit=config.rate_limit,
        )
        cache = TTLCache(sweep_interval=config.cache_sweep_interval)
        if start_sweeper:
            cache.start_sweeper()
        return cls(
            client,
            cache,
            cache_ttl=config.cache_ttl,
            cache_ttl_info=config.cache_ttl_info,
            cache_ttl_search=config.cache_ttl_search,
        )

    async def close(self) -> None:
        await self.cache.stop_sweeper()
        await self.client.close()

    async def __aenter__(self) -> WikiContentService:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _cached(self, key: str) -> Any | None:
        value, found = self.cache.get(key)
        if found:
            self.logger.debug("Cache hit", cache_key=key)
            return value.model_copy(deep=True)
        self.logger.debug("Cache miss", cache_key=key)
        return None

    def _remember(self, key: str, value: M, ttl: float) -> M:
        self.cache.set(key, value.model_copy(deep=True), ttl)
        return value

    @with_async_operation_context("wiki_info")
    async def get_wiki_info(self, wiki_url: str) -> WikiInfo:
        """Site name, main page, language, article count and namespaces of a wiki."""
        key = info_cache_key(wiki_url)
        if (cached := self._cached(key)) is not None:
            return cached

        result = await self.client.query(
            wiki_url, {"meta": "siteinfo", "siprop": "general|namespaces|statistics"}
        )

        general = result.general
        info = WikiInfo(
            name=general.sitename if general else "",
            base_url=wiki_url,
            main_page=general.mainpage if general else "",
            language=general.lang if general else "",
            article_count=result.statistics.articles if result.statistics else 0,
            namespaces={str(ns.id): ns.name for ns in result.namespaces.values()},
        )

        return self._remember(key, info, self.cache_ttl_info)

    @with_async_operation_context("search")
    async def search(self, wiki_url: str, query: str, limit: int = 10) -> SearchResponse:
        """Full-text search; snippets are returned as markdown with their links."""
        key = search_cache_key(wiki_url, query, limit)
        if (cached := self._cached(key)) is not None:
            return cached

        result = await self.client.query(
            wiki_url,
            {"list": "search", "srsearch": query, "srlimit": limit, "srprop": "snippet|wordcount"},
        )

        results = [
            SearchResult(
                title=hit.title,
                snippet=self._markdown_or_raw(hit.snippet),
                snippet_links=extract_links(hit.snippet),
                word_count=hit.wordcount,
            )
            for hit in result.search
        ]
        suggestion = result.searchinfo.suggestion if result.searchinfo else ""
        response = SearchResponse(results=results, total_hits=len(results), suggestion=suggestion or None)

        return self._remember(key, response, self.cache_ttl_search)

    @with_async_operation_context("page_outline")
    async def get_page_outline(self, wiki_url: str, title: str) -> PageOutline:
        """Section tree, summary, categories, related links and infobox of a page.

        Needs three calls: the skeleton (sections, categories, links), the rendered lead,
        and the raw wikitext for the infobox. Only the infobox call may fail quietly.
        """
        key = outline_cache_key(wiki_url, title)
        if (cached := self._cached(key)) is not None:
            return cached

        with with_wiki_context(wiki_url, title=title) as log:
            skeleton = await self.client.parse(
                wiki_url, {"page": title, "prop": "sections|categories|links", "disableeditsection": 1}
            )
            lead = await self.client.parse(
                wiki_url, {"page": title, "prop": "text", "section": 0, "disableeditsection": 1}
            )

            lead_markdown = html_to_markdown(lead.text)
            sections = build_section_tree(skeleton.sections, lead_markdown)
            infobox = await self._fetch_infobox(wiki_url, title)

            outline = PageOutline(
                title=skeleton.title or title,
                exists=True,
                summary=extract_preview(lead_markdown, SUMMARY_WORDS),
                summary_links=extract_links(lead.text),
                infobox=infobox,
                sections=sections,
                categories=[strip_category_prefix(category.name) for category in skeleton.categories],
                see_also=see_also_links(skeleton.links),
                # Without a table of contents the lead is not a section but still counts
                total_word_count=total_word_count(sections) if sections else count_words(lead_markdown),
            )
            log.debug("Assembled page outline", sections=len(flatten_sections(sections)))

        return self._remember(key, outline, self.cache_ttl)

    async def _fetch_infobox(self, wiki_url: str, title: str) -> dict[str, str] | None:
        try:
            result = await self.client.query(
                wiki_url, {"titles": title, "prop": "revisions", "rvprop": "content", "rvslots": "main"}
            )
        except WikiError as e:
            self.logger.warning("Infobox lookup failed", wiki_url=wiki_url, title=title, error=str(e))
            return None

        for page in result.pages:
            if page.revisions:
                return extract_infobox(page.revisions[0].content)
        return None

    @with_async_operation_context("page_section")
    async def get_page_section(self, wiki_url: str, title: str, section_index: int) -> PageSection:
        """Full content of one section plus its parent and neighbours in the outline.

        Raises:
            SectionNotFoundError: If the outline has no section with this index
        """
        key = section_cache_key(wiki_url, title, section_index)
        if (cached := self._cached(key)) is not None:
            return cached

        outline = await self.get_page_outline(wiki_url, title)
        location = locate_section(flatten_sections(outline.sections), section_index)

        result = await self.client.parse(
            wiki_url,
            {"page": title, "section": section_index, "prop": "text|links", "disableeditsection": 1},
        )
        markdown = html_to_markdown(result.text)

        target = location.section
        section = Section(
            index=target.index,
            title=target.title,
            level=target.level,
            content=markdown,
            links=[link.title for link in result.links],
            word_count=count_words(markdown),
        )
        page_section = PageSection(
            title=title,
            section=section,
            parent_section=section_ref(location.parent),
            adjacent=AdjacentSections(previous=section_ref(location.previous), next=section_ref(location.next)),
        )

        return self._remember(key, page_section, self.cache_ttl)

    @with_async_operation_context("page_full")
    async def get_page_full(self, wiki_url: str, title: str) -> PageFull:
        """Whole page as markdown; large pages carry a warning suggesting targeted retrieval."""
        key = page_cache_key(wiki_url, title)
        if (cached := self._cached(key)) is not None:
            return cached

        result = await self.client.parse(
            wiki_url,
            {"page": title, "prop": "text|links", "disableeditsection": 1, "disabletoc": 1},
        )
        markdown = html_to_markdown(result.text)
        word_count = count_words(markdown)

        warning = None
        if word_count > LARGE_PAGE_WORDS:
            warning = (
                f"Large page ({word_count} words). Consider fetching the page outline and "
                "then individual sections for targeted retrieval."
            )

        page = PageFull(
            title=result.title or title,
            content=markdown,
            links=[link.title for link in result.links],
            word_count=word_count,
            warning=warning,
        )

        return self._remember(key, page, self.cache_ttl)

    @with_async_operation_context("category")
    async def get_category(self, wiki_url: str, category: str, limit: int = 50) -> CategoryResponse:
        """Members of a category; the name may be given with or without its prefix."""
        if not category.startswith(CATEGORY_PREFIX):
            category = CATEGORY_PREFIX + category

        key = category_cache_key(wiki_url, category, limit)
        if (cached := self._cached(key)) is not None:
            return cached

        result = await self.client.query(
            wiki_url,
            {"list": "categorymembers", "cmtitle": category, "cmlimit": limit, "cmprop": "title|type"},
        )
        members = [
            CategoryMember(
                title=member.title,
                type=SUBCATEGORY_TYPE if member.type == SUBCATEGORY_TYPE else PAGE_TYPE,
            )
            for member in result.categorymembers
        ]

        response = CategoryResponse(
            category=strip_category_prefix(category),
            members=members,
            parent_categories=await self._parent_categories(wiki_url, category),
            total_members=len(members),
        )

        return self._remember(key, response, self.cache_ttl)

    async def _parent_categories(self, wiki_url: str, category: str) -> list[str]:
        try:
            result = await self.client.query(
                wiki_url, {"titles": category, "prop": "categories", "cllimit": PARENT_CATEGORY_LIMIT}
            )
        except WikiError as e:
            self.logger.warning("Parent category lookup failed", wiki_url=wiki_url, category=category, error=str(e))
            return []

        return [strip_category_prefix(parent.name) for page in result.pages for parent in page.categories]

    @with_async_operation_context("backlinks")
    async def get_backlinks(self, wiki_url: str, title: str, limit: int = 50) -> BacklinksResponse:
        """Pages linking to ``title``."""
        key = backlinks_cache_key(wiki_url, title, limit)
        if (cached := self._cached(key)) is not None:
            return cached

        result = await self.client.query(wiki_url, {"list": "backlinks", "bltitle": title, "bllimit": limit})
        backlinks = [Backlink(title=link.title) for link in result.backlinks]
        response = BacklinksResponse(title=title, backlinks=backlinks, total_count=len(backlinks))

        return self._remember(key, response, self.cache_ttl)

    @with_async_operation_context("compare_revisions")
    async def compare_revisions(self, wiki_url: str, title: str, from_rev: str, to_rev: str) -> CompareResponse:
        """Diff between two revisions of a page rendered as markdown.

        ``from_rev`` may be a revision id, ``prev`` or ``current``; ``to_rev`` additionally
        accepts ``next``. Results are not cached.
        """
        params: dict[str, Any] = {"fromtitle": title, "prop": "diff|ids|timestamp|user|comment"}
        if from_rev in RELATIVE_FROM_REVISIONS:
            params["fromrelative"] = from_rev
        else:
            params["fromrev"] = from_rev
        if to_rev in RELATIVE_TO_REVISIONS:
            params["torelative"] = to_rev
        else:
            params["torev"] = to_rev

        result = await self.client.compare(wiki_url, params)
        return CompareResponse(
            title=title,
            from_revision=_revision_info(result, "from"),
            to_revision=_revision_info(result, "to"),
            diff_summary=DIFF_SUMMARY,
            diff_markdown=self._markdown_or_raw(result.body),
        )

    def _markdown_or_raw(self, html: str) -> str:
        try:
            return html_to_markdown(html)
        except MarkdownConversionError as e:
            self.logger.warning("Falling back to raw HTML", error=str(e))
            return html


def _revision_info(result: CompareResult, side: str) -> RevisionInfo:
    return RevisionInfo(
        id=getattr(result, f"{side}revid"),
        timestamp=getattr(result, f"{side}timestamp"),
        user=getattr(result, f"{side}user"),
        comment=getattr(result, f"{side}comment"),
    )
