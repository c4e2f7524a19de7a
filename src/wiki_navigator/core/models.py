# ABOUTME: Public response entities returned by the content operations
# ABOUTME: Section trees, outlines, search/category/backlink listings and revision comparisons

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

LEAD_SECTION_TITLE = "Lead"


class Section(BaseModel):
    """A heading-delimited part of a page; index 0 is the synthetic lead."""

    index: int = Field(description="Table-of-contents index, stable only until the page is edited")
    title: str = Field(description="Heading text")
    level: int = Field(ge=1, description="Nesting depth; 1 for the lead and top-level sections")
    preview: str | None = Field(default=None, description="First words of the section, when known")
    content: str | None = Field(default=None, description="Full markdown content, when fetched")
    links: list[str] | None = Field(default=None, description="Titles linked from the section")
    word_count: int = Field(default=0, ge=0)
    subsections: list[Section] = Field(default_factory=list)


class SectionRef(BaseModel):
    """Index and title of a neighbouring section."""

    index: int
    title: str


class AdjacentSections(BaseModel):
    previous: SectionRef | None = None
    next: SectionRef | None = None


class PageOutline(BaseModel):
    """Page structure without full section content."""

    title: str
    exists: bool = True
    summary: str = Field(default="", description="First ~100 words of the lead")
    summary_links: list[str] = Field(default_factory=list)
    infobox: dict[str, str] | None = None
    sections: list[Section] = Field(default_factory=list, description="Top-level sections, lead first")
    categories: list[str] = Field(default_factory=list, description="Category names without the namespace prefix")
    see_also: list[str] = Field(default_factory=list, description="Related links, heuristically chosen")
    total_word_count: int = 0


class PageSection(BaseModel):
    title: str
    section: Section
    parent_section: SectionRef | None = None
    adjacent: AdjacentSections = Field(default_factory=AdjacentSections)


class PageFull(BaseModel):
    title: str
    content: str
    links: list[str] = Field(default_factory=list)
    word_count: int = 0
    warning: str | None = None


class WikiInfo(BaseModel):
    name: str
    base_url: str
    main_page: str = ""
    language: str = ""
    article_count: int = 0
    namespaces: dict[str, str] = Field(default_factory=dict, description="Namespace id to localized name")


class SearchResult(BaseModel):
    title: str
    snippet: str = Field(default="", description="Markdown rendering of the highlighted snippet")
    snippet_links: list[str] = Field(default_factory=list)
    word_count: int = 0


class SearchResponse(BaseModel):
    results: list[SearchResult] = Field(default_factory=list)
    total_hits: int = 0
    suggestion: str | None = None


class CategoryMember(BaseModel):
    title: str
    type: str = Field(default="page", description='"page" or "subcat"')


class CategoryResponse(BaseModel):
    category: str = Field(description="Category name without the namespace prefix")
    members: list[CategoryMember] = Field(default_factory=list)
    parent_categories: list[str] = Field(default_factory=list)
    total_members: int = 0


class Backlink(BaseModel):
    title: str


class BacklinksResponse(BaseModel):
    title: str
    backlinks: list[Backlink] = Field(default_factory=list)
    total_count: int = 0


class RevisionInfo(BaseModel):
    id: int = 0
    timestamp: str | None = None
    user: str = ""
    comment: str = ""


class CompareResponse(BaseModel):
    title: str
    from_revision: RevisionInfo = Field(alias="from", default_factory=RevisionInfo)
    to_revision: RevisionInfo = Field(alias="to", default_factory=RevisionInfo)
    diff_summary: str = ""
    diff_markdown: str = ""

    model_config = ConfigDict(populate_by_name=True)
