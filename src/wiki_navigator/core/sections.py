# ABOUTME: Pure section-tree algorithms: build a tree from the flat table of contents, flatten, and locate
# ABOUTME: Tree construction assumes the depth-first pre-order that MediaWiki guarantees for prop=sections

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from wiki_navigator.core.models import LEAD_SECTION_TITLE, Section, SectionRef
from wiki_navigator.utils.logging import get_logger
from wiki_navigator.wiki.envelopes import TocEntry
from wiki_navigator.wiki.errors import SectionNotFoundError
from wiki_navigator.wiki.markdown import count_words, extract_preview, html_to_text

LEAD_PREVIEW_WORDS = 50

logger = get_logger(__name__)


def sections_from_toc(entries: Iterable[TocEntry]) -> list[Section]:
    """Convert table-of-contents rows to flat sections.

    Levels are shifted by one so the lead owns level 1. Rows whose index is not a plain
    integer (headings produced by transcluded templates, e.g. ``T-1``) cannot be fetched
    by index and are skipped.
    """
    sections = []
    for entry in entries:
        if not entry.index.isdigit():
            logger.debug("Skipping non-addressable section", index=entry.index, line=entry.line)
            continue
        sections.append(
            Section(
                index=int(entry.index),
                title=html_to_text(entry.line),
                level=entry.toclevel + 1,
            )
        )
    return sections


def nest_sections(flat: Iterable[Section]) -> list[Section]:
    """Build a section tree from a depth-first ordered flat list.

    Keeps a stack of open ancestors; each section pops until the top has a strictly
    lower level, then attaches to it (or becomes top-level when the stack is empty).
    Inputs are copied, not mutated.
    """
    roots: list[Section] = []
    stack: list[Section] = []

    for original in flat:
        section = original.model_copy(update={"subsections": []})
        while stack and stack[-1].level >= section.level:
            stack.pop()
        if stack:
            stack[-1].subsections.append(section)
        else:
            roots.append(section)
        stack.append(section)

    return roots


def build_section_tree(entries: Iterable[TocEntry], lead_markdown: str) -> list[Section]:
    """Top-level section list for an outline: the synthetic lead followed by the TOC tree.

    A page without any table-of-contents rows yields an empty list.
    """
    entries = list(entries)
    if not entries:
        return []

    lead = Section(
        index=0,
        title=LEAD_SECTION_TITLE,
        level=1,
        preview=extract_preview(lead_markdown, LEAD_PREVIEW_WORDS),
        word_count=count_words(lead_markdown),
    )
    return [lead, *nest_sections(sections_from_toc(entries))]


def iter_sections(sections: Iterable[Section]) -> Iterator[Section]:
    """Yield sections depth-first in document order."""
    for section in sections:
        yield section
        yield from iter_sections(section.subsections)


def flatten_sections(sections: Iterable[Section]) -> list[Section]:
    return list(iter_sections(sections))


def total_word_count(sections: Iterable[Section]) -> int:
    """Sum of word counts over every section and all of its descendants."""
    return sum(section.word_count for section in iter_sections(sections))


@dataclass(frozen=True)
class SectionLocation:
    """A section found in a flattened outline together with its neighbours."""

    section: Section
    parent: Section | None
    previous: Section | None
    next: Section | None


def locate_section(flat: list[Section], section_index: int) -> SectionLocation:
    """Find a section by index in a flattened outline.

    The parent is the nearest preceding section with a strictly lower level; previous and
    next are the direct neighbours in flattened order.

    Raises:
        SectionNotFoundError: If no section has the index, reporting how many exist
    """
    for position, section in enumerate(flat):
        if section.index != section_index:
            continue

        parent = next(
            (candidate for candidate in reversed(flat[:position]) if candidate.level < section.level),
            None,
        )
        return SectionLocation(
            section=section,
            parent=parent,
            previous=flat[position - 1] if position > 0 else None,
            next=flat[position + 1] if position + 1 < len(flat) else None,
        )

    raise SectionNotFoundError(section_index, len(flat))


def section_ref(section: Section | None) -> SectionRef | None:
    if section is None:
        return None
    return SectionRef(index=section.index, title=section.title)
