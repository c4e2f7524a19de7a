# ABOUTME: Deterministic HTML to Markdown rendering tuned for MediaWiki parser output
# ABOUTME: Also extracts linked page titles from HTML and counts/previews words of rendered markdown

import re
from urllib.parse import parse_qs, unquote, urlsplit

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from bs4.element import Doctype

from wiki_navigator.wiki.errors import MarkdownConversionError

HEADING_TAGS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}
BLOCK_TAGS = {"p", "div", "section", "article", "figure", "figcaption", "center", "main", "header", "footer"}
DROPPED_TAGS = {"script", "style", "noscript", "link", "meta"}
STRONG_TAGS = {"b", "strong"}
EMPHASIS_TAGS = {"i", "em", "cite", "var"}

BULLET_MARKER = "-"
STRONG_DELIMITER = "**"
EMPHASIS_DELIMITER = "*"
CODE_FENCE = "```"
HORIZONTAL_RULE = "---"

EXCESS_NEWLINES = re.compile(r"\n{3,}")
WHITESPACE = re.compile(r"[ \t\r\n\f]+")
TRAILING_SPACES = re.compile(r"[ \t]+\n")
LEADING_SPACES = re.compile(r"(\n\n|^) +")
FENCED_BLOCK = re.compile(r"(```.*?```)", re.DOTALL)

# Patterns for reducing markdown to countable words
FENCED_CODE = re.compile(r"```.*?```", re.DOTALL)
INLINE_CODE = re.compile(r"`[^`\n]+`")
IMAGE = re.compile(r"!\[([^\]]*)\]\((?:[^()\s]|\([^()]*\))*\)")
LINK = re.compile(r"\[([^\]]+)\]\((?:[^()\s]|\([^()]*\))*\)")
EMPHASIS_MARKERS = re.compile(r"\*+|_{2,}")
HEADING_MARKERS = re.compile(r"^#+\s+", re.MULTILINE)

PREVIEW_ELLIPSIS = "..."


class MarkdownConverter:
    """Render MediaWiki HTML as compact Markdown.

    Output style is fixed: ATX headings, ``-`` bullets, fenced code blocks, ``**strong**``
    and ``*emphasis*``. Section edit links are dropped and reference superscripts become
    ``[n]``.
    """

    def convert(self, html: str) -> str:
        """Convert an HTML fragment to cleaned Markdown.

        Raises:
            MarkdownConversionError: If the HTML cannot be parsed or rendered
        """
        try:
            soup = BeautifulSoup(html, "html.parser")
            markdown = self._render_children(soup, list_depth=0)
        except (RecursionError, TypeError, ValueError) as e:
            raise MarkdownConversionError(f"convert to markdown: {e}") from e
        return cleanup_markdown(markdown)

    def _render_children(self, node: Tag, list_depth: int) -> str:
        return "".join(self._render(child, list_depth) for child in node.children)

    def _render(self, node, list_depth: int) -> str:
        if isinstance(node, (Comment, Doctype)):
            return ""
        if isinstance(node, NavigableString):
            return WHITESPACE.sub(" ", str(node))
        if not isinstance(node, Tag):
            return ""

        name = node.name
        classes = node.get("class") or []

        if name in DROPPED_TAGS:
            return ""
        if name == "span" and "mw-editsection" in classes:
            return ""
        if name == "sup" and "reference" in classes:
            number = node.get_text().strip().strip("[]")
            return f"[{number}]" if number else ""

        if name in HEADING_TAGS:
            text = self._render_children(node, list_depth).strip()
            return f"\n\n{'#' * HEADING_TAGS[name]} {text}\n\n" if text else ""
        if name in BLOCK_TAGS:
            text = self._render_children(node, list_depth).strip()
            return f"\n\n{text}\n\n" if text else ""
        if name == "br":
            return "\n"
        if name == "hr":
            return f"\n\n{HORIZONTAL_RULE}\n\n"
        if name == "pre":
            code = node.get_text().strip("\n")
            return f"\n\n{CODE_FENCE}\n{code}\n{CODE_FENCE}\n\n"
        if name == "code":
            text = node.get_text()
            return f"`{text}`" if text.strip() else text
        if name in STRONG_TAGS:
            return _wrap(self._render_children(node, list_depth), STRONG_DELIMITER)
        if name in EMPHASIS_TAGS:
            return _wrap(self._render_children(node, list_depth), EMPHASIS_DELIMITER)
        if name == "a":
            return self._render_link(node, list_depth)
        if name == "img":
            alt = node.get("alt", "").strip()
            src = node.get("src", "")
            return f"![{alt}]({src})" if src else ""
        if name in ("ul", "ol"):
            return self._render_list(node, list_depth)
        if name == "blockquote":
            text = self._render_children(node, list_depth).strip()
            quoted = "\n".join(f"> {line}" if line else ">" for line in cleanup_markdown(text).split("\n"))
            return f"\n\n{quoted}\n\n" if text else ""
        if name == "table":
            return self._render_table(node, list_depth)
        if name == "dt":
            return f"\n\n{_wrap(self._render_children(node, list_depth), STRONG_DELIMITER)}\n"
        if name == "dd":
            return f"\n{self._render_children(node, list_depth).strip()}\n"

        return self._render_children(node, list_depth)

    def _render_link(self, node: Tag, list_depth: int) -> str:
        text = self._render_children(node, list_depth)
        href = node.get("href")
        if not href or not text.strip():
            return text
        leading = text[: len(text) - len(text.lstrip())]
        trailing = text[len(text.rstrip()) :]
        return f"{leading}[{text.strip()}]({href}){trailing}"

    def _render_list(self, node: Tag, list_depth: int) -> str:
        ordered = node.name == "ol"
        indent = "  " * list_depth
        lines: list[str] = []
        number = 1
        for item in node.find_all("li", recursive=False):
            marker = f"{number}." if ordered else BULLET_MARKER
            number += 1
            body = cleanup_markdown(self._render_children(item, list_depth + 1))
            first, _, rest = body.partition("\n")
            lines.append(f"{indent}{marker} {first}".rstrip())
            for line in rest.split("\n") if rest else []:
                if not line.strip():
                    continue
                # Nested lists already carry their own indentation
                lines.append(line if line.startswith(indent + "  ") else f"{indent}  {line}")
        if not lines:
            return ""
        block = "\n".join(lines)
        return f"\n{block}\n" if list_depth else f"\n\n{block}\n\n"

    def _render_table(self, node: Tag, list_depth: int) -> str:
        rows: list[list[str]] = []
        for row in node.find_all("tr"):
            cells = row.find_all(["th", "td"], recursive=False)
            rendered = [
                WHITESPACE.sub(" ", self._render_children(cell, list_depth)).strip().replace("|", "\\|")
                for cell in cells
            ]
            if any(rendered):
                rows.append(rendered)
        if not rows:
            return ""

        width = max(len(row) for row in rows)
        rows = [row + [""] * (width - len(row)) for row in rows]
        lines = ["| " + " | ".join(rows[0]) + " |", "| " + " | ".join(["---"] * width) + " |"]
        lines.extend("| " + " | ".join(row) + " |" for row in rows[1:])
        return "\n\n" + "\n".join(lines) + "\n\n"


def _wrap(text: str, delimiter: str) -> str:
    """Wrap text in emphasis delimiters, keeping surrounding whitespace outside them."""
    inner = text.strip()
    if not inner:
        return text
    leading = text[: len(text) - len(text.lstrip())]
    trailing = text[len(text.rstrip()) :]
    return f"{leading}{delimiter}{inner}{delimiter}{trailing}"


def cleanup_markdown(markdown: str) -> str:
    """Drop stray spaces around breaks, collapse 3+ newlines to one blank line, and trim.

    Fenced code blocks are left untouched.
    """
    parts = FENCED_BLOCK.split(markdown)
    for i in range(0, len(parts), 2):
        part = TRAILING_SPACES.sub("\n", parts[i])
        part = LEADING_SPACES.sub(r"\1", part)
        parts[i] = EXCESS_NEWLINES.sub("\n\n", part)
    return "".join(parts).strip()


_default_converter = MarkdownConverter()


def html_to_markdown(html: str) -> str:
    """Convert MediaWiki HTML to Markdown with the shared converter."""
    return _default_converter.convert(html)


def html_to_text(html: str) -> str:
    """Plain text of an HTML fragment with whitespace collapsed."""
    return WHITESPACE.sub(" ", BeautifulSoup(html, "html.parser").get_text()).strip()


def title_from_href(href: str) -> str | None:
    """Resolve a MediaWiki href to a page title.

    Recognizes ``/wiki/<Title>`` paths and ``title=<Title>`` query parameters; anything
    else yields None.
    """
    if href.startswith("/wiki/"):
        raw = href[len("/wiki/") :].split("#", 1)[0].split("?", 1)[0]
        title = unquote(raw)
    else:
        values = parse_qs(urlsplit(href).query).get("title")
        if not values:
            return None
        title = values[0].split("#", 1)[0]

    title = title.replace("_", " ").strip()
    return title or None


def extract_links(html: str) -> list[str]:
    """Return linked page titles in order of first appearance, without duplicates."""
    soup = BeautifulSoup(html, "html.parser")
    links: list[str] = []
    seen: set[str] = set()

    for anchor in soup.find_all("a", href=True):
        title = title_from_href(anchor["href"])
        if title and title not in seen:
            seen.add(title)
            links.append(title)

    return links


def strip_markdown(text: str) -> str:
    """Reduce markdown to plain words: drop code, collapse links/images to their text, drop markers."""
    text = FENCED_CODE.sub(" ", text)
    text = INLINE_CODE.sub(" ", text)
    text = IMAGE.sub(r"\1", text)
    text = LINK.sub(r"\1", text)
    text = HEADING_MARKERS.sub("", text)
    text = EMPHASIS_MARKERS.sub("", text)
    return text


def count_words(text: str) -> int:
    """Count whitespace-delimited words after stripping markdown syntax."""
    return len(strip_markdown(text).split())


def extract_preview(markdown: str, max_words: int) -> str:
    """First ``max_words`` words of the stripped text, with an ellipsis only when truncated."""
    words = strip_markdown(markdown).split()
    if len(words) <= max_words:
        return " ".join(words)
    return " ".join(words[:max_words]) + PREVIEW_ELLIPSIS
