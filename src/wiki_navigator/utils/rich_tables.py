# ABOUTME: Rich table builders for displaying wiki responses in the terminal
# ABOUTME: Provides pre-configured tables for site info, outlines, listings and logging status

from typing import Any

from rich.box import ROUNDED, SIMPLE
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from wiki_navigator.core.models import (
    BacklinksResponse,
    CategoryResponse,
    CompareResponse,
    PageOutline,
    SearchResponse,
    Section,
    WikiInfo,
)


def create_key_value_table(
    title: str,
    data: dict[str, str],
    title_style: str = "bold cyan",
    key_style: str = "bold blue",
    value_style: str = "green",
    box_style=ROUNDED,
) -> Table:
    """Create a two-column field/value table.

    Args:
        title: Table title
        data: Dictionary of key-value pairs to display
        title_style: Style for the table title
        key_style: Style for the key column
        value_style: Style for the value column
        box_style: Border style for the table

    Returns:
        Formatted Rich table ready for printing
    """
    table = Table(
        title=f"[{title_style}]{title}[/{title_style}]",
        box=box_style,
        show_header=True,
        header_style="bold magenta",
        border_style="cyan",
        title_justify="left",
        expand=False,
    )

    table.add_column("Field", style=key_style, no_wrap=False)
    table.add_column("Value", style=value_style, no_wrap=False)

    for key, value in data.items():
        table.add_row(key, escape(str(value)))

    return table


def create_multi_column_table(
    title: str,
    columns: list[tuple[str, str]],
    rows: list[list[str]],
    title_style: str = "bold cyan",
    header_style: str = "bold magenta",
    alternate_row_styles: list[str] | None = None,
    box_style=ROUNDED,
) -> Table:
    """Create a multi-column table with zebra striping.

    Args:
        title: Table title
        columns: List of (column_name, column_style) tuples
        rows: List of row data
        title_style: Style for the table title
        header_style: Style for column headers
        alternate_row_styles: Alternating row styles
        box_style: Border style for the table
    """
    table = Table(
        title=f"[{title_style}]{title}[/{title_style}]",
        box=box_style,
        show_header=True,
        header_style=header_style,
        border_style="cyan",
        title_justify="left",
        row_styles=alternate_row_styles or ["", "dim"],
        expand=True,
    )

    for name, style in columns:
        table.add_column(name, style=style)

    for row in rows:
        table.add_row(*(escape(cell) for cell in row))

    return table


def create_wiki_info_table(info: WikiInfo) -> Table:
    data = {
        "🌐 Name": info.name,
        "🔗 Base URL": info.base_url,
        "🏠 Main Page": info.main_page or "Unknown",
        "🗣️ Language": info.language or "Unknown",
        "📚 Articles": f"{info.article_count:,}",
        "🗂️ Namespaces": str(len(info.namespaces)),
    }
    return create_key_value_table(title="Wiki Information", data=data, key_style="cyan", value_style="white")


def create_search_table(query: str, response: SearchResponse) -> Table:
    rows = [
        [str(i), result.title, f"{result.word_count:,}", result.snippet]
        for i, result in enumerate(response.results, 1)
    ]
    title = f"🔎 Search: {escape(query)} ({response.total_hits} results)"
    if response.suggestion:
        title += f" · did you mean '{escape(response.suggestion)}'?"
    return create_multi_column_table(
        title=title,
        columns=[("#", "dim"), ("Title", "bold blue"), ("Words", "green"), ("Snippet", "white")],
        rows=rows,
    )


def _add_sections(node: Tree, sections: list[Section]) -> None:
    for section in sections:
        label = f"[bold]{section.index}[/bold] {escape(section.title)}"
        if section.word_count:
            label += f" [dim]({section.word_count} words)[/dim]"
        child = node.add(label)
        _add_sections(child, section.subsections)


def create_outline_tree(outline: PageOutline) -> Tree:
    """Render the section hierarchy of an outline as a tree."""
    tree = Tree(f"[bold cyan]📄 {escape(outline.title)}[/bold cyan] [dim]({outline.total_word_count:,} words)[/dim]")
    _add_sections(tree, outline.sections)
    return tree


def create_outline_summary_table(outline: PageOutline) -> Table:
    data = {
        "📝 Summary": outline.summary or "(empty)",
        "🏷️ Categories": ", ".join(outline.categories) or "None",
        "🔗 See Also": ", ".join(outline.see_also) or "None",
    }
    if outline.infobox:
        data.update({f"ℹ️ {escape(key)}": value for key, value in outline.infobox.items()})
    return create_key_value_table(
        title=f"Outline: {escape(outline.title)}", data=data, key_style="cyan", value_style="white", box_style=SIMPLE
    )


def create_category_table(response: CategoryResponse) -> Table:
    title = f"🗂️ Category: {escape(response.category)} ({response.total_members} members)"
    if response.parent_categories:
        title += f" · parents: {escape(', '.join(response.parent_categories))}"
    return create_multi_column_table(
        title=title,
        columns=[("Title", "bold blue"), ("Type", "green")],
        rows=[[member.title, member.type] for member in response.members],
    )


def create_backlinks_table(response: BacklinksResponse) -> Table:
    return create_multi_column_table(
        title=f"↩️ Pages linking to {escape(response.title)} ({response.total_count})",
        columns=[("Title", "bold blue")],
        rows=[[link.title] for link in response.backlinks],
    )


def create_revisions_table(response: CompareResponse) -> Table:
    data = {
        "📄 Page": response.title,
        "⬅️ From": f"{response.from_revision.id} by {response.from_revision.user or 'unknown'}",
        "➡️ To": f"{response.to_revision.id} by {response.to_revision.user or 'unknown'}",
        "📝 Summary": response.diff_summary,
    }
    return create_key_value_table(title="Revision Comparison", data=data, key_style="cyan", value_style="white")


def create_logging_status_table(status: dict[str, Any]) -> Table:
    """Create a logging configuration status table.

    Args:
        status: Logging status dictionary from ``get_logging_status``
    """
    logging_data = {
        "🔧 Mode": status["mode"].title(),
        "📁 Log Directory": status["log_directory"] or "N/A (production mode)",
        "🔇 Suppressed Libraries": ", ".join(status["third_party_suppressed"]),
    }

    if status["log_files"]["main"]:
        logging_data["📝 Main Log"] = status["log_files"]["main"]
    if status["log_files"]["json"]:
        logging_data["📊 JSON Log"] = status["log_files"]["json"]
    if status["log_files"]["errors"]:
        logging_data["🚨 Error Log"] = status["log_files"]["errors"]

    return create_key_value_table(
        title="🔍 Logging Configuration",
        data=logging_data,
        title_style="bold green",
        key_style="blue",
        value_style="white",
    )


def print_rich_table(console: Console, table: Table | Tree) -> None:
    """Print a rich renderable with blank lines around it."""
    console.print()
    console.print(table)
    console.print()
