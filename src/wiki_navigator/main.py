# ABOUTME: Main CLI application entry point using asyncclick for native async support
# ABOUTME: Provides commands for wiki info, search, page outlines/sections, categories, backlinks and diffs

from collections.abc import Awaitable, Callable
from typing import TypeVar

import asyncclick as click
from pydantic import BaseModel
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel

from wiki_navigator.config import get_config
from wiki_navigator.core.models import (
    BacklinksResponse,
    CategoryResponse,
    CompareResponse,
    PageFull,
    PageOutline,
    PageSection,
    SearchResponse,
    WikiInfo,
)
from wiki_navigator.core.service import WikiContentService
from wiki_navigator.utils.logging import (
    LoggingMode,
    configure_logging,
    get_logging_status,
    with_wiki_context,
)
from wiki_navigator.utils.retry import overload_retry
from wiki_navigator.utils.rich_tables import (
    create_backlinks_table,
    create_category_table,
    create_logging_status_table,
    create_outline_summary_table,
    create_outline_tree,
    create_revisions_table,
    create_search_table,
    create_wiki_info_table,
    print_rich_table,
)
from wiki_navigator.wiki.errors import WikiError, to_error_response

console = Console()

M = TypeVar("M", bound=BaseModel)


def _normalize_wiki_url(wiki_url: str) -> str:
    return wiki_url.rstrip("/")


def _report_error(error: WikiError, json_output: bool) -> None:
    response = to_error_response(error)
    if json_output:
        click.echo(response.model_dump_json(indent=2, exclude_none=True))
        return

    body = f"[bold red]{escape(response.error)}[/bold red]: {escape(response.message)}"
    if response.hint:
        body += f"\n💡 {escape(response.hint)}"
    console.print(Panel(body, title="❌ Error", border_style="red"))


async def _run_operation(
    ctx: click.Context,
    wiki_url: str,
    operation: Callable[[WikiContentService], Awaitable[M]],
    render: Callable[[M], None],
    **context,
) -> None:
    """Run one service operation, printing its result as JSON or rich output.

    Wiki errors are rendered through ``to_error_response`` and exit with status 1.
    """
    json_output = ctx.obj["json_output"]

    with with_wiki_context(wiki_url, **context) as logger:
        async with WikiContentService.from_config(get_config(), start_sweeper=False) as service:
            try:
                result = await overload_retry()(operation)(service)
            except WikiError as e:
                logger.warning("Operation failed", error=str(e), error_type=type(e).__name__)
                _report_error(e, json_output)
                raise click.exceptions.Exit(1) from e

    if json_output:
        click.echo(result.model_dump_json(indent=2, by_alias=True, exclude_none=True))
    else:
        render(result)


def _render_info(info: WikiInfo) -> None:
    print_rich_table(console, create_wiki_info_table(info))


def _render_outline(outline: PageOutline) -> None:
    print_rich_table(console, create_outline_summary_table(outline))
    print_rich_table(console, create_outline_tree(outline))


def _render_section(page_section: PageSection) -> None:
    section = page_section.section
    navigation = []
    if page_section.parent_section:
        navigation.append(f"⬆️ {page_section.parent_section.index} {page_section.parent_section.title}")
    if page_section.adjacent.previous:
        navigation.append(f"⬅️ {page_section.adjacent.previous.index} {page_section.adjacent.previous.title}")
    if page_section.adjacent.next:
        navigation.append(f"➡️ {page_section.adjacent.next.index} {page_section.adjacent.next.title}")

    console.print(
        Panel(
            Markdown(section.content or ""),
            title=f"📖 {escape(page_section.title)} › {escape(section.title)}",
            subtitle=f"{section.word_count} words",
            border_style="blue",
        )
    )
    if navigation:
        console.print(escape("   ".join(navigation)), style="dim")


def _render_full(page: PageFull) -> None:
    if page.warning:
        console.print(f"[yellow]⚠️ {escape(page.warning)}[/yellow]")
    console.print(
        Panel(Markdown(page.content), title=f"📄 {escape(page.title)}", subtitle=f"{page.word_count} words")
    )


def _render_compare(response: CompareResponse) -> None:
    print_rich_table(console, create_revisions_table(response))
    console.print(Panel(escape(response.diff_markdown or "(no changes)"), title="🔀 Diff", border_style="magenta"))


@click.command()
@click.argument("wiki_url")
@click.pass_context
async def info(ctx, wiki_url: str):
    """
    🌐 Show site name, language, article count and namespaces of a wiki.
    """
    wiki_url = _normalize_wiki_url(wiki_url)
    await _run_operation(ctx, wiki_url, lambda service: service.get_wiki_info(wiki_url), _render_info)


@click.command()
@click.argument("wiki_url")
@click.argument("query")
@click.option("--limit", "-n", default=10, show_default=True, help="Maximum number of results")
@click.pass_context
async def search(ctx, wiki_url: str, query: str, limit: int):
    """
    🔎 Full-text search across a wiki.
    """
    wiki_url = _normalize_wiki_url(wiki_url)

    def render(response: SearchResponse) -> None:
        print_rich_table(console, create_search_table(query, response))

    await _run_operation(ctx, wiki_url, lambda service: service.search(wiki_url, query, limit), render, query=query)


@click.command()
@click.argument("wiki_url")
@click.argument("title")
@click.pass_context
async def outline(ctx, wiki_url: str, title: str):
    """
    🗺️ Show the section tree, summary, categories and infobox of a page.
    """
    wiki_url = _normalize_wiki_url(wiki_url)
    await _run_operation(
        ctx, wiki_url, lambda service: service.get_page_outline(wiki_url, title), _render_outline, title=title
    )


@click.command()
@click.argument("wiki_url")
@click.argument("title")
@click.argument("section_index", type=int)
@click.pass_context
async def section(ctx, wiki_url: str, title: str, section_index: int):
    """
    📖 Show one section of a page by its outline index (0 is the lead).
    """
    wiki_url = _normalize_wiki_url(wiki_url)
    await _run_operation(
        ctx,
        wiki_url,
        lambda service: service.get_page_section(wiki_url, title, section_index),
        _render_section,
        title=title,
        section_index=section_index,
    )


@click.command()
@click.argument("wiki_url")
@click.argument("title")
@click.pass_context
async def full(ctx, wiki_url: str, title: str):
    """
    📄 Show a whole page as markdown.
    """
    wiki_url = _normalize_wiki_url(wiki_url)
    await _run_operation(ctx, wiki_url, lambda service: service.get_page_full(wiki_url, title), _render_full, title=title)


@click.command()
@click.argument("wiki_url")
@click.argument("name")
@click.option("--limit", "-n", default=50, show_default=True, help="Maximum number of members")
@click.pass_context
async def category(ctx, wiki_url: str, name: str, limit: int):
    """
    🗂️ List the pages and subcategories of a category.
    """
    wiki_url = _normalize_wiki_url(wiki_url)

    def render(response: CategoryResponse) -> None:
        print_rich_table(console, create_category_table(response))

    await _run_operation(
        ctx, wiki_url, lambda service: service.get_category(wiki_url, name, limit), render, category=name
    )


@click.command()
@click.argument("wiki_url")
@click.argument("title")
@click.option("--limit", "-n", default=50, show_default=True, help="Maximum number of backlinks")
@click.pass_context
async def backlinks(ctx, wiki_url: str, title: str, limit: int):
    """
    ↩️ List pages that link to a page.
    """
    wiki_url = _normalize_wiki_url(wiki_url)

    def render(response: BacklinksResponse) -> None:
        print_rich_table(console, create_backlinks_table(response))

    await _run_operation(ctx, wiki_url, lambda service: service.get_backlinks(wiki_url, title, limit), render, title=title)


@click.command()
@click.argument("wiki_url")
@click.argument("title")
@click.argument("from_rev")
@click.argument("to_rev", default="current")
@click.pass_context
async def compare(ctx, wiki_url: str, title: str, from_rev: str, to_rev: str):
    """
    🔀 Diff two revisions of a page.

    FROM_REV is a revision id, "prev" or "current"; TO_REV additionally accepts "next".
    """
    wiki_url = _normalize_wiki_url(wiki_url)
    await _run_operation(
        ctx,
        wiki_url,
        lambda service: service.compare_revisions(wiki_url, title, from_rev, to_rev),
        _render_compare,
        title=title,
    )


def _initialize_logging(json_output: bool, log_level: str | None = None, log_file: str | None = None) -> None:
    """Initialize logging configuration."""
    config = get_config()
    mode = LoggingMode.PRODUCTION if json_output else LoggingMode.INTERACTIVE

    # Use config defaults when CLI parameters are not provided
    final_log_level = log_level or config.log_level
    final_log_file = log_file or (str(config.log_file) if config.log_file else None)

    configure_logging(mode=mode, log_level=final_log_level, log_file=final_log_file)


@click.command(name="logging-status")
def logging_status():
    """
    📊 Show current logging configuration and status.
    """
    status = get_logging_status()
    logging_table = create_logging_status_table(status)
    print_rich_table(console, logging_table)


@click.group(invoke_without_command=True)
@click.option("--json", is_flag=True, help="Output JSON results and structured JSON logs instead of rich output")
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--log-file", help="Custom log file path")
@click.pass_context
def app(ctx, json: bool, log_level: str | None, log_file: str | None):
    """
    🧭 Wiki Navigator - structured access to MediaWiki sites

    Explore any MediaWiki installation (Wikipedia, Fandom, internal wikis) through
    outlines, targeted sections, search, categories and revision diffs.
    """
    ctx.ensure_object(dict)
    ctx.obj["json_output"] = json

    _initialize_logging(json, log_level, log_file)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


app.add_command(info)
app.add_command(search)
app.add_command(outline)
app.add_command(section)
app.add_command(full)
app.add_command(category)
app.add_command(backlinks)
app.add_command(compare)
app.add_command(logging_status)


if __name__ == "__main__":
    app()
