import asyncio
import logging
from typing import Any, Awaitable, List

import httpx
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gbooks.api_clients.books import get_books_client, SearchField
from gbooks.config import config
from gbooks.errors import BooksError
from gbooks.logger import setup_logging

app = typer.Typer(
    name="gbooks",
    help="Google Books search - query the volumes API, page through results and search by field.",
    add_completion=False
)
console = Console()


def page_items(page: Any) -> List[dict]:
    """Volumes contained in one response body (an id lookup returns a bare volume)."""
    if not isinstance(page, dict):
        return []
    if "items" in page:
        return page["items"] or []
    if "volumeInfo" in page:
        return [page]
    return []


def render_pages(pages: List[Any], title: str) -> Table:
    table = Table(title=escape(title))
    table.add_column("Page", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Authors", style="green")
    table.add_column("Published", style="magenta")
    table.add_column("ID", style="yellow")

    for page_number, page in enumerate(pages, start=1):
        for item in page_items(page):
            info = item.get("volumeInfo", {})
            table.add_row(
                str(page_number),
                escape(info.get("title", "")),
                escape(", ".join(info.get("authors", []))),
                info.get("publishedDate", ""),
                item.get("id", ""),
            )
    return table


def run_search(request: Awaitable[List[Any]], title: str, as_json: bool):
    try:
        pages = asyncio.run(request)
    except BooksError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)
    except httpx.HTTPError as e:
        console.print(f"[red]Google Books request failed: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    if as_json:
        console.print_json(data=pages)
        return

    table = render_pages(pages, title)
    if table.row_count:
        console.print(table)
    else:
        console.print("[yellow]No books found.[/yellow]")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", help="Log requests and cache activity")):
    if verbose:
        setup_logging(logging.INFO)


@app.command()
def search(
    query: str = typer.Argument(..., help="Search text, or id:<volume id> for a direct lookup"),
    sets: int = typer.Option(None, "--sets", help="Number of 40-result pages to fetch (defaults to configured count)"),
    start_index: int = typer.Option(0, "--start-index", help="Start index for the request"),
    as_json: bool = typer.Option(False, "--json", help="Print raw response bodies")
):
    """
    Search Google Books and list the matching volumes.
    """
    run_search(get_books_client().search(query, start_index=start_index, sets=sets), f"Results for {query}", as_json)


@app.command()
def search_by(
    field: str = typer.Argument(..., help=f"One of: {', '.join(f.value for f in SearchField)}"),
    query: str = typer.Argument(..., help="Value to search the field for"),
    as_json: bool = typer.Option(False, "--json", help="Print raw response bodies")
):
    """
    Search Google Books with the term scoped to one field (title, author, isbn...).
    """
    run_search(get_books_client().search_by(query, field), f"{field}: {query}", as_json)


@app.command()
def config_set(
    key: str = typer.Argument(..., help="Config key (GBOOKS_API_URL, GBOOKS_SETS_TO_FETCH, etc)"),
    value: str = typer.Argument(..., help="Value to set")
):
    """
    Set a configuration value globally (e.g. GBOOKS_LANG_RESTRICT).
    """
    config.save(key.upper(), value)
    console.print(f"[green]Updated {key.upper()} = {value}[/green]")


if __name__ == "__main__":
    app()
