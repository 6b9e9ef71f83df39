import os
import json
from typing import List, Any, Dict
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "DIGITAL_LIBRARY_OUTPUT"

_console = Console()

def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode in {"plain", "json", "rich"}:
        os.environ[OUTPUT_MODE_ENV] = mode

def get_output_mode() -> str:
    return os.environ.get(OUTPUT_MODE_ENV, "plain").lower()

def books_table(books: List[Any], title: str = "📚 Books") -> Table:
    table = Table(title=title, show_lines=True, header_style="bold cyan")
    table.add_column("ID", style="magenta", no_wrap=True, justify="right")
    table.add_column("Title", style="white")
    table.add_column("Author", style="white")
    table.add_column("Year", justify="right")
    table.add_column("Status", style="green")
    for b in books:
        table.add_row(str(b.id), escape(b.title), escape(b.author), str(b.year), b.status.label)
    return table

def print_list_result(books: List[Any]) -> None:
    """Print a list of books in the current output mode.
    - plain: 'ID:<id> | Title | Author | Year' lines, or 'No books found.'
    - json: JSON array of book dicts
    - rich: Rich table
    """
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps([b.to_dict() for b in books], ensure_ascii=False))
        return

    if not books:
        print("No books found.")
        return

    if mode == "rich":
        _console.print(books_table(books))
    else:
        for b in books:
            print(f"ID:{b.id} | {b.title} | {b.author} | {b.year}")

def print_book_result(book: Any) -> None:
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(book.to_dict(), ensure_ascii=False))
    elif mode == "rich":
        _console.print(Panel.fit(
            f"[bold]Title:[/] {escape(book.title)}\n"
            f"[bold]Author:[/] {escape(book.author)}\n"
            f"[bold]Year:[/] {book.year}\n"
            f"[bold]Status:[/] {book.status.label}",
            title=f"🔍 Book {book.id}",
            border_style="green"
        ))
    else:
        print(f"ID: {book.id}")
        print(f"Title: {book.title}")
        print(f"Author: {book.author}")
        print(f"Year: {book.year}")
        print(f"Status: {book.status.label}")

def print_stats_result(stats: Dict[str, Any]) -> None:
    """Print statistics in the current output mode.
    - plain: one 'Label: count' line per metric
    - json: JSON object
    - rich: Panel with the main metrics
    """
    mode = get_output_mode()

    total = stats.get("total_books", 0)
    read = stats.get("read", 0)
    owned = stats.get("owned", 0)
    wishlist = stats.get("wishlist", 0)

    if mode == "json":
        print(json.dumps(stats, ensure_ascii=False))
    elif mode == "rich":
        content = (
            f"[bold]Total books:[/] {total}\n"
            f"[bold]Read:[/] {read}\n"
            f"[bold]Owned:[/] {owned}\n"
            f"[bold]Wishlist:[/] {wishlist}"
        )
        _console.print(Panel.fit(content, title="📊 Stats", border_style="blue"))
    else:
        print(f"Total books: {total}")
        print(f"Read: {read}")
        print(f"Owned: {owned}")
        print(f"Wishlist: {wishlist}")
