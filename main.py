import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.markup import escape
from rich import box
import typer

from config import settings
from digital_library.book import Status
from digital_library.library import Library, LibraryError, CapacityExceededError, BookNotFoundError
from digital_library.storage import (
    EXPORT_FORMATS,
    PersistenceError,
    export_library,
    load_library,
    save_library,
)
from utils.ui_helpers import books_table, set_output_mode, print_book_result, print_list_result, print_stats_result
from utils.validators import TextValidator, parse_status

APP_NAME = settings.app_name

console = Console()


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.effective_log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# --- Library session helpers ---
def _data_file(ctx: typer.Context) -> str:
    obj = ctx.obj or {}
    return obj.get("data_file") or settings.data_file


def _fail(message: str) -> None:
    print(message)
    raise typer.Exit(code=1)


def _save_or_fail(lib: Library, path: str) -> None:
    try:
        save_library(lib, path)
    except PersistenceError as e:
        _fail(f"Error: {e}")


@contextmanager
def library_session(ctx: typer.Context, save: bool = False) -> Iterator[Library]:
    """Load the library for one command and, if ``save`` is set, write it back
    once the command body completes without error.

    Library errors raised by the body are reported and end the command with
    exit code 1; nothing is saved in that case.
    """
    path = _data_file(ctx)
    lib = load_library(path)
    try:
        yield lib
    except LibraryError as e:
        _fail(f"Error: {e}")
    if save:
        _save_or_fail(lib, path)


def _parse_status_or_fail(raw: str) -> Status:
    try:
        return parse_status(raw)
    except ValueError as e:
        _fail(f"Error: {e}")


# --- Typer CLI application ---
app = typer.Typer(help="Digital Library: track read, owned and wishlist books.")

@app.callback()
def _global_options(
    ctx: typer.Context,
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    data_file: Optional[str] = typer.Option(
        None,
        "--data-file",
        help="Library data file (default: LIBRARY_DATA_FILE or library.txt)",
    ),
):
    """Global CLI options (output mode, data file)."""
    configure_logging()
    if output:
        set_output_mode(output)
    ctx.obj = {"data_file": data_file or settings.data_file}

@app.command("list")
def cli_list(
    ctx: typer.Context,
    status: Optional[str] = typer.Option(None, "--status", "-s", help="read | owned | wishlist (or 1-3)"),
):
    """List all books, or only those with the given status."""
    wanted = _parse_status_or_fail(status) if status is not None else None
    with library_session(ctx) as lib:
        books = lib.list_by_status(wanted) if wanted is not None else lib.list_books()
    print_list_result(books)

@app.command("add")
def cli_add(
    ctx: typer.Context,
    title: str,
    author: str,
    year: int,
    status: str = typer.Option("wishlist", "--status", "-s", help="read | owned | wishlist (or 1-3)"),
):
    """Add a book and print the id it was given."""
    book_status = _parse_status_or_fail(status)
    if not TextValidator.validate_title(title):
        _fail("Error: title must be non-empty, on one line and must not contain '|'.")
    if not TextValidator.validate_author(author):
        _fail("Error: author must be non-empty, on one line and must not contain '|'.")

    with library_session(ctx, save=True) as lib:
        book_id = lib.add(title, author, year, book_status)
    print(f"Book added. (ID={book_id})")

@app.command("update-status")
def cli_update_status(ctx: typer.Context, book_id: int, status: str):
    """Change the status of a book."""
    new_status = _parse_status_or_fail(status)
    with library_session(ctx, save=True) as lib:
        if not lib.update_status(book_id, new_status):
            raise BookNotFoundError(book_id)
    print("Book status updated successfully.")

@app.command("delete")
def cli_delete(ctx: typer.Context, book_id: int):
    """Delete a book by id."""
    with library_session(ctx, save=True) as lib:
        if not lib.delete(book_id):
            raise BookNotFoundError(book_id)
    print(f"Book with ID {book_id} has been deleted.")

@app.command("find")
def cli_find(ctx: typer.Context, book_id: int):
    """Show the details of one book."""
    with library_session(ctx) as lib:
        book = lib.get_book(book_id)
    print_book_result(book)

@app.command("search")
def cli_search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Text to look for in titles and authors"),
    limit: int = typer.Option(10, "--limit", "-l", help="Maximum number of results"),
):
    """Search books by title or author."""
    with library_session(ctx) as lib:
        books = lib.search_books(query)[:limit]
    print_list_result(books)

@app.command("stats")
def cli_stats(ctx: typer.Context):
    """Show counts per status."""
    with library_session(ctx) as lib:
        stats = lib.get_statistics()
    print_stats_result(stats)

@app.command("export")
def cli_export(
    ctx: typer.Context,
    format: str = typer.Option("csv", "--format", "-f", help=f"One of: {', '.join(EXPORT_FORMATS)}"),
    output: str = typer.Option("library_export", "--output", help="Output file name without extension"),
):
    """Export the library to a CSV or JSON file."""
    filename = f"{output}.{format.lower()}"
    with library_session(ctx) as lib:
        try:
            count = export_library(lib, filename, format)
        except (ValueError, PersistenceError) as e:
            _fail(f"Error: {e}")
    print(f"Exported {count} books to {filename}")

@app.command("menu")
def cli_menu(ctx: typer.Context):
    """Start the interactive menu."""
    run_menu(_data_file(ctx))


# --- Interactive menu ---
def show_by_status(lib: Library, status: Status) -> None:
    books = lib.list_by_status(status)
    if not books:
        console.print("[yellow]No books found.[/]")
        return
    console.print(books_table(books, title=f"📚 {status.label.title()}"))

def _ask_text(label: str, is_valid) -> str:
    while True:
        value = Prompt.ask(label).strip()
        if is_valid(value):
            return value
        console.print("[yellow]Please enter a non-empty single-line value without '|'.[/]")

def _ask_status(label: str) -> Status:
    raw = Prompt.ask(f"{label} (1=Read, 2=Owned, 3=Wishlist)", choices=["1", "2", "3"])
    return Status(int(raw))

def add_interactive(lib: Library) -> None:
    """Prompt for a new book and add it."""
    if lib.is_full():
        console.print("[bold red]Library is full.[/]")
        return
    title = _ask_text("Title", TextValidator.validate_title)
    author = _ask_text("Author", TextValidator.validate_author)
    year = IntPrompt.ask("Year")
    status = _ask_status("Status")
    try:
        book_id = lib.add(title, author, year, status)
    except CapacityExceededError as e:
        console.print(f"[bold red]{e}[/]")
        return
    console.print(f"[green]Book added. (ID={book_id})[/]")

def update_interactive(lib: Library) -> None:
    book_id = IntPrompt.ask("Enter book ID")
    status = _ask_status("New status")
    if lib.update_status(book_id, status):
        console.print("[green]Book status updated successfully.[/]")
    else:
        console.print(f"[yellow]⚠️ Book with ID [bold]{book_id}[/] not found.[/]")

def delete_interactive(lib: Library) -> None:
    """Delete a book after showing it and asking for confirmation."""
    book_id = IntPrompt.ask("🔍 Enter the ID of the book to delete")
    book = lib.find_book(book_id)
    if not book:
        console.print(f"[yellow]⚠️ Book with ID [bold]{book_id}[/] not found.[/]")
        return

    console.print(Panel(
        f"[bold]Title:[/] {escape(book.title)}\n"
        f"[bold]Author:[/] {escape(book.author)}\n"
        f"[bold]Year:[/] {book.year}",
        title="📚 Book to delete",
        border_style="yellow"
    ))
    if Confirm.ask("🗑️ Delete this book?", default=False):
        lib.delete(book_id)
        console.print(f"[green]✅ [bold]{escape(book.title)}[/] deleted.[/]")
    else:
        console.print("[blue]🚫 Delete cancelled.[/]")

def show_stats(lib: Library) -> None:
    stats = lib.get_statistics()
    console.print(Panel.fit(
        f"[bold]Total books:[/] {stats['total_books']}\n"
        f"[bold]Read:[/] {stats['read']}\n"
        f"[bold]Owned:[/] {stats['owned']}\n"
        f"[bold]Wishlist:[/] {stats['wishlist']}",
        title="📊 Stats",
        border_style="blue"
    ))

def save_on_exit(lib: Library, path: str) -> bool:
    """Save before leaving the menu. Returns False if the user chose to stay."""
    try:
        save_library(lib, path)
        return True
    except PersistenceError as e:
        console.print(f"[bold red]{e}[/]")
        return Confirm.ask("Exit without saving?", default=False)

def run_menu(data_file: Optional[str] = None) -> None:
    """Interactive menu for the Digital Library."""
    path = data_file or settings.data_file
    lib = load_library(path)

    def render_menu() -> None:
        menu_items = [
            ("1", "Show my read books", "📗"),
            ("2", "Show my owned (unread) books", "📘"),
            ("3", "Show my wishlist", "📝"),
            ("4", "Add a book", "➕"),
            ("5", "Update book status", "🔄"),
            ("6", "Delete a book", "🗑️"),
            ("7", "Show stats", "📊"),
            ("0", "Save and exit", "🚪"),
        ]

        table = Table.grid(padding=(0, 2))
        table.add_column(justify="right", style="bold cyan", width=4)
        table.add_column(justify="left", style="white")
        for key, label, icon in menu_items:
            table.add_row(f"[reverse]{key}[/]", f"{icon} {label}")

        console.print(Panel(
            table,
            title=APP_NAME,
            border_style="cyan",
            box=box.HEAVY,
            padding=(1, 2),
        ))

    while True:
        render_menu()
        choice = Prompt.ask("Select", choices=["1", "2", "3", "4", "5", "6", "7", "0"], default="1").strip()

        if choice == "1":
            show_by_status(lib, Status.READ)
        elif choice == "2":
            show_by_status(lib, Status.OWNED)
        elif choice == "3":
            show_by_status(lib, Status.WISHLIST)
        elif choice == "4":
            add_interactive(lib)
        elif choice == "5":
            update_interactive(lib)
        elif choice == "6":
            delete_interactive(lib)
        elif choice == "7":
            show_stats(lib)
        elif choice == "0":
            if save_on_exit(lib, path):
                console.print("[green]Goodbye.[/]")
                break
        print()  # blank line between actions

if __name__ == "__main__":
    if len(sys.argv) > 1:
        app()
    else:
        configure_logging()
        run_menu()
