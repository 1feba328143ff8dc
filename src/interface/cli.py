# src/interface/cli.py

from typing import Dict, List
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.prompt import Prompt
from rich import box

from src.domain.models import Document, HighlightRect, PipelineProgress, SearchResult


console = Console()


def display_welcome_banner() -> None:
    console.print(Panel.fit(
        "[bold cyan]🔍 PDF OCR Search[/bold cyan]\n"
        "[dim]Recognize every page, find any text, highlight it in place[/dim]",
        box=box.DOUBLE,
        border_style="cyan",
    ))


def display_progress(progress: PipelineProgress) -> None:
    if progress.message:
        console.print(f"[cyan]⏳[/cyan] {progress.message}")


def display_processing_summary(document: Document) -> None:
    recognized = len(document.recognized_pages)
    if document.is_complete:
        console.print(
            f"\n[green]✓[/green] [bold]{document.name}[/bold] — "
            f"all [bold]{document.total_pages}[/bold] pages recognized.\n"
        )
    else:
        console.print(
            f"\n[yellow]⚠[/yellow] [bold]{document.name}[/bold] — only "
            f"[bold]{recognized}[/bold] of {document.total_pages} pages were recognized. "
            f"Search covers those pages only.\n"
        )


def prompt_for_query() -> str:
    return Prompt.ask("\n[bold yellow]❓ Text to find[/bold yellow]", default="")


def display_search_result(
    result: SearchResult,
    highlights: Dict[int, List[HighlightRect]],
) -> None:
    if result.is_cleared:
        console.print("\n[dim]Search cleared.[/dim]")
        return

    if not result.matching_pages:
        console.print(f"\n[red]{result.message}[/red]")
        return

    console.print(f"\n[bold green]{result.message}[/bold green]\n")

    table = Table(box=box.ROUNDED, border_style="green")
    table.add_column("Page", justify="right", style="bold")
    table.add_column("Highlights", justify="right")
    for page_number in result.matching_pages:
        rects = highlights.get(page_number, [])
        # No rects: the page has no text layer to align the hit with.
        count = str(len(rects)) if rects else "[dim]—[/dim]"
        table.add_row(str(page_number), count)
    console.print(table)


def display_exported(paths: List[str]) -> None:
    for path in paths:
        console.print(f"[green]✓[/green] Wrote [italic]{path}[/italic]")


def display_error(message: str) -> None:
    console.print(f"\n[bold red]✗ Error:[/bold red] {message}\n")


def ask_continue() -> bool:
    answer = Prompt.ask(
        "\n[dim]Search again?[/dim]",
        choices=["y", "n"],
        default="y",
    )
    return answer.lower() == "y"
