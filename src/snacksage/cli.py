"""
Command-line interface for SnackSage.

Commands:
    serve   - Start the FastAPI server
    chunk   - Preview how a document is chunked (no API calls)
    query   - Build the knowledge index and show the context for a query
    version - Show version information
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="snacksage",
    help="Pantry-aware recipe assistant grounded in a food knowledge base",
    add_completion=False,
)
console = Console()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host to bind (default from settings)"),
    port: Optional[int] = typer.Option(None, help="Port to bind (default from settings)"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
) -> None:
    """Start the FastAPI server."""
    import uvicorn

    from snacksage.config import settings

    host = host or settings.api_host
    port = port or settings.api_port
    console.print(f"[green]Starting SnackSage server on {host}:{port}[/green]")

    uvicorn.run(
        "snacksage.api.main:app",
        host=host,
        port=port,
        reload=reload,
        workers=1,  # The index lives in process memory
    )


@app.command()
def chunk(
    document: Path = typer.Argument(..., help="PDF or text document"),
    chunk_size: Optional[int] = typer.Option(None, help="Target chunk size in characters"),
    overlap: Optional[int] = typer.Option(None, help="Overlap in characters"),
    show: int = typer.Option(3, help="Number of chunks to print"),
) -> None:
    """Preview how a document is chunked, without calling the embedding API."""
    from snacksage.config import settings
    from snacksage.errors import DocumentSourceError
    from snacksage.retrieval.chunker import split_into_chunks
    from snacksage.retrieval.documents import extract_text

    try:
        text = extract_text(document)
    except DocumentSourceError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    size = chunk_size or settings.chunk_size
    carry = settings.chunk_overlap if overlap is None else overlap

    try:
        chunks = split_into_chunks(text, size, carry)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(
        f"[green]{document.name}: {len(chunks)} chunks from {len(text):,} characters "
        f"(size={size}, overlap={carry})[/green]\n"
    )

    for i, chunk_text in enumerate(chunks[:show], start=1):
        console.print(f"[cyan]Chunk {i}[/cyan] [dim]({len(chunk_text)} chars)[/dim]")
        console.print(chunk_text)
        console.print()


@app.command()
def query(
    question: str = typer.Argument(..., help="Query text"),
    document: Optional[Path] = typer.Option(None, help="Document to index (default from settings)"),
    top_k: int = typer.Option(3, "--top-k", "-k", help="Number of chunks to retrieve"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show the formatted context"),
) -> None:
    """Build the knowledge index and show the most relevant chunks for a query."""
    from snacksage.config import configure_logging
    from snacksage.errors import EmbeddingError, IndexBuildError
    from snacksage.retrieval.formatter import format_context_for_prompt
    from snacksage.retrieval.resources import create_knowledge_index, initialize_resources

    configure_logging()
    index = create_knowledge_index()

    with console.status("[bold green]Building knowledge index..."):
        try:
            initialize_resources(index, document)
        except IndexBuildError as e:
            console.print(f"[red]Index build failed: {e}[/red]")
            raise typer.Exit(1)

    console.print(f"[green]Indexed {index.size} chunks (dimension {index.dimension})[/green]\n")

    try:
        results = index.get_context(question, top_k)
    except EmbeddingError as e:
        console.print(f"[red]Query embedding failed: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Top {top_k} chunks")
    table.add_column("Rank", style="cyan")
    table.add_column("Chunk", style="cyan")
    table.add_column("Relevance", style="green")
    table.add_column("Preview")

    for rank, result in enumerate(results, start=1):
        preview = result.text[:80] + ("..." if len(result.text) > 80 else "")
        table.add_row(str(rank), str(result.chunk_id), result.display_similarity, preview)

    console.print(table)

    if verbose:
        console.print()
        console.print(format_context_for_prompt(results))


@app.command()
def version() -> None:
    """Show version information."""
    from snacksage import __version__

    console.print(f"SnackSage v{__version__}")


if __name__ == "__main__":
    app()
