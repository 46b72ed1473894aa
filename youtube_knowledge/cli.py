from __future__ import annotations

import sys
import logging

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markdown import Markdown

from .agents.video_qa import VideoQAAgent
from .clients import build_clients
from .config import load_config, get_ollama_config, get_retrieval_config
from .database.repository import Repository
from .errors import KnowledgeBaseError
from .ingestion.pipeline import build_pipeline
from .utils.logging_config import setup_logging

console = Console()
logger = logging.getLogger(__name__)


def _fail(error: KnowledgeBaseError):
    console.print(f"[red]Error:[/red] {error.user_message}")
    logger.debug(f"{error.kind}: {error}")
    sys.exit(1)


def _build_agent(ctx) -> tuple:
    config = ctx.obj["config"]
    repo = Repository(config["db_path"])
    agent = VideoQAAgent(
        repo=repo,
        clients=ctx.obj["clients"],
        top_k=get_retrieval_config(config)["top_k"],
    )
    return agent, repo


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, verbose):
    """YouTube Knowledge - Ask questions about YouTube videos."""
    ctx.ensure_object(dict)
    config = load_config()
    if verbose:
        config["log_level"] = "DEBUG"
    setup_logging(config.get("log_file"), config["log_level"])
    ctx.obj["config"] = config
    ctx.obj["clients"] = build_clients(config)


@cli.command()
@click.argument("url")
@click.option("--owner", "-o", type=int, default=1, help="Owner id to file the analysis under")
@click.option(
    "--speech-to-text/--no-speech-to-text",
    default=None,
    help="Transcribe the audio when the video has no captions",
)
@click.pass_context
def analyze(ctx, url, owner, speech_to_text):
    """Fetch a video's transcript and index it for questions.

    \b
    Examples:
        ytkb analyze https://www.youtube.com/watch?v=dQw4w9WgXcQ
        ytkb analyze https://youtu.be/dQw4w9WgXcQ --owner 2
        ytkb analyze https://youtu.be/abc123 --speech-to-text
    """
    config = ctx.obj["config"]
    repo = Repository(config["db_path"])
    pipeline = build_pipeline(config, repo, ctx.obj["clients"])

    result = None
    seconds = 0.0
    try:
        with console.status("[bold]Resolving video...[/bold]") as spinner:
            for event in pipeline.analyze_steps(url, owner, speech_to_text):
                if event["event"] == "start":
                    spinner.update(f"[bold]Fetching transcript: {event['video_id']}[/bold]")

                elif event["event"] == "transcript_fetched":
                    console.print(
                        f"  [green]OK[/green] {event['video'][:60]} "
                        f"({event['word_count']} words from {event['source']})"
                    )
                    spinner.update("[bold]Chunking transcript...[/bold]")

                elif event["event"] == "chunked":
                    spinner.update(f"[bold]Embedding {event['chunks']} chunks...[/bold]")

                elif event["event"] == "embedded":
                    spinner.update("[bold]Saving analysis...[/bold]")

                elif event["event"] == "completed":
                    result = event["result"]
                    seconds = event["seconds"]
    except KnowledgeBaseError as e:
        _fail(e)
    finally:
        repo.close()

    analysis = result.analysis
    console.print()
    console.print(f"[green]Analyzed:[/green] {analysis.video_title}")
    console.print(f"  Channel:     {analysis.channel_name}")
    console.print(f"  Analysis ID: {analysis.id}")
    console.print(f"  Chunks:      {len(result.chunks)}")
    console.print(f"  Took:        {seconds:.1f}s")
    console.print()
    console.print(f'Ask with: [bold]ytkb ask {analysis.id} "your question"[/bold]')


@cli.command()
@click.argument("analysis_id", type=int)
@click.argument("question")
@click.pass_context
def ask(ctx, analysis_id, question):
    """Ask a question about an analyzed video.

    \b
    Examples:
        ytkb ask 1 "What is the main argument?"
    """
    agent, repo = _build_agent(ctx)
    try:
        with console.status("[bold]Thinking...[/bold]"):
            result = agent.ask(analysis_id, question)
    except KnowledgeBaseError as e:
        _fail(e)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    finally:
        repo.close()

    console.print()
    console.print(Markdown(result.answer))
    console.print(f"\n[dim]Confidence: {result.confidence:.0f}%[/dim]")
    if result.citations:
        console.print()
        console.print("[dim]Sources:[/dim]")
        for c in result.citations:
            console.print(
                f"  [dim]#{c['chunk_index']} ({c['score']:.2f})[/dim] {c['excerpt']}"
            )


@cli.command()
@click.argument("analysis_id", type=int)
@click.argument("query")
@click.option("--limit", "-n", type=int, default=10, help="Max results")
@click.pass_context
def search(ctx, analysis_id, query, limit):
    """Find the transcript passages closest in meaning to QUERY.

    \b
    Examples:
        ytkb search 1 "pricing"
        ytkb search 1 "how to get started" -n 3
    """
    agent, repo = _build_agent(ctx)
    try:
        with console.status("[bold]Searching...[/bold]"):
            results = agent.search(analysis_id, query, limit)
    except KnowledgeBaseError as e:
        _fail(e)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    finally:
        repo.close()

    console.print(f"[bold]Found {len(results)} passages for:[/bold] {query}\n")
    for i, r in enumerate(results, 1):
        console.print(f"[bold]{i}. Chunk {r.chunk.chunk_index}[/bold] [dim]score {r.score:.3f}[/dim]")
        console.print(f"   {r.chunk.content}")
        console.print()


@cli.command("list")
@click.option("--owner", "-o", type=int, default=1, help="Owner id")
@click.pass_context
def list_analyses(ctx, owner):
    """List analyzed videos, newest first."""
    config = ctx.obj["config"]
    repo = Repository(config["db_path"])

    try:
        analyses = repo.list_analyses(owner)
    finally:
        repo.close()

    if not analyses:
        console.print("[yellow]No videos analyzed yet.[/yellow]")
        console.print("Add one with: [bold]ytkb analyze <youtube-url>[/bold]")
        return

    table = Table(title="Analyzed Videos")
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Channel")
    table.add_column("Source")
    table.add_column("Added")

    for a in analyses:
        table.add_row(
            str(a.id),
            a.video_title[:60],
            a.channel_name,
            a.transcript_source,
            (a.created_at or "")[:10],
        )

    console.print(table)


@cli.command()
@click.argument("analysis_id", type=int)
@click.pass_context
def history(ctx, analysis_id):
    """Show the questions asked about a video, most recent first."""
    config = ctx.obj["config"]
    repo = Repository(config["db_path"])

    try:
        analysis = repo.get_analysis(analysis_id)
        questions = repo.get_questions(analysis_id) if analysis else []
    finally:
        repo.close()

    if analysis is None:
        console.print(f"[red]Error:[/red] No analysis with id {analysis_id}")
        sys.exit(1)

    if not questions:
        console.print(f"[yellow]No questions asked about[/yellow] {analysis.video_title}")
        return

    console.print(f"[bold]{analysis.video_title}[/bold]\n")
    for q in questions:
        console.print(f"[cyan]Q:[/cyan] {q.question} [dim]({q.created_at})[/dim]")
        console.print(f"[green]A:[/green] {q.answer}")
        console.print()


@cli.command()
@click.pass_context
def status(ctx):
    """Show store statistics and configured models."""
    config = ctx.obj["config"]
    repo = Repository(config["db_path"])

    try:
        stats = repo.get_stats()
    finally:
        repo.close()

    ollama_cfg = get_ollama_config(config)

    table = Table(title="YouTube Knowledge Status")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Analyses", str(stats["analyses"]))
    for source, count in sorted(stats.get("analyses_by_source", {}).items()):
        table.add_row(f"  {source}", str(count))
    table.add_row("Chunks", str(stats["chunks"]))
    table.add_row("Questions", str(stats["questions"]))
    table.add_row("Chat model", ollama_cfg["model"])
    table.add_row("Embedding model", ollama_cfg["embedding_model"])

    console.print(table)


# ======================================================================
# HTTP API
# ======================================================================

@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", "-p", type=int, default=5000, help="Port to bind to")
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.pass_context
def serve(ctx, host, port, debug):
    """Start the HTTP API.

    \b
    Examples:
        ytkb serve                   # Start on localhost:5000
        ytkb serve -p 8080           # Start on port 8080
    """
    from .web.app import create_app
    app = create_app(ctx.obj["config"], ctx.obj["clients"])

    console.print()
    console.print(Panel.fit(
        f"[bold green]YouTube Knowledge API[/bold green]\n"
        f"[dim]Listening on:[/dim] [bold]http://{host}:{port}/api[/bold]",
        border_style="green",
    ))
    console.print()

    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    cli()
