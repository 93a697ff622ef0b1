"""
JobMatch Command Line Interface

Provides CLI commands for inspecting sessions, ranking jobs, managing
site preferences and maintaining the similarity index.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="jobmatch",
    help="Job matching core CLI",
    add_completion=False,
)
console = Console()

T = TypeVar("T")


def _run(action: Callable[[Any], Awaitable[T]]) -> T:
    """Run an async action against a started application context."""
    from jobmatch.core.context import create_app_context

    async def _main() -> T:
        ctx = create_app_context()
        await ctx.startup()
        try:
            return await action(ctx)
        finally:
            ctx.shutdown()

    return asyncio.run(_main())


def _score_style(score: float) -> str:
    if score >= 75:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"


def _jobs_table(title: str, jobs: list) -> Table:
    table = Table(title=title)
    table.add_column("#", style="dim", justify="right")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Company")
    table.add_column("Site")
    table.add_column("Score", justify="right")

    for i, job in enumerate(jobs, start=1):
        score = job.score_or_zero
        style = _score_style(score)
        table.add_row(
            str(i),
            job.id,
            job.title[:40] + "..." if len(job.title) > 40 else job.title,
            job.company[:20] + "..." if len(job.company) > 20 else job.company,
            job.job_site or "Unknown",
            f"[{style}]{score:.2f}[/{style}]",
        )
    return table


@app.command()
def version():
    """Show application version."""
    from jobmatch import __version__, __app_name__

    console.print(f"[bold blue]{__app_name__}[/bold blue] version [green]{__version__}[/green]")


@app.command()
def info():
    """Show system information and configuration."""
    from jobmatch.utils.config import get_settings

    settings = get_settings()

    table = Table(title="JobMatch Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Environment", settings.environment)
    table.add_row("Debug Mode", str(settings.debug))
    table.add_row("Persistence Backend", settings.persistence.backend)
    table.add_row("Database Host", settings.database.host)
    table.add_row("Database Name", settings.database.name)
    table.add_row("Embedding Dimension", str(settings.vector.dimension))
    table.add_row("Log Level", settings.logging.level)

    console.print(table)


@app.command()
def init_db():
    """Initialize the database with required indexes."""
    from jobmatch.data.database import DatabaseManager

    console.print("[yellow]Initializing database...[/yellow]")

    db_manager = DatabaseManager()
    try:
        console.print("  Checking database connection...")
        if not db_manager.check_sync_connection():
            console.print("[red]Error: Could not connect to MongoDB.[/red]")
            console.print("[dim]Make sure MongoDB is running and connection settings are correct.[/dim]")
            raise typer.Exit(1)

        console.print("  [green]✓[/green] Connected to MongoDB")

        console.print("  Creating indexes...")
        asyncio.run(db_manager.ensure_indexes())
        console.print("  [green]✓[/green] Indexes created")

        console.print("\n[green]Database initialized successfully![/green]")

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error initializing database: {e}[/red]")
        raise typer.Exit(1)
    finally:
        db_manager.close_all()


@app.command()
def show_session(
    user_id: str = typer.Argument(..., help="User ID to display"),
):
    """Show a user's session."""
    session = _run(lambda ctx: ctx.sessions.load(user_id))

    if not session:
        console.print(f"[red]Session not found: {user_id}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold cyan]Session Details[/bold cyan]")
    console.print(f"[dim]{'─' * 50}[/dim]")
    console.print(f"[bold]User ID:[/bold] {session.user_id}")
    if session.profile.name:
        console.print(f"[bold]Name:[/bold] {session.profile.name}")
    if session.profile.current_title:
        console.print(f"[bold]Current Title:[/bold] {session.profile.current_title}")
    console.print(f"[bold]Created:[/bold] {session.created_at}")
    console.print(f"[bold]Updated:[/bold] {session.updated_at}")

    if session.skills:
        console.print(f"\n[bold]Skills:[/bold] {', '.join(session.skills)}")

    preferences = session.settings.job_site_preferences
    if preferences:
        console.print(f"\n[bold]Site Preferences:[/bold]")
        for site, preference in preferences.items():
            console.print(f"  • {site}: {preference}")

    if session.jobs:
        console.print()
        console.print(_jobs_table(f"Jobs ({len(session.jobs)} total)", session.jobs))
    else:
        console.print("\n[yellow]No jobs in session.[/yellow]")


@app.command()
def import_jobs(
    user_id: str = typer.Argument(..., help="User ID to import jobs for"),
    path: Path = typer.Argument(..., help="JSON file with a list of job search results"),
):
    """Import job search results into a user's session."""
    from pydantic import ValidationError as ModelValidationError

    from jobmatch.data.models import Job

    if not path.exists():
        console.print(f"[red]Error: Path does not exist: {path}[/red]")
        raise typer.Exit(1)

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        jobs = [Job.model_validate(item) for item in raw]
    except (json.JSONDecodeError, TypeError, ModelValidationError) as e:
        console.print(f"[red]Error: Invalid job file: {e}[/red]")
        raise typer.Exit(1)

    merged = _run(lambda ctx: ctx.matcher.ingest_jobs(user_id, jobs))
    console.print(
        f"[green]✓[/green] Imported [cyan]{len(jobs)}[/cyan] job(s); "
        f"session now has [cyan]{len(merged)}[/cyan]"
    )


@app.command()
def rank(
    user_id: str = typer.Argument(..., help="User ID whose jobs to rank"),
    top_n: int = typer.Option(10, "--top", "-n", help="Number of top jobs to show"),
):
    """Rank a user's jobs against their profile."""
    jobs = _run(lambda ctx: ctx.matcher.match_jobs(user_id))

    if not jobs:
        console.print("[yellow]No jobs to rank.[/yellow]")
        raise typer.Exit(0)

    console.print(_jobs_table(f"Ranked Jobs for {user_id}", jobs[:top_n]))


@app.command()
def set_site_preference(
    user_id: str = typer.Argument(..., help="User ID"),
    site: str = typer.Argument(..., help="Job site name, e.g. LinkedIn"),
    preference: str = typer.Argument(..., help="include, exclude or neutral"),
):
    """Set a job site preference for a user."""
    from jobmatch.core.matching import get_all_job_site_names
    from jobmatch.utils.constants import JobSitePreference

    try:
        site_preference = JobSitePreference(preference.lower())
    except ValueError:
        console.print(f"[red]Invalid preference: {preference}[/red]")
        console.print(f"[dim]Valid preferences: include, exclude, neutral[/dim]")
        raise typer.Exit(1)

    if site not in get_all_job_site_names():
        console.print(f"[yellow]Note: '{site}' is not a known job site.[/yellow]")

    _run(lambda ctx: ctx.sessions.update_job_site_preference(user_id, site, site_preference))
    console.print(f"[green]✓[/green] {site} set to [cyan]{site_preference.value}[/cyan] for {user_id}")


@app.command()
def context(
    user_id: str = typer.Argument(..., help="User ID"),
    query: str = typer.Argument(..., help="Question to build context for"),
    job_id: Optional[str] = typer.Option(None, "--job", "-j", help="Focus on one job"),
):
    """Print the job coach context for a question."""
    text = _run(lambda ctx: ctx.context_builder.build(user_id, query, context_job_id=job_id))
    console.print(text, markup=False)


@app.command()
def reset_session(
    user_id: str = typer.Argument(..., help="User ID to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a user's session."""
    if not yes and not typer.confirm(f"Delete session {user_id}?"):
        raise typer.Exit(0)

    _run(lambda ctx: ctx.sessions.clear(user_id))
    console.print(f"[green]✓[/green] Session {user_id} cleared")


@app.command()
def rebuild_index():
    """Re-embed every stored job and replace the index snapshot."""
    console.print("[yellow]Rebuilding similarity index...[/yellow]")
    count = _run(lambda ctx: ctx.rebuild_index())
    console.print(f"[green]✓[/green] Index rebuilt with [cyan]{count}[/cyan] vector(s)")


if __name__ == "__main__":
    app()
