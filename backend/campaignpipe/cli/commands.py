"""CLI commands for campaignpipe using Typer and Rich.

Implements the terminal front-end:
- generate: Run the full campaign pipeline for a concept
- config: Show the resolved configuration
"""

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from campaignpipe import validate_credentials
from campaignpipe.config import settings
from campaignpipe.errors import CampaignPipelineError
from campaignpipe.orchestrator import STAGE_ORDER, PipelineOrchestrator, PipelineRun, StageName, StageStatus
from campaignpipe.pipeline.client import GeminiGenerationClient, GenerationClient
from campaignpipe.services.file_manager import FileManager

logger = logging.getLogger(__name__)

app = typer.Typer(name="campaignpipe", help="AI-powered multi-stage marketing campaign generation")
console = Console()

_STATUS_STYLES = {
    StageStatus.PENDING: "dim",
    StageStatus.WORKING: "bold yellow",
    StageStatus.COMPLETED: "green",
    StageStatus.ERROR: "bold red",
    StageStatus.CANCELLED: "magenta",
}


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
    )


def render_status_table(run: PipelineRun) -> Table:
    """Build the stage status table for a run snapshot."""
    table = Table(title="Campaign Pipeline", expand=False)
    table.add_column("Agent", style="cyan")
    table.add_column("Status")
    table.add_column("Duration", justify="right")

    for stage in STAGE_ORDER:
        status = run.status_of(stage)
        label = status.value
        if stage == StageName.VIDEO and status == StageStatus.WORKING and run.progress_message:
            label = run.progress_message
        duration = run.step_durations.get(stage)
        table.add_row(
            stage.label,
            f"[{_STATUS_STYLES[status]}]{label}[/{_STATUS_STYLES[status]}]",
            f"{duration:.1f}s" if duration is not None else "-",
        )
    return table


def _print_results(run: PipelineRun, file_mgr: FileManager) -> None:
    output = run.output

    if output.strategy:
        s = output.strategy
        console.print(Panel(
            f"[bold]Brand Name:[/bold] {s.brand_name}\n"
            f"[bold]Tagline:[/bold] {s.tagline}\n\n"
            f"[bold]Market Research:[/bold]\n{s.market_research}\n\n"
            f"[bold]Brand Identity:[/bold]\n{s.brand_identity}\n\n"
            f"[bold]Creative Brief:[/bold]\n{s.creative_brief}",
            title="Strategist",
        ))

    if output.copywriting:
        c = output.copywriting
        lines = [f"[bold]Ad Copy {i + 1}:[/bold] {ad.title}\n{ad.body}" for i, ad in enumerate(c.ad_copy)]
        lines.append("[bold]Social Media Captions:[/bold]")
        lines.extend(f"  • {caption}" for caption in c.social_media_captions)
        lines.append(f"[bold]Blog Post:[/bold] {c.blog_post.title}\n{c.blog_post.content}")
        console.print(Panel("\n".join(lines), title="Copywriter"))

    if output.visuals:
        v = output.visuals
        swatches = "  ".join(f"[on {color}]    [/] {color}" for color in v.color_palette)
        logo_path = file_mgr.save_image(run.run_id, "logo", v.logo)
        image_paths = [
            file_mgr.save_image(run.run_id, f"marketing_{i}", image)
            for i, image in enumerate(v.marketing_images)
        ]
        console.print(Panel(
            f"[bold]Color Palette:[/bold] {swatches}\n"
            f"[bold]Logo:[/bold] {logo_path}\n"
            + "\n".join(f"[bold]Marketing Image {i + 1}:[/bold] {p}" for i, p in enumerate(image_paths)),
            title="Visual Artist",
        ))

    if output.video:
        console.print(Panel(
            f"[bold]Video:[/bold] {output.video.local_path or output.video.video_url}",
            title="Video Editor",
        ))


async def _generate_async(
    prompt: str, client: GenerationClient, file_mgr: FileManager,
) -> PipelineRun:
    """Run the pipeline with a live status table; returns the final snapshot."""
    orchestrator = PipelineOrchestrator(client)

    with Live(render_status_table(orchestrator.tracker.snapshot()), console=console, refresh_per_second=4) as live:
        unsubscribe = orchestrator.subscribe(lambda run: live.update(render_status_table(run)))
        try:
            await orchestrator.run_pipeline(prompt)
        except CampaignPipelineError as e:
            # Reported below from the run's failure_message
            logger.debug(f"Pipeline ended with {type(e).__name__}: {e}")
        finally:
            unsubscribe()

    run = orchestrator.tracker.snapshot()
    _print_results(run, file_mgr)
    return run


@app.command()
def generate(
    prompt: str = typer.Argument(..., help="Campaign concept, e.g. 'Launch a citrus soda brand'"),
    poll_interval: Optional[float] = typer.Option(
        None, "--poll-interval", help="Seconds between video status checks",
    ),
):
    """Generate a full marketing campaign from a concept.

    Runs strategy, copy, visuals and video stages in order, showing live
    status for each agent.
    """
    if not prompt.strip():
        console.print("[red]Error:[/red] Please enter a campaign idea.")
        raise typer.Exit(code=1)

    # Fail-fast credential validation
    try:
        validate_credentials()
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise typer.Exit(code=1)

    if poll_interval is not None:
        settings.pipeline.video_poll_interval = poll_interval

    file_mgr = FileManager()
    client = GeminiGenerationClient(file_manager=file_mgr)

    try:
        run = asyncio.run(_generate_async(prompt, client, file_mgr))
    except KeyboardInterrupt:
        console.print()
        console.print("[yellow]Campaign interrupted.[/yellow]")
        raise typer.Exit(code=130)

    if run.failure_message:
        console.print(f"[red]✗ {run.failure_message}[/red]")
        raise typer.Exit(code=1)

    console.print("[green]✓[/green] Campaign complete!")


@app.command("config")
def show_config():
    """Show the resolved configuration (secrets masked)."""
    table = Table(title="campaignpipe configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    data = settings.model_dump()
    if data["google_cloud"].get("api_key"):
        data["google_cloud"]["api_key"] = "****" + data["google_cloud"]["api_key"][-4:]
    for section, values in data.items():
        for key, value in values.items():
            table.add_row(f"{section}.{key}", str(value))

    console.print(table)


if __name__ == "__main__":
    app()
