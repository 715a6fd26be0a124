"""Run command for the scraper.

Handles scrape execution and result display.
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from jira_scraper.cli.utils import (
    display_info,
    display_success,
    display_warning,
    handle_errors,
    load_config,
    prune_none,
    setup_logging,
)
from jira_scraper.models.config import ScraperConfig
from jira_scraper.observability.metrics import write_metrics_file
from jira_scraper.orchestration import ScrapeOrchestrator, ScrapeResult, ScrapeState
from jira_scraper.services.jira_client import JiraApiClient

# Exit code when at least one project paused and can be resumed
EXIT_PAUSED = 2


def parse_projects(value: Optional[str]) -> Optional[List[str]]:
    """Split a comma-separated project list, ignoring blanks"""
    if value is None:
        return None
    keys = [part.strip() for part in value.split(",") if part.strip()]
    return keys or None


@handle_errors
def run_command(
    projects: Optional[str] = typer.Option(
        None,
        "--projects",
        "-p",
        help="Comma-separated Jira project keys, e.g. KAFKA,SPARK",
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to scraper config YAML"
    ),
    jira_url: Optional[str] = typer.Option(
        None, "--jira-url", help="Jira base URL"
    ),
    page_size: Optional[int] = typer.Option(
        None, "--page-size", help="Issues requested per page"
    ),
    rate_limit: Optional[float] = typer.Option(
        None, "--rate-limit", help="Maximum requests per second"
    ),
    max_retries: Optional[int] = typer.Option(
        None, "--max-retries", help="Attempts per request, including the first"
    ),
    connect_timeout: Optional[int] = typer.Option(
        None, "--connect-timeout", help="Connect timeout in seconds"
    ),
    read_timeout: Optional[int] = typer.Option(
        None, "--read-timeout", help="Read timeout in seconds"
    ),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", "-o", help="Directory for JSONL output"
    ),
    max_file_size: Optional[float] = typer.Option(
        None, "--max-file-size", help="Chunk size in MB before rotating"
    ),
    checkpoint_dir: Optional[Path] = typer.Option(
        None, "--checkpoint-dir", help="Directory for checkpoint files"
    ),
    checkpoint_interval: Optional[int] = typer.Option(
        None, "--checkpoint-interval", help="Records between checkpoint saves"
    ),
    start_date: Optional[str] = typer.Option(
        None, "--start-date", help="Only issues created on/after YYYY-MM-DD"
    ),
    end_date: Optional[str] = typer.Option(
        None, "--end-date", help="Only issues created on/before YYYY-MM-DD"
    ),
    rescrape: bool = typer.Option(
        False,
        "--rescrape",
        help="Start a new run even for projects that already finished",
    ),
    metrics_file: Optional[Path] = typer.Option(
        None, "--metrics-file", help="Write Prometheus metrics here after the run"
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
    console_logs: bool = typer.Option(
        False, "--console-logs", help="Human-readable logs instead of JSON"
    ),
):
    """Scrape Jira projects into JSONL training data, resuming unfinished runs."""
    overrides: Dict[str, Any] = prune_none(
        {
            "projects": parse_projects(projects),
            "api": {
                "base_url": jira_url,
                "page_size": page_size,
                "max_requests_per_second": rate_limit,
                "connect_timeout_seconds": connect_timeout,
                "read_timeout_seconds": read_timeout,
            },
            "retry": {"max_retries": max_retries},
            "output": {
                "output_dir": str(output_dir) if output_dir else None,
                "max_chunk_size_mb": max_file_size,
            },
            "checkpoint": {
                "checkpoint_dir": str(checkpoint_dir) if checkpoint_dir else None,
                "checkpoint_interval": checkpoint_interval,
            },
            "date_range": {"start_date": start_date, "end_date": end_date},
            "log_level": log_level,
            "json_logs": False if console_logs else None,
        }
    )

    config = load_config(config_path, overrides)
    if not config.projects:
        typer.secho(
            "No projects given. Use --projects or list them in the config file.",
            fg=typer.colors.RED,
        )
        raise typer.Exit(code=1)

    setup_logging(config)
    display_info(f"Scraping {', '.join(config.projects)} from {config.api.base_url}")

    try:
        result = asyncio.run(scrape(config, rescrape=rescrape))
    finally:
        if metrics_file:
            write_metrics_file(metrics_file)

    _display_results(result)

    if result.paused:
        display_warning(
            f"\nPaused: {', '.join(result.paused)}. "
            "Progress is checkpointed; rerun the same command to resume."
        )
        raise typer.Exit(code=EXIT_PAUSED)


async def scrape(config: ScraperConfig, rescrape: bool = False) -> ScrapeResult:
    """Scrape every configured project with one shared client"""
    async with JiraApiClient(config.api, config.retry) as client:
        orchestrator = ScrapeOrchestrator(config, client)
        return await orchestrator.scrape_sources(config.projects, rescrape=rescrape)


def _display_results(result: ScrapeResult) -> None:
    typer.echo("")
    typer.secho("Scrape finished", fg=typer.colors.GREEN, bold=True)
    for source in result.sources:
        label = "done" if source.state == ScrapeState.DONE else "paused"
        typer.echo(
            f"  {source.source_key}: {label}, "
            f"{source.records_written} written, "
            f"{source.records_skipped} skipped records, "
            f"{source.pages_skipped} skipped pages"
        )
        for start, end in source.skipped_ranges:
            typer.echo(f"    skipped offsets {start}-{end - 1}")
        if source.error:
            typer.echo(f"    reason: {source.error}")

    typer.echo(f"  Records written: {result.records_written}")
    if result.output_files:
        typer.echo("\nOutput files:")
        for f in result.output_files:
            typer.echo(f"  - {f}")

    if not result.paused:
        display_success("\nAll projects complete.")
