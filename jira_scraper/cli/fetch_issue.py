"""Fetch-issue command.

Fetches a single issue and prints the training record it produces.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from jira_scraper.cli.utils import handle_errors, load_config, prune_none, setup_logging
from jira_scraper.models.config import ScraperConfig
from jira_scraper.models.training import TrainingRecord
from jira_scraper.services.jira_client import JiraApiClient
from jira_scraper.services.transformation_service import TransformationService
from jira_scraper.utils.exceptions import RetryExhaustedError, TerminalRequestError


async def fetch_record(config: ScraperConfig, issue_key: str) -> TrainingRecord:
    async with JiraApiClient(config.api, config.retry) as client:
        issue = await client.get_issue(issue_key)
    return TransformationService().transform(issue)


@handle_errors
def fetch_issue_command(
    issue_key: str = typer.Argument(..., help="Issue key, e.g. KAFKA-1234"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to scraper config YAML"
    ),
    jira_url: Optional[str] = typer.Option(None, "--jira-url", help="Jira base URL"),
):
    """Fetch one issue and print its training record as JSON."""
    config = load_config(config_path, prune_none({"api": {"base_url": jira_url}}))
    setup_logging(config)

    try:
        record = asyncio.run(fetch_record(config, issue_key.strip().upper()))
    except (RetryExhaustedError, TerminalRequestError) as e:
        typer.secho(f"Could not fetch {issue_key}: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    typer.echo(record.model_dump_json(indent=2))
