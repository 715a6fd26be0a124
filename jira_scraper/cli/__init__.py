"""Jira scraper CLI package.

Usage:
    python -m jira_scraper.cli run --projects KAFKA,SPARK
    python -m jira_scraper.cli status
    python -m jira_scraper.cli reset KAFKA
    python -m jira_scraper.cli fetch-issue KAFKA-1234
    python -m jira_scraper.cli validate config/scraper_config.yaml
"""

import typer

from jira_scraper.cli.run import run_command
from jira_scraper.cli.checkpoints import reset_command, status_command
from jira_scraper.cli.fetch_issue import fetch_issue_command
from jira_scraper.cli.validate import validate_command

app = typer.Typer(help="Resumable Jira scraper producing JSONL training data")

app.command(name="run")(run_command)
app.command(name="status")(status_command)
app.command(name="reset")(reset_command)
app.command(name="fetch-issue")(fetch_issue_command)
app.command(name="validate")(validate_command)

__all__ = [
    "app",
    "run_command",
    "status_command",
    "reset_command",
    "fetch_issue_command",
    "validate_command",
]
