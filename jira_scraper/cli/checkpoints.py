"""Checkpoint commands.

Shows and clears the per-project resume state.
"""

from pathlib import Path
from typing import Optional

import typer

from jira_scraper.cli.utils import (
    display_error,
    display_success,
    display_warning,
    handle_errors,
    load_config,
    prune_none,
)
from jira_scraper.services.checkpoint_service import CheckpointService


def _checkpoint_service(
    config_path: Optional[Path], checkpoint_dir: Optional[Path]
) -> CheckpointService:
    overrides = prune_none(
        {"checkpoint": {"checkpoint_dir": str(checkpoint_dir) if checkpoint_dir else None}}
    )
    config = load_config(config_path, overrides)
    return CheckpointService(config.checkpoint)


@handle_errors
def status_command(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to scraper config YAML"
    ),
    checkpoint_dir: Optional[Path] = typer.Option(
        None, "--checkpoint-dir", help="Directory for checkpoint files"
    ),
):
    """List projects with an unfinished run."""
    service = _checkpoint_service(config_path, checkpoint_dir)
    sources = service.list_sources()

    if not sources:
        display_success("No pending checkpoints.")
        return

    typer.echo(f"{len(sources)} project(s) can be resumed:")
    for source_key in sources:
        checkpoint = service.load(source_key)
        if checkpoint is None:
            display_warning(f" - {source_key}: checkpoint unreadable")
            continue
        typer.echo(
            f" - {source_key}: offset {checkpoint.cursor_offset}, "
            f"{checkpoint.records_processed} records, "
            f"chunk {checkpoint.chunk_index}, run {checkpoint.run_epoch}, "
            f"saved {checkpoint.saved_at.isoformat(timespec='seconds')}"
        )


@handle_errors
def reset_command(
    project: str = typer.Argument(..., help="Project key whose checkpoint to delete"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to scraper config YAML"
    ),
    checkpoint_dir: Optional[Path] = typer.Option(
        None, "--checkpoint-dir", help="Directory for checkpoint files"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a project's checkpoint so its next run starts over."""
    project = project.strip().upper()
    service = _checkpoint_service(config_path, checkpoint_dir)

    if not service.exists(project):
        display_warning(f"No checkpoint for {project}")
        return

    if not yes:
        typer.confirm(f"Discard resume state for {project}?", abort=True)

    if service.delete(project):
        display_success(f"Checkpoint for {project} deleted")
    else:
        display_error(f"Failed to delete checkpoint for {project}")
        raise typer.Exit(code=1)
