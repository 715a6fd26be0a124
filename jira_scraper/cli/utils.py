"""Shared CLI utilities.

Provides common functionality for all CLI commands.
"""

import functools
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TypeVar

import structlog
import typer

from jira_scraper.models.config import ScraperConfig
from jira_scraper.observability.context import clear_correlation_id, set_correlation_id
from jira_scraper.observability.logging import configure_logging
from jira_scraper.services.config_manager import ConfigManager, ConfigValidationError

logger = structlog.get_logger()

# Type variable for decorator
F = TypeVar("F", bound=Callable)


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ScraperConfig:
    """Load and validate configuration.

    Args:
        config_path: Optional YAML file; defaults apply when omitted.
        overrides: Nested values from command-line flags.

    Returns:
        Validated ScraperConfig.

    Raises:
        typer.Exit: If configuration is invalid.
    """
    config_manager = ConfigManager(
        config_path=str(config_path) if config_path else None
    )
    try:
        return config_manager.load_config(overrides=overrides)
    except (FileNotFoundError, ConfigValidationError) as e:
        typer.secho(f"Configuration Error: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


def prune_none(values: Dict[str, Any]) -> Dict[str, Any]:
    """Drop unset flags so they do not mask file values.

    Nested sections left empty are dropped as well.
    """
    pruned: Dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, dict):
            value = prune_none(value)
            if not value:
                continue
        elif value is None:
            continue
        pruned[key] = value
    return pruned


def setup_logging(config: ScraperConfig) -> str:
    """Configure logging for a command and start a new correlation id.

    Returns:
        The correlation id of this invocation.
    """
    configure_logging(level=config.log_level, json_output=config.json_logs)
    return set_correlation_id()


def handle_errors(func: F) -> F:
    """Decorator for consistent error handling.

    Catches exceptions and displays user-friendly error messages. The
    correlation id set by the command ends with it.

    Args:
        func: Function to wrap.

    Returns:
        Wrapped function with error handling.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (typer.Exit, typer.Abort):
            raise
        except Exception as e:
            logger.exception("command_failed")
            typer.secho(f"Error: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        finally:
            clear_correlation_id()

    return wrapper  # type: ignore[return-value]


def display_success(message: str) -> None:
    typer.secho(message, fg=typer.colors.GREEN)


def display_warning(message: str) -> None:
    typer.secho(message, fg=typer.colors.YELLOW)


def display_error(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED)


def display_info(message: str) -> None:
    typer.secho(message, fg=typer.colors.CYAN)
