"""
Checkpoint service for resumable scraping.

Persists one progress document per project so an interrupted run can
resume from its last saved offset. Uses atomic file writes to prevent
corruption.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

import structlog

from jira_scraper.models.checkpoint import Checkpoint, CheckpointConfig
from jira_scraper.observability.metrics import CHECKPOINT_OPERATIONS

logger = structlog.get_logger()

CHECKPOINT_SUFFIX = "_checkpoint.json"


class CheckpointService:
    """
    Manage per-project checkpoints for resume capability.

    Persistence is best-effort: failures are logged and reported through
    return values, never raised to the caller.
    """

    def __init__(self, config: CheckpointConfig):
        """
        Initialize checkpoint service.

        Args:
            config: Checkpoint configuration
        """
        self.config = config
        self.checkpoint_dir = Path(config.checkpoint_dir)

        try:
            self.checkpoint_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(
                "checkpoint_dir_create_error",
                checkpoint_dir=str(self.checkpoint_dir),
                error=str(e),
            )

        logger.debug(
            "checkpoint_service_initialized",
            checkpoint_dir=str(self.checkpoint_dir),
            interval=config.checkpoint_interval,
        )

    def load(self, source_key: str) -> Optional[Checkpoint]:
        """
        Load checkpoint for a project.

        Args:
            source_key: Project key

        Returns:
            Checkpoint if a readable one exists, None otherwise
        """
        checkpoint_file = self._get_checkpoint_path(source_key)

        if not checkpoint_file.exists():
            logger.info("no_checkpoint_found", source_key=source_key)
            return None

        try:
            checkpoint = Checkpoint.model_validate_json(
                checkpoint_file.read_text(encoding="utf-8")
            )
        except Exception as e:
            CHECKPOINT_OPERATIONS.labels(operation="load", status="failed").inc()
            logger.error(
                "checkpoint_load_error",
                source_key=source_key,
                path=str(checkpoint_file),
                error=str(e),
            )
            return None

        CHECKPOINT_OPERATIONS.labels(operation="load", status="success").inc()
        logger.info(
            "checkpoint_loaded",
            source_key=source_key,
            cursor_offset=checkpoint.cursor_offset,
            records_processed=checkpoint.records_processed,
            chunk_index=checkpoint.chunk_index,
        )
        return checkpoint

    def save(self, checkpoint: Checkpoint) -> bool:
        """
        Save checkpoint atomically, replacing any previous one.

        Args:
            checkpoint: Progress to persist; ``saved_at`` is refreshed

        Returns:
            True if saved successfully
        """
        checkpoint_file = self._get_checkpoint_path(checkpoint.source_key)
        temp_file = checkpoint_file.with_suffix(".tmp")

        try:
            checkpoint.saved_at = datetime.now()

            # Atomic write: write to temp file, then rename
            temp_file.write_text(
                checkpoint.model_dump_json(indent=2), encoding="utf-8"
            )
            temp_file.replace(checkpoint_file)

        except Exception as e:
            CHECKPOINT_OPERATIONS.labels(operation="save", status="failed").inc()
            logger.error(
                "checkpoint_save_error",
                source_key=checkpoint.source_key,
                error=str(e),
            )
            return False

        CHECKPOINT_OPERATIONS.labels(operation="save", status="success").inc()
        logger.info(
            "checkpoint_saved",
            source_key=checkpoint.source_key,
            cursor_offset=checkpoint.cursor_offset,
            records_processed=checkpoint.records_processed,
        )
        return True

    def delete(self, source_key: str) -> bool:
        """
        Delete checkpoint for a project, marking its run as complete.

        Args:
            source_key: Project key

        Returns:
            True if no checkpoint remains
        """
        checkpoint_file = self._get_checkpoint_path(source_key)

        if not checkpoint_file.exists():
            return True

        try:
            checkpoint_file.unlink()
        except OSError as e:
            CHECKPOINT_OPERATIONS.labels(operation="delete", status="failed").inc()
            logger.error(
                "checkpoint_delete_error",
                source_key=source_key,
                error=str(e),
            )
            return False

        CHECKPOINT_OPERATIONS.labels(operation="delete", status="success").inc()
        logger.info("checkpoint_deleted", source_key=source_key)
        return True

    def exists(self, source_key: str) -> bool:
        """Whether an unfinished run is recorded for the project"""
        return self._get_checkpoint_path(source_key).exists()

    def list_sources(self) -> List[str]:
        """
        List project keys with a pending checkpoint.

        Returns:
            Sorted list of project keys
        """
        try:
            return sorted(
                f.name[: -len(CHECKPOINT_SUFFIX)]
                for f in self.checkpoint_dir.glob(f"*{CHECKPOINT_SUFFIX}")
            )
        except OSError as e:
            logger.error("checkpoint_list_error", error=str(e))
            return []

    def _get_checkpoint_path(self, source_key: str) -> Path:
        """Get checkpoint file path for a project"""
        return self.checkpoint_dir / f"{source_key}{CHECKPOINT_SUFFIX}"
