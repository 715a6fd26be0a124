"""Resumable per-project scraping.

Drives pagination for one project at a time, writes transformed issues
to size-bounded chunk files and keeps the project's checkpoint current
so an interrupted run resumes where it stopped.

Usage:
    async with JiraApiClient(config.api, config.retry) as client:
        scraper = ScrapeOrchestrator(config, client)
        result = await scraper.scrape_sources(["KAFKA", "SPARK"])
"""

import asyncio
from pathlib import Path
from typing import Iterable, List, Optional, Protocol

import structlog

from jira_scraper.models.checkpoint import Checkpoint
from jira_scraper.models.config import DateRange, ScraperConfig
from jira_scraper.models.issue import JiraIssue, SearchResponse
from jira_scraper.observability.logging import bind_context, unbind_context
from jira_scraper.observability.metrics import PAGES_FETCHED, RECORDS_PROCESSED
from jira_scraper.orchestration.result import ScrapeResult, ScrapeState, SourceResult
from jira_scraper.services.checkpoint_service import CheckpointService
from jira_scraper.services.chunked_writer import ChunkedWriter, find_chunk_files
from jira_scraper.services.transformation_service import TransformationService
from jira_scraper.utils.exceptions import (
    OutputWriteError,
    RetryExhaustedError,
    SourceAbortedError,
    TerminalRequestError,
)

logger = structlog.get_logger()


class IssueSearchClient(Protocol):
    async def search_issues(
        self,
        project_key: str,
        start_at: int,
        max_results: int,
        date_range: Optional[DateRange] = None,
    ) -> SearchResponse: ...


class ScrapeOrchestrator:
    """State machine scraping one project at a time.

    INIT -> FETCHING -> (PROCESSING_PAGE <-> FETCHING) -> DONE, with
    ABORTED reachable from FETCHING and PROCESSING_PAGE.
    """

    def __init__(
        self,
        config: ScraperConfig,
        client: IssueSearchClient,
        checkpoint_service: Optional[CheckpointService] = None,
        transformer: Optional[TransformationService] = None,
    ):
        self.config = config
        self.client = client
        self.checkpoints = checkpoint_service or CheckpointService(config.checkpoint)
        self.transformer = transformer or TransformationService()
        self.output_dir = Path(config.output.output_dir)
        self.page_size = config.api.page_size
        self.checkpoint_interval = config.checkpoint.checkpoint_interval

    async def scrape_sources(
        self, source_keys: Iterable[str], rescrape: bool = False
    ) -> ScrapeResult:
        """Scrape projects sequentially.

        A paused project does not stop the others; it is recorded in the
        result and resumes on the next run.
        """
        result = ScrapeResult()
        for source_key in source_keys:
            try:
                result.add(await self.scrape_source(source_key, rescrape=rescrape))
            except SourceAbortedError as e:
                logger.warning(
                    "source_paused",
                    source_key=source_key,
                    reason=e.reason,
                    cursor_offset=e.cursor_offset,
                    hint="rerun the same command to resume",
                )
                result.add(
                    e.result
                    or SourceResult(
                        source_key=source_key, state=ScrapeState.ABORTED, error=str(e)
                    )
                )
        return result

    async def scrape_source(
        self, source_key: str, rescrape: bool = False
    ) -> SourceResult:
        """Scrape one project to completion or until it must pause.

        Args:
            source_key: Jira project key
            rescrape: Start a new run even if a finished run's output exists

        Returns:
            Result of the completed run

        Raises:
            SourceAbortedError: Run paused; its checkpoint has been saved
        """
        bind_context(source_key=source_key)
        try:
            return await self._run(source_key, rescrape)
        finally:
            unbind_context("source_key")

    async def _run(self, source_key: str, rescrape: bool) -> SourceResult:
        # INIT
        checkpoint = self.checkpoints.load(source_key)
        resumed = checkpoint is not None

        if checkpoint is None:
            previous = find_chunk_files(self.output_dir, source_key)
            if self.checkpoints.exists(source_key):
                # Unreadable checkpoint: the earlier run did not finish
                logger.warning("checkpoint_unusable_restarting", source_key=source_key)
            elif previous and not rescrape:
                logger.info(
                    "source_already_complete",
                    source_key=source_key,
                    output_files=[p.name for p in previous],
                )
                return SourceResult(
                    source_key=source_key,
                    state=ScrapeState.DONE,
                    output_files=[str(p) for p in previous],
                )
            checkpoint = Checkpoint(source_key=source_key)
            # Output without a checkpoint reads as a finished run
            self.checkpoints.save(checkpoint)

        result = SourceResult(
            source_key=source_key,
            run_epoch=checkpoint.run_epoch,
            resumed=resumed,
        )
        self._log_start(checkpoint, resumed)

        try:
            writer = ChunkedWriter(
                self.output_dir,
                source_key,
                checkpoint.run_epoch,
                self.config.output.max_chunk_bytes,
                chunk_index=checkpoint.chunk_index,
                resume=resumed,
            )
        except OutputWriteError as e:
            raise self._abort(checkpoint, result, f"output unavailable: {e}") from e

        try:
            await self._paginate(checkpoint, writer, result)
        except SourceAbortedError:
            raise
        except OutputWriteError as e:
            checkpoint.chunk_index = writer.chunk_index
            raise self._abort(checkpoint, result, f"output write failed: {e}") from e
        except asyncio.CancelledError:
            checkpoint.chunk_index = writer.chunk_index
            self.checkpoints.save(checkpoint)
            logger.warning(
                "source_interrupted",
                source_key=source_key,
                cursor_offset=checkpoint.cursor_offset,
                records_processed=checkpoint.records_processed,
            )
            raise
        except Exception as e:
            checkpoint.chunk_index = writer.chunk_index
            raise self._abort(checkpoint, result, f"unexpected error: {e}") from e
        finally:
            writer.close()

        # DONE
        checkpoint.completed = True
        self.checkpoints.delete(source_key)
        result.state = ScrapeState.DONE
        self._sync(result, checkpoint)
        logger.info(
            "source_completed",
            source_key=source_key,
            records_processed=checkpoint.records_processed,
            chunks=checkpoint.chunk_index,
            pages_skipped=result.pages_skipped,
        )
        return result

    async def _paginate(
        self, checkpoint: Checkpoint, writer: ChunkedWriter, result: SourceResult
    ) -> None:
        source_key = checkpoint.source_key
        total_known: Optional[int] = None
        consecutive_skips = 0
        streak_start = 0
        state = ScrapeState.FETCHING

        while state == ScrapeState.FETCHING:
            start = checkpoint.cursor_offset
            logger.info(
                "fetching_page",
                source_key=source_key,
                start_at=start,
                page_size=self.page_size,
                chunk_index=writer.chunk_index,
            )

            try:
                page = await self.client.search_issues(
                    source_key, start, self.page_size, self.config.date_range
                )
            except RetryExhaustedError as e:
                PAGES_FETCHED.labels(project=source_key, status="aborted").inc()
                checkpoint.chunk_index = writer.chunk_index
                raise self._abort(checkpoint, result, str(e)) from e
            except TerminalRequestError as e:
                # Accepts losing this page rather than stalling on it
                if consecutive_skips == 0:
                    streak_start = start
                consecutive_skips += 1
                checkpoint.cursor_offset = start + self.page_size
                result.pages_skipped += 1
                result.skipped_ranges.append((start, start + self.page_size))
                PAGES_FETCHED.labels(project=source_key, status="skipped").inc()
                logger.warning(
                    "page_skipped",
                    source_key=source_key,
                    start_at=start,
                    end_at=start + self.page_size,
                    status=e.status,
                    error=str(e),
                )

                if consecutive_skips >= self.config.max_consecutive_page_skips:
                    # Rewind so a resumed run retries the whole streak
                    checkpoint.cursor_offset = streak_start
                    checkpoint.chunk_index = writer.chunk_index
                    del result.skipped_ranges[-consecutive_skips:]
                    result.pages_skipped -= consecutive_skips
                    raise self._abort(
                        checkpoint,
                        result,
                        f"{consecutive_skips} consecutive pages could not be read",
                    ) from e
                if total_known is not None and checkpoint.cursor_offset >= total_known:
                    state = ScrapeState.DONE
                continue

            consecutive_skips = 0
            total_known = page.total
            result.pages_fetched += 1
            PAGES_FETCHED.labels(project=source_key, status="success").inc()
            logger.info(
                "page_fetched",
                source_key=source_key,
                start_at=start,
                count=len(page.issues),
                total=page.total,
            )

            if not page.issues:
                state = ScrapeState.DONE
                break

            state = ScrapeState.PROCESSING_PAGE
            self._process_page(page.issues, checkpoint, writer, result)

            # Page-based offset: counts returned issues, skipped ones included
            checkpoint.cursor_offset = start + len(page.issues)
            checkpoint.last_record_id = page.issues[-1].key
            checkpoint.chunk_index = writer.chunk_index
            self.checkpoints.save(checkpoint)

            if checkpoint.cursor_offset >= page.total:
                state = ScrapeState.DONE
            else:
                state = ScrapeState.FETCHING

    def _process_page(
        self,
        issues: List[JiraIssue],
        checkpoint: Checkpoint,
        writer: ChunkedWriter,
        result: SourceResult,
    ) -> None:
        source_key = checkpoint.source_key

        for issue in issues:
            try:
                line = self.transformer.transform(issue).model_dump_json()
            except Exception as e:
                result.records_skipped += 1
                RECORDS_PROCESSED.labels(project=source_key, status="skipped").inc()
                logger.error(
                    "record_skipped",
                    source_key=source_key,
                    issue_key=issue.key,
                    error=str(e),
                )
                continue

            writer.write(line)
            checkpoint.records_processed += 1
            checkpoint.chunk_index = writer.chunk_index
            checkpoint.last_record_id = issue.key
            result.records_written += 1
            result.add_output_file(str(writer.path))
            RECORDS_PROCESSED.labels(project=source_key, status="written").inc()

            # Mid-page saves keep cursor_offset at the page start
            if checkpoint.records_processed % self.checkpoint_interval == 0:
                self.checkpoints.save(checkpoint)

    def _abort(
        self, checkpoint: Checkpoint, result: SourceResult, reason: str
    ) -> SourceAbortedError:
        self.checkpoints.save(checkpoint)
        result.state = ScrapeState.ABORTED
        result.error = reason
        self._sync(result, checkpoint)
        logger.error(
            "source_aborted",
            source_key=checkpoint.source_key,
            cursor_offset=checkpoint.cursor_offset,
            records_processed=checkpoint.records_processed,
            reason=reason,
        )
        return SourceAbortedError(
            checkpoint.source_key,
            reason,
            cursor_offset=checkpoint.cursor_offset,
            result=result,
        )

    @staticmethod
    def _sync(result: SourceResult, checkpoint: Checkpoint) -> None:
        result.cursor_offset = checkpoint.cursor_offset
        result.records_processed = checkpoint.records_processed
        result.chunk_index = checkpoint.chunk_index

    def _log_start(self, checkpoint: Checkpoint, resumed: bool) -> None:
        date_range = self.config.date_range
        if date_range.is_set:
            logger.info(
                "date_filter_active",
                source_key=checkpoint.source_key,
                created_from=str(date_range.start_date) if date_range.start_date else None,
                created_to=str(date_range.end_date) if date_range.end_date else None,
            )

        if resumed:
            logger.info(
                "resuming_from_checkpoint",
                source_key=checkpoint.source_key,
                cursor_offset=checkpoint.cursor_offset,
                records_processed=checkpoint.records_processed,
                chunk_index=checkpoint.chunk_index,
                run_epoch=checkpoint.run_epoch,
            )
        else:
            logger.info(
                "starting_new_run",
                source_key=checkpoint.source_key,
                run_epoch=checkpoint.run_epoch,
            )
