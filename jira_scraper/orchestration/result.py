"""Scrape result data structures."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ScrapeState(str, Enum):
    """States of the per-project scraping state machine"""

    INIT = "init"
    FETCHING = "fetching"
    PROCESSING_PAGE = "processing_page"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class SourceResult:
    """Outcome of scraping one project.

    ``skipped_ranges`` lists the ``[start, end)`` offsets of pages that
    could not be read and were stepped over.
    """

    source_key: str
    run_epoch: str = ""
    state: ScrapeState = ScrapeState.INIT
    resumed: bool = False
    records_written: int = 0
    records_skipped: int = 0
    pages_fetched: int = 0
    pages_skipped: int = 0
    skipped_ranges: List[Tuple[int, int]] = field(default_factory=list)
    cursor_offset: int = 0
    records_processed: int = 0
    chunk_index: int = 1
    output_files: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def add_output_file(self, path: str) -> None:
        if path not in self.output_files:
            self.output_files.append(path)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "source_key": self.source_key,
            "run_epoch": self.run_epoch,
            "state": self.state.value,
            "resumed": self.resumed,
            "records_written": self.records_written,
            "records_skipped": self.records_skipped,
            "pages_fetched": self.pages_fetched,
            "pages_skipped": self.pages_skipped,
            "skipped_ranges": [list(r) for r in self.skipped_ranges],
            "cursor_offset": self.cursor_offset,
            "records_processed": self.records_processed,
            "chunk_index": self.chunk_index,
            "output_files": self.output_files,
            "error": self.error,
        }


@dataclass
class ScrapeResult:
    """Result of a multi-project run.

    Aggregates per-project results; paused projects are resumable by
    running the same command again.
    """

    sources: List[SourceResult] = field(default_factory=list)

    @property
    def completed(self) -> List[str]:
        return [s.source_key for s in self.sources if s.state == ScrapeState.DONE]

    @property
    def paused(self) -> List[str]:
        return [s.source_key for s in self.sources if s.state == ScrapeState.ABORTED]

    @property
    def records_written(self) -> int:
        return sum(s.records_written for s in self.sources)

    @property
    def output_files(self) -> List[str]:
        return [f for s in self.sources for f in s.output_files]

    def add(self, source_result: SourceResult) -> None:
        self.sources.append(source_result)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "completed": self.completed,
            "paused": self.paused,
            "records_written": self.records_written,
            "output_files": self.output_files,
            "sources": [s.to_dict() for s in self.sources],
        }
