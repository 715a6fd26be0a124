"""Size-bounded JSONL output.

Appends one serialized record per line to the current chunk file and
starts a new chunk once the file reaches the configured size. Every
line is flushed as soon as it is written. No file is created until the
first record arrives.
"""

import re
from pathlib import Path
from typing import IO, List, Optional

import structlog

from jira_scraper.observability.metrics import CHUNK_ROTATIONS
from jira_scraper.utils.exceptions import OutputWriteError

logger = structlog.get_logger()

OUTPUT_EXTENSION = "jsonl"


def chunk_filename(source_key: str, run_epoch: str, chunk_index: int) -> str:
    """File name for a chunk; chunk 1 carries no index suffix"""
    if chunk_index == 1:
        return f"{source_key}_{run_epoch}.{OUTPUT_EXTENSION}"
    return f"{source_key}_{run_epoch}_chunk_{chunk_index:03d}.{OUTPUT_EXTENSION}"


def find_chunk_files(output_dir: Path, source_key: str) -> List[Path]:
    """Chunk files of every run of a project, oldest run first"""
    pattern = re.compile(
        rf"^{re.escape(source_key)}_\d{{8}}_\d{{6}}(_chunk_\d{{3}})?\.{OUTPUT_EXTENSION}$"
    )
    output_dir = Path(output_dir)
    if not output_dir.is_dir():
        return []
    return sorted(p for p in output_dir.iterdir() if pattern.match(p.name))


class ChunkedWriter:
    """Append-only writer that rotates files past ``max_chunk_bytes``.

    Rotation is checked before a record is written, never mid-record.
    """

    def __init__(
        self,
        output_dir: Path,
        source_key: str,
        run_epoch: str,
        max_chunk_bytes: int,
        chunk_index: int = 1,
        resume: bool = False,
    ):
        """
        Args:
            output_dir: Directory receiving the chunk files
            source_key: Project key, first part of the file name
            run_epoch: Run token, second part of the file name
            max_chunk_bytes: Size at which the next write starts a new chunk
            chunk_index: 1-based chunk to open first
            resume: Reopen the chunk in append mode instead of truncating it
                on the first write
        """
        if max_chunk_bytes <= 0:
            raise ValueError("max_chunk_bytes must be positive")

        self.output_dir = Path(output_dir)
        self.source_key = source_key
        self.run_epoch = run_epoch
        self.max_chunk_bytes = max_chunk_bytes
        self.chunk_index = chunk_index
        self._file: Optional[IO[bytes]] = None
        self._append = resume
        self._closed = False

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputWriteError(f"Cannot create output directory: {e}") from e

    @property
    def path(self) -> Path:
        return self.output_dir / chunk_filename(
            self.source_key, self.run_epoch, self.chunk_index
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def current_size(self) -> int:
        """Bytes in the current chunk file"""
        if self._file is None:
            return 0
        return self._file.tell()

    def write(self, line: str) -> None:
        """Append one serialized record and flush it.

        Raises:
            OutputWriteError: The writer is closed or the file system failed
        """
        if self._closed:
            raise OutputWriteError(f"Writer for {self.path.name} is closed")

        if self._file is None:
            self._open(append=self._append)
        if self.current_size() >= self.max_chunk_bytes:
            self._rotate()

        try:
            self._file.write(line.encode("utf-8") + b"\n")
            self._file.flush()
        except OSError as e:
            raise OutputWriteError(f"Failed to write to {self.path}: {e}") from e

    def close(self) -> None:
        """Close the current chunk file; safe to call twice"""
        self._closed = True
        self._close_file()

    def _close_file(self) -> None:
        if self._file is None:
            return
        try:
            self._file.close()
        except OSError as e:
            logger.error("chunk_close_error", path=str(self.path), error=str(e))
        finally:
            self._file = None

    def _rotate(self) -> None:
        previous = self.path
        size = self.current_size()
        self._close_file()
        self.chunk_index += 1
        self._open(append=False)

        CHUNK_ROTATIONS.inc()
        logger.info(
            "chunk_rotated",
            source_key=self.source_key,
            previous_file=previous.name,
            previous_size_bytes=size,
            new_file=self.path.name,
            chunk_index=self.chunk_index,
        )

    def _open(self, append: bool) -> None:
        path = self.path
        try:
            self._file = open(path, "ab" if append else "wb")
        except OSError as e:
            raise OutputWriteError(f"Failed to open {path}: {e}") from e

        logger.info(
            "chunk_opened",
            path=str(path),
            chunk_index=self.chunk_index,
            mode="append" if append else "create",
        )

    def __enter__(self) -> "ChunkedWriter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
