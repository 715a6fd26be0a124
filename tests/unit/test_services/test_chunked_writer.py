"""Unit tests for the size-bounded JSONL writer"""

import json
from unittest.mock import MagicMock

import pytest

from jira_scraper.services.chunked_writer import (
    ChunkedWriter,
    chunk_filename,
    find_chunk_files,
)
from jira_scraper.utils.exceptions import OutputWriteError

EPOCH = "20240101_120000"


def line(n: int) -> str:
    """A 39-character JSON line, 40 bytes with its newline"""
    text = json.dumps({"n": n, "pad": ""})
    return json.dumps({"n": n, "pad": "x" * (39 - len(text))})


def read_lines(path):
    return path.read_text(encoding="utf-8").splitlines()


class TestChunkFilename:
    def test_first_chunk_has_no_suffix(self):
        assert chunk_filename("KAFKA", EPOCH, 1) == "KAFKA_20240101_120000.jsonl"

    def test_later_chunks_are_zero_padded(self):
        assert chunk_filename("KAFKA", EPOCH, 2) == (
            "KAFKA_20240101_120000_chunk_002.jsonl"
        )
        assert chunk_filename("KAFKA", EPOCH, 12) == (
            "KAFKA_20240101_120000_chunk_012.jsonl"
        )


class TestFindChunkFiles:
    def test_matches_only_project_chunks(self, tmp_path):
        for name in [
            "KAFKA_20240101_120000.jsonl",
            "KAFKA_20240101_120000_chunk_002.jsonl",
            "KAFKAX_20240101_120000.jsonl",
            "SPARK_20240101_120000.jsonl",
            "KAFKA_notes.txt",
        ]:
            (tmp_path / name).write_text("")

        assert [p.name for p in find_chunk_files(tmp_path, "KAFKA")] == [
            "KAFKA_20240101_120000.jsonl",
            "KAFKA_20240101_120000_chunk_002.jsonl",
        ]

    def test_missing_directory(self, tmp_path):
        assert find_chunk_files(tmp_path / "absent", "KAFKA") == []


class TestChunkedWriter:
    def test_line_helper_is_forty_bytes(self):
        assert len(line(7).encode("utf-8")) + 1 == 40

    def test_creates_first_chunk(self, tmp_path):
        with ChunkedWriter(tmp_path / "out", "KAFKA", EPOCH, 1024) as writer:
            writer.write(line(1))
            assert writer.path.name == "KAFKA_20240101_120000.jsonl"

        assert read_lines(tmp_path / "out" / "KAFKA_20240101_120000.jsonl") == [line(1)]

    def test_no_file_before_first_write(self, tmp_path):
        writer = ChunkedWriter(tmp_path, "KAFKA", EPOCH, 1024)
        assert find_chunk_files(tmp_path, "KAFKA") == []

        writer.close()

        assert find_chunk_files(tmp_path, "KAFKA") == []
        assert writer.closed

    def test_resume_rotates_full_chunk(self, tmp_path):
        (tmp_path / "KAFKA_20240101_120000.jsonl").write_text(
            line(1) + "\n" + line(2) + "\n"
        )

        writer = ChunkedWriter(tmp_path, "KAFKA", EPOCH, 80, resume=True)
        writer.write(line(3))
        writer.close()

        assert writer.chunk_index == 2
        assert read_lines(tmp_path / "KAFKA_20240101_120000.jsonl") == [line(1), line(2)]
        assert read_lines(writer.path) == [line(3)]

    def test_each_line_is_flushed(self, tmp_path):
        writer = ChunkedWriter(tmp_path, "KAFKA", EPOCH, 1024)
        writer.write(line(1))
        # Visible on disk before close
        assert read_lines(writer.path) == [line(1)]
        writer.close()

    def test_rotates_exactly_once_past_limit(self, tmp_path):
        writer = ChunkedWriter(tmp_path, "KAFKA", EPOCH, max_chunk_bytes=100)
        for n in range(5):
            writer.write(line(n))
        writer.close()

        first = tmp_path / "KAFKA_20240101_120000.jsonl"
        second = tmp_path / "KAFKA_20240101_120000_chunk_002.jsonl"
        # 40 + 40 + 40 crosses 100 bytes; the next record starts chunk 2
        assert read_lines(first) == [line(0), line(1), line(2)]
        assert read_lines(second) == [line(3), line(4)]
        assert writer.chunk_index == 2
        assert len(find_chunk_files(tmp_path, "KAFKA")) == 2

    def test_record_never_split_across_chunks(self, tmp_path):
        writer = ChunkedWriter(tmp_path, "KAFKA", EPOCH, max_chunk_bytes=10)
        writer.write(line(0))
        writer.write(line(1))
        writer.close()

        for path in find_chunk_files(tmp_path, "KAFKA"):
            for text in read_lines(path):
                json.loads(text)

    def test_resume_appends_to_current_chunk(self, tmp_path):
        writer = ChunkedWriter(tmp_path, "KAFKA", EPOCH, 1024)
        writer.write(line(1))
        writer.write(line(2))
        writer.close()

        resumed = ChunkedWriter(tmp_path, "KAFKA", EPOCH, 1024, resume=True)
        resumed.write(line(3))
        resumed.close()

        assert read_lines(resumed.path) == [line(1), line(2), line(3)]

    def test_resume_at_later_chunk(self, tmp_path):
        (tmp_path / "KAFKA_20240101_120000.jsonl").write_text(line(1) + "\n")

        writer = ChunkedWriter(
            tmp_path, "KAFKA", EPOCH, 1024, chunk_index=2, resume=True
        )
        writer.write(line(2))
        writer.close()

        assert writer.path.name == "KAFKA_20240101_120000_chunk_002.jsonl"
        assert read_lines(tmp_path / "KAFKA_20240101_120000.jsonl") == [line(1)]

    def test_fresh_run_truncates(self, tmp_path):
        (tmp_path / "KAFKA_20240101_120000.jsonl").write_text("stale\n")

        writer = ChunkedWriter(tmp_path, "KAFKA", EPOCH, 1024)
        writer.write(line(1))
        writer.close()

        assert read_lines(writer.path) == [line(1)]

    def test_current_size(self, tmp_path):
        writer = ChunkedWriter(tmp_path, "KAFKA", EPOCH, 1024)
        assert writer.current_size() == 0
        writer.write(line(1))
        assert writer.current_size() == 40
        writer.close()
        assert writer.current_size() == 0

    def test_utf8_content(self, tmp_path):
        writer = ChunkedWriter(tmp_path, "KAFKA", EPOCH, 1024)
        writer.write(json.dumps({"title": "Größe"}, ensure_ascii=False))
        writer.close()
        assert json.loads(read_lines(writer.path)[0])["title"] == "Größe"

    def test_close_is_idempotent(self, tmp_path):
        writer = ChunkedWriter(tmp_path, "KAFKA", EPOCH, 1024)
        writer.close()
        writer.close()
        assert writer.closed

    def test_write_after_close_raises(self, tmp_path):
        writer = ChunkedWriter(tmp_path, "KAFKA", EPOCH, 1024)
        writer.close()
        with pytest.raises(OutputWriteError):
            writer.write(line(1))

    def test_write_failure_raises_output_error(self, tmp_path):
        writer = ChunkedWriter(tmp_path, "KAFKA", EPOCH, 1024)
        broken = MagicMock()
        broken.tell.return_value = 0
        broken.write.side_effect = OSError("No space left on device")
        writer._file = broken

        with pytest.raises(OutputWriteError, match="No space left"):
            writer.write(line(1))

    def test_unusable_output_dir_raises(self, tmp_path):
        blocker = tmp_path / "out"
        blocker.write_text("not a directory")

        with pytest.raises(OutputWriteError):
            ChunkedWriter(blocker, "KAFKA", EPOCH, 1024)

    def test_rejects_non_positive_limit(self, tmp_path):
        with pytest.raises(ValueError):
            ChunkedWriter(tmp_path, "KAFKA", EPOCH, 0)
