"""Unit tests for configuration and checkpoint models"""

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from jira_scraper.models.checkpoint import (
    Checkpoint,
    CheckpointConfig,
    new_run_epoch,
)
from jira_scraper.models.config import (
    ApiSettings,
    DateRange,
    OutputSettings,
    RetryConfig,
    ScraperConfig,
)


class TestScraperConfig:
    def test_defaults(self):
        config = ScraperConfig()
        assert config.projects == []
        assert config.api.base_url == "https://issues.apache.org/jira"
        assert config.api.page_size == 50
        assert config.api.max_requests_per_second == 5
        assert config.retry.max_retries == 3
        assert config.checkpoint.checkpoint_interval == 10
        assert config.output.max_chunk_size_mb == 50
        assert config.max_consecutive_page_skips == 10

    def test_projects_normalized_and_deduplicated(self):
        config = ScraperConfig(projects=[" kafka", "SPARK", "Kafka", ""])
        assert config.projects == ["KAFKA", "SPARK"]

    def test_invalid_project_key_rejected(self):
        with pytest.raises(ValidationError, match="Invalid project key"):
            ScraperConfig(projects=["KAFKA OR project = SPARK"])

    def test_log_level_upper_cased(self):
        assert ScraperConfig(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            ScraperConfig(log_level="chatty")

    def test_nested_sections_from_dict(self):
        config = ScraperConfig(
            api={"page_size": 100},
            retry={"max_retries": 5},
            date_range={"start_date": "2024-01-01"},
        )
        assert config.api.page_size == 100
        assert config.retry.max_retries == 5
        assert config.date_range.start_date == date(2024, 1, 1)


class TestApiSettings:
    def test_trailing_slash_stripped(self):
        assert ApiSettings(base_url="https://jira.example.com/").base_url == (
            "https://jira.example.com"
        )

    def test_scheme_required(self):
        with pytest.raises(ValidationError):
            ApiSettings(base_url="jira.example.com")

    @pytest.mark.parametrize("page_size", [0, 101])
    def test_page_size_bounds(self, page_size):
        with pytest.raises(ValidationError):
            ApiSettings(page_size=page_size)

    def test_rate_must_be_positive(self):
        with pytest.raises(ValidationError):
            ApiSettings(max_requests_per_second=0)


class TestRetryConfig:
    def test_at_least_one_attempt(self):
        with pytest.raises(ValidationError):
            RetryConfig(max_retries=0)

    def test_multiplier_below_one_rejected(self):
        with pytest.raises(ValidationError):
            RetryConfig(backoff_multiplier=0.5)


class TestOutputSettings:
    def test_chunk_bytes(self):
        assert OutputSettings(max_chunk_size_mb=1).max_chunk_bytes == 1024 * 1024

    def test_fractional_megabytes(self):
        assert OutputSettings(max_chunk_size_mb=0.5).max_chunk_bytes == 512 * 1024


class TestDateRange:
    def test_unset_by_default(self):
        assert DateRange().is_set is False

    def test_open_ended_range_is_set(self):
        assert DateRange(end_date=date(2024, 6, 30)).is_set is True

    def test_start_after_end_rejected(self):
        with pytest.raises(ValidationError, match="cannot be after end date"):
            DateRange(start_date=date(2024, 2, 1), end_date=date(2024, 1, 1))

    def test_same_day_allowed(self):
        day = date(2024, 1, 1)
        assert DateRange(start_date=day, end_date=day).is_set


class TestCheckpoint:
    def test_defaults(self):
        checkpoint = Checkpoint(source_key="KAFKA")
        assert checkpoint.cursor_offset == 0
        assert checkpoint.records_processed == 0
        assert checkpoint.chunk_index == 1
        assert checkpoint.last_record_id is None
        assert checkpoint.completed is False
        assert len(checkpoint.run_epoch) == len("20240101_120000")

    def test_negative_offset_rejected_on_assignment(self):
        checkpoint = Checkpoint(source_key="KAFKA")
        with pytest.raises(ValidationError):
            checkpoint.cursor_offset = -1

    def test_chunk_index_is_one_based(self):
        with pytest.raises(ValidationError):
            Checkpoint(source_key="KAFKA", chunk_index=0)

    def test_json_round_trip_keeps_fields(self):
        checkpoint = Checkpoint(
            source_key="KAFKA",
            cursor_offset=150,
            last_record_id="KAFKA-150",
            records_processed=148,
            chunk_index=2,
            run_epoch="20240101_120000",
        )
        restored = Checkpoint.model_validate_json(checkpoint.model_dump_json())
        assert restored == checkpoint

    def test_new_run_epoch_format(self):
        assert new_run_epoch(datetime(2024, 3, 9, 7, 5, 1)) == "20240309_070501"

    def test_checkpoint_config_interval_bounds(self):
        with pytest.raises(ValidationError):
            CheckpointConfig(checkpoint_interval=0)
