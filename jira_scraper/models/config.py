from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from jira_scraper.models.checkpoint import CheckpointConfig


class ApiSettings(BaseModel):
    """Remote Jira instance and request shaping"""

    base_url: str = Field(
        "https://issues.apache.org/jira", description="Jira base URL"
    )
    max_requests_per_second: float = Field(
        5, gt=0, le=100, description="Request ceiling enforced by the rate limiter"
    )
    page_size: int = Field(50, ge=1, le=100, description="Issues per search page")
    connect_timeout_seconds: int = Field(30, ge=1, le=600)
    read_timeout_seconds: int = Field(60, ge=1, le=600)
    user_agent: str = Field("jira-scraper/1.0", description="User-Agent header")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/")


class RetryConfig(BaseModel):
    """Configuration for retry logic with exponential backoff

    Attempt k (0-indexed) waits min(initial * multiplier^k, max) ms
    before the next attempt.
    """

    max_retries: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Maximum attempts per request, including the first",
    )
    initial_backoff_ms: int = Field(default=1000, ge=0, le=600_000)
    backoff_multiplier: float = Field(default=2.0, ge=1.0, le=10.0)
    max_backoff_ms: int = Field(default=30_000, ge=0, le=3_600_000)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "max_retries": 3,
                "initial_backoff_ms": 1000,
                "backoff_multiplier": 2.0,
                "max_backoff_ms": 30000,
            }
        }
    )


class OutputSettings(BaseModel):
    """Output JSONL location and chunking"""

    output_dir: str = Field("output", description="Directory for JSONL files")
    max_chunk_size_mb: float = Field(
        50, gt=0, description="Rotate to a new chunk file past this size"
    )

    @property
    def max_chunk_bytes(self) -> int:
        return int(self.max_chunk_size_mb * 1024 * 1024)


class DateRange(BaseModel):
    """Inclusive creation-date filter"""

    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("end_date")
    @classmethod
    def validate_date_range(cls, v: Optional[date], info) -> Optional[date]:
        values = info.data
        start = values.get("start_date")
        if v is not None and start is not None and start > v:
            raise ValueError(
                f"Start date ({start}) cannot be after end date ({v})"
            )
        return v

    @property
    def is_set(self) -> bool:
        return self.start_date is not None or self.end_date is not None


class ScraperConfig(BaseModel):
    """Root configuration for a scraping run"""

    projects: List[str] = Field(default_factory=list)
    api: ApiSettings = Field(default_factory=ApiSettings)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    checkpoint: CheckpointConfig = Field(default_factory=CheckpointConfig)
    output: OutputSettings = Field(default_factory=OutputSettings)
    date_range: DateRange = Field(default_factory=DateRange)
    max_consecutive_page_skips: int = Field(
        10,
        ge=1,
        description="Abort a project after this many unreadable pages in a row",
    )
    log_level: str = Field("INFO", description="DEBUG, INFO, WARNING, ERROR")
    json_logs: bool = Field(True, description="JSON output instead of console")

    @field_validator("projects")
    @classmethod
    def normalize_projects(cls, v: List[str]) -> List[str]:
        keys = []
        for key in v:
            key = key.strip().upper()
            if not key:
                continue
            if not key.replace("_", "").isalnum():
                raise ValueError(f"Invalid project key: {key!r}")
            if key not in keys:
                keys.append(key)
        return keys

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level
