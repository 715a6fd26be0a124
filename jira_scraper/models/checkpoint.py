"""Data models for checkpoint system."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

RUN_EPOCH_FORMAT = "%Y%m%d_%H%M%S"


def new_run_epoch(now: Optional[datetime] = None) -> str:
    """Mint the token that names a run's output file family"""
    return (now or datetime.now()).strftime(RUN_EPOCH_FORMAT)


class CheckpointConfig(BaseModel):
    """Checkpoint configuration"""

    checkpoint_dir: str = "checkpoints"
    checkpoint_interval: int = Field(10, ge=1, le=10_000)  # Save every N records


class Checkpoint(BaseModel):
    """Progress marker for one project's scraping run"""

    model_config = ConfigDict(validate_assignment=True)

    source_key: str
    cursor_offset: int = Field(0, ge=0)
    last_record_id: Optional[str] = None
    records_processed: int = Field(0, ge=0)
    chunk_index: int = Field(1, ge=1)
    run_epoch: str = Field(default_factory=new_run_epoch)
    completed: bool = False
    saved_at: datetime = Field(default_factory=datetime.now)
