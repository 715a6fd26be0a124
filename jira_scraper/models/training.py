"""Flattened training-data document written one per JSONL line."""

from typing import List, Optional

from pydantic import BaseModel, Field


class CommentData(BaseModel):
    author: Optional[str] = None
    body: str = ""
    created: Optional[str] = None


class Classification(BaseModel):
    issue_type: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None


class QnA(BaseModel):
    question: str
    answer: str


class Tasks(BaseModel):
    """Derived training tasks"""

    summarization: str = ""
    classification: Classification = Field(default_factory=Classification)
    qna: List[QnA] = Field(default_factory=list)


class TrainingRecord(BaseModel):
    issue_key: str
    project: Optional[str] = None
    issue_type: Optional[str] = None
    title: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    reporter: Optional[str] = None
    assignee: Optional[str] = None
    created: Optional[str] = None
    updated: Optional[str] = None
    resolution_date: Optional[str] = None
    resolution: Optional[str] = None
    labels: List[str] = Field(default_factory=list)
    description: str = ""
    comments: List[CommentData] = Field(default_factory=list)
    tasks: Tasks = Field(default_factory=Tasks)
