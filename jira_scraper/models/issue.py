"""Wire models for the Jira REST API v2 responses.

Only the fields the transformation needs are declared; everything else
the API returns is ignored.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class NamedRef(_WireModel):
    """Status, priority, issue type or resolution reference"""

    name: Optional[str] = None


class ProjectRef(_WireModel):
    key: Optional[str] = None
    name: Optional[str] = None


class JiraUser(_WireModel):
    name: Optional[str] = None
    display_name: Optional[str] = Field(None, alias="displayName")

    @property
    def label(self) -> Optional[str]:
        """Display name, falling back to the login name"""
        return self.display_name if self.display_name is not None else self.name


class JiraComment(_WireModel):
    id: Optional[str] = None
    author: Optional[JiraUser] = None
    body: Optional[str] = None
    created: Optional[str] = None


class CommentContainer(_WireModel):
    comments: Optional[List[JiraComment]] = None


class IssueFields(_WireModel):
    summary: Optional[str] = None
    description: Optional[str] = None
    status: Optional[NamedRef] = None
    priority: Optional[NamedRef] = None
    project: Optional[ProjectRef] = None
    reporter: Optional[JiraUser] = None
    assignee: Optional[JiraUser] = None
    created: Optional[str] = None
    updated: Optional[str] = None
    resolution_date: Optional[str] = Field(None, alias="resolutiondate")
    labels: Optional[List[str]] = None
    comment: Optional[CommentContainer] = None
    issue_type: Optional[NamedRef] = Field(None, alias="issuetype")
    resolution: Optional[NamedRef] = None


class JiraIssue(_WireModel):
    id: Optional[str] = None
    key: str
    fields: Optional[IssueFields] = None


class SearchResponse(_WireModel):
    """One page of a JQL search"""

    start_at: int = Field(0, alias="startAt")
    max_results: int = Field(0, alias="maxResults")
    total: int = 0
    issues: List[JiraIssue] = Field(default_factory=list)
