"""Shared fixtures for the scraper test suite."""

from typing import Any, Dict, List, Optional

import pytest
import structlog

from jira_scraper.models.issue import JiraIssue, SearchResponse


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo logging configuration done by CLI commands under test."""
    yield
    structlog.reset_defaults()


def make_issue(key: str, **fields: Any) -> JiraIssue:
    """Build an issue as the search endpoint would return it."""
    data: Dict[str, Any] = {
        "summary": f"Summary of {key}",
        "status": {"name": "Open"},
        "project": {"key": key.split("-")[0]},
    }
    data.update(fields)
    return JiraIssue.model_validate({"id": key.split("-")[-1], "key": key, "fields": data})


def make_page(
    project: str, start: int, count: int, total: int, issues: Optional[List[JiraIssue]] = None
) -> SearchResponse:
    """One search page holding issues ``start+1 .. start+count``."""
    if issues is None:
        issues = [make_issue(f"{project}-{n}") for n in range(start + 1, start + count + 1)]
    return SearchResponse(startAt=start, maxResults=count, total=total, issues=issues)


@pytest.fixture
def issue_factory():
    return make_issue


@pytest.fixture
def page_factory():
    return make_page
