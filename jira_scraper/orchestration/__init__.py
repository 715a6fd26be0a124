"""Orchestration module for resumable project scraping."""

from jira_scraper.orchestration.result import ScrapeResult, ScrapeState, SourceResult
from jira_scraper.orchestration.scraper import IssueSearchClient, ScrapeOrchestrator

__all__ = [
    "ScrapeOrchestrator",
    "IssueSearchClient",
    "ScrapeState",
    "SourceResult",
    "ScrapeResult",
]
