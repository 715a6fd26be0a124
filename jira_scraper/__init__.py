"""Resumable Jira issue scraper producing JSONL training records."""

__version__ = "1.0.0"
