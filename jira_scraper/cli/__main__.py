"""CLI entry point.

Allows running the CLI as a module: python -m jira_scraper.cli
"""

from jira_scraper.cli import app

if __name__ == "__main__":
    app()
