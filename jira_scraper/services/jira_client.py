import json
from typing import Any, Dict, Optional

import aiohttp
import structlog
from pydantic import ValidationError

from jira_scraper.models.config import ApiSettings, DateRange, RetryConfig
from jira_scraper.models.issue import JiraIssue, SearchResponse
from jira_scraper.observability.metrics import (
    HTTP_REQUEST_DURATION,
    HTTP_REQUESTS_TOTAL,
    HTTP_RETRIES_TOTAL,
)
from jira_scraper.utils.exceptions import TerminalRequestError
from jira_scraper.utils.rate_limiter import RateLimiter
from jira_scraper.utils.retry import NETWORK_ERRORS, RetryHandler

logger = structlog.get_logger()

BODY_READ_ERRORS = NETWORK_ERRORS + (UnicodeDecodeError,)


def build_jql(project_key: str, date_range: Optional[DateRange] = None) -> str:
    """Project filter with optional inclusive creation-date bounds"""
    jql = f"project = {project_key}"
    if date_range is not None:
        if date_range.start_date is not None:
            jql += f' AND created >= "{date_range.start_date.isoformat()}"'
        if date_range.end_date is not None:
            jql += f' AND created <= "{date_range.end_date.isoformat()}"'
    return jql + " ORDER BY created ASC"


class JiraApiClient:
    """Jira REST API v2 client with rate limiting and retry"""

    SEARCH_PATH = "/rest/api/2/search"
    ISSUE_PATH = "/rest/api/2/issue/{key}"
    ISSUE_EXPAND = (
        "renderedFields,names,schema,transitions,operations,changelog,comment"
    )

    def __init__(
        self,
        settings: ApiSettings,
        retry_config: RetryConfig,
        rate_limiter: Optional[RateLimiter] = None,
        retry_handler: Optional[RetryHandler] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.settings = settings
        self.base_url = settings.base_url
        self.rate_limiter = rate_limiter or RateLimiter(
            max_requests_per_second=settings.max_requests_per_second
        )
        self.retry_handler = retry_handler or RetryHandler(retry_config)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "JiraApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def search_issues(
        self,
        project_key: str,
        start_at: int,
        max_results: int,
        date_range: Optional[DateRange] = None,
    ) -> SearchResponse:
        """Fetch one page of a project's issues ordered by creation date

        Raises:
            RetryExhaustedError: Retryable failures outlasted every attempt
            TerminalRequestError: Non-retryable status or unreadable body
        """
        params = {
            "jql": build_jql(project_key, date_range),
            "startAt": start_at,
            "maxResults": max_results,
            "fields": "*all",
        }
        logger.debug(
            "search_issues",
            project=project_key,
            start_at=start_at,
            max_results=max_results,
            jql=params["jql"],
        )
        data = await self._get_json("search", self.base_url + self.SEARCH_PATH, params)

        try:
            return SearchResponse.model_validate(data)
        except ValidationError as e:
            raise TerminalRequestError(f"Unexpected search response: {e}") from e

    async def get_issue(self, issue_key: str) -> JiraIssue:
        """Fetch a single issue with all fields and comments"""
        url = self.base_url + self.ISSUE_PATH.format(key=issue_key)
        params = {"fields": "*all", "expand": self.ISSUE_EXPAND}
        logger.debug("get_issue", issue_key=issue_key)
        data = await self._get_json("issue", url, params)

        try:
            return JiraIssue.model_validate(data)
        except ValidationError as e:
            raise TerminalRequestError(f"Unexpected issue response: {e}") from e

    async def _get_json(
        self, endpoint: str, url: str, params: Dict[str, Any]
    ) -> Any:
        session = self._get_session()

        async def attempt() -> aiohttp.ClientResponse:
            # Every physical attempt, retries included, passes the limiter
            await self.rate_limiter.acquire()
            try:
                with HTTP_REQUEST_DURATION.labels(endpoint=endpoint).time():
                    response = await session.get(url, params=params)
                    if 200 <= response.status < 300:
                        await response.read()
            except NETWORK_ERRORS:
                HTTP_REQUESTS_TOTAL.labels(endpoint=endpoint, status="error").inc()
                raise
            HTTP_REQUESTS_TOTAL.labels(
                endpoint=endpoint, status=str(response.status)
            ).inc()
            return response

        def on_retry(attempt_number: int, status: Optional[int], delay: float) -> None:
            HTTP_RETRIES_TOTAL.labels(endpoint=endpoint).inc()

        response = await self.retry_handler.execute(attempt, on_retry=on_retry)

        try:
            status = response.status
            if not 200 <= status < 300:
                try:
                    body = await response.text()
                except BODY_READ_ERRORS as e:
                    body = f"<unreadable body: {e}>"
                raise TerminalRequestError(
                    f"Request failed with status {status}: {body[:500]}",
                    status=status,
                )

            try:
                text = await response.text()
            except BODY_READ_ERRORS as e:
                raise TerminalRequestError(
                    f"Unreadable response body: {e}", status=status
                ) from e
            if not text or not text.strip():
                raise TerminalRequestError("Empty response body", status=status)

            try:
                return json.loads(text)
            except ValueError as e:
                logger.error("response_parse_error", endpoint=endpoint, body=text[:500])
                raise TerminalRequestError(
                    f"Failed to parse JSON response: {e}", status=status
                ) from e
        finally:
            response.release()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(
                    sock_connect=self.settings.connect_timeout_seconds,
                    sock_read=self.settings.read_timeout_seconds,
                ),
                headers={
                    "Accept": "application/json",
                    "User-Agent": self.settings.user_agent,
                },
            )
            self._owns_session = True
        return self._session
