"""
Transformation of Jira issues into training records.

Every step is a pure function of the issue: flatten the fields, clean
HTML out of free text, then derive summarization, classification and
Q&A tasks from the flattened record.
"""

import re
from typing import List, Optional

import structlog
from bs4 import BeautifulSoup

from jira_scraper.models.issue import IssueFields, JiraIssue
from jira_scraper.models.training import (
    Classification,
    CommentData,
    QnA,
    Tasks,
    TrainingRecord,
)
from jira_scraper.utils.exceptions import TransformError

logger = structlog.get_logger()

SUMMARY_DESCRIPTION_LIMIT = 500
_WHITESPACE = re.compile(r"\s+")


def clean_html(html: Optional[str]) -> str:
    """Strip markup and collapse whitespace"""
    if html is None or not html.strip():
        return ""
    text = BeautifulSoup(html, "html.parser").get_text(separator=" ")
    return _WHITESPACE.sub(" ", text).strip()


class TransformationService:
    """Build TrainingRecord documents from Jira issues"""

    def transform(self, issue: JiraIssue) -> TrainingRecord:
        """
        Transform an issue into a training record.

        Args:
            issue: Issue as returned by the search or issue endpoint

        Returns:
            Flattened training record

        Raises:
            TransformError: The issue could not be converted
        """
        try:
            record = TrainingRecord(issue_key=issue.key)
            if issue.fields is not None:
                self._apply_fields(record, issue.fields)
            return record
        except Exception as e:
            raise TransformError(f"Failed to transform issue {issue.key}: {e}") from e

    def _apply_fields(self, record: TrainingRecord, fields: IssueFields) -> None:
        if fields.project is not None:
            record.project = fields.project.key
        if fields.issue_type is not None:
            record.issue_type = fields.issue_type.name
        record.title = fields.summary
        if fields.status is not None:
            record.status = fields.status.name
        if fields.priority is not None:
            record.priority = fields.priority.name
        if fields.reporter is not None:
            record.reporter = fields.reporter.label
        if fields.assignee is not None:
            record.assignee = fields.assignee.label

        record.created = fields.created
        record.updated = fields.updated
        record.resolution_date = fields.resolution_date
        if fields.resolution is not None:
            record.resolution = fields.resolution.name

        record.labels = list(fields.labels or [])
        record.description = clean_html(fields.description)
        record.comments = self._transform_comments(fields)
        record.tasks = self._generate_tasks(record)

    def _transform_comments(self, fields: IssueFields) -> List[CommentData]:
        if fields.comment is None or not fields.comment.comments:
            return []

        return [
            CommentData(
                author=comment.author.label if comment.author else None,
                body=clean_html(comment.body),
                created=comment.created,
            )
            for comment in fields.comment.comments
        ]

    def _generate_tasks(self, record: TrainingRecord) -> Tasks:
        return Tasks(
            summarization=self.generate_summarization(record),
            classification=Classification(
                issue_type=record.issue_type,
                priority=record.priority,
                status=record.status,
            ),
            qna=self.generate_qna(record),
        )

    @staticmethod
    def generate_summarization(record: TrainingRecord) -> str:
        """Short plain-text summary of title, status, description and comments"""
        lines = [f"Issue: {record.title}", f"Status: {record.status}"]

        description = record.description
        if description.strip():
            if len(description) > SUMMARY_DESCRIPTION_LIMIT:
                description = description[: SUMMARY_DESCRIPTION_LIMIT - 3] + "..."
            lines.append(f"Description: {description}")

        summary = "\n".join(lines) + "\n"
        if record.comments:
            summary += f"Comments: {len(record.comments)} comment(s)"
        return summary

    @staticmethod
    def generate_qna(record: TrainingRecord) -> List[QnA]:
        """Question/answer pairs about the issue's metadata"""
        pairs = [
            QnA(
                question=f"What is the status of issue {record.issue_key}?",
                answer=f"The status is: {record.status}",
            )
        ]

        if record.priority is not None:
            pairs.append(
                QnA(
                    question="What is the priority of this issue?",
                    answer=f"The priority is: {record.priority}",
                )
            )

        if record.issue_type is not None:
            pairs.append(
                QnA(
                    question=f"What type of issue is {record.issue_key}?",
                    answer=f"This is a {record.issue_type}",
                )
            )

        if record.resolution is not None:
            pairs.append(
                QnA(
                    question="How was this issue resolved?",
                    answer=f"Resolution: {record.resolution}",
                )
            )

        if record.comments:
            pairs.append(
                QnA(
                    question="How many comments does this issue have?",
                    answer=f"This issue has {len(record.comments)} comment(s)",
                )
            )

        return pairs
