"""Unit tests for Jira wire models"""

from jira_scraper.models.issue import JiraIssue, JiraUser, SearchResponse


SEARCH_PAYLOAD = {
    "expand": "schema,names",
    "startAt": 50,
    "maxResults": 2,
    "total": 120,
    "issues": [
        {
            "id": "10001",
            "key": "KAFKA-51",
            "self": "https://issues.apache.org/jira/rest/api/2/issue/10001",
            "fields": {
                "summary": "Broker fails to start",
                "issuetype": {"name": "Bug"},
                "resolutiondate": "2024-01-05T10:00:00.000+0000",
                "reporter": {"name": "jdoe", "displayName": "Jane Doe"},
                "customfield_12310": "ignored",
            },
        },
        {"id": "10002", "key": "KAFKA-52", "fields": {}},
    ],
}


class TestSearchResponse:
    def test_parses_camel_case_payload(self):
        page = SearchResponse.model_validate(SEARCH_PAYLOAD)
        assert page.start_at == 50
        assert page.max_results == 2
        assert page.total == 120
        assert [i.key for i in page.issues] == ["KAFKA-51", "KAFKA-52"]

    def test_aliased_fields(self):
        issue = SearchResponse.model_validate(SEARCH_PAYLOAD).issues[0]
        assert issue.fields.issue_type.name == "Bug"
        assert issue.fields.resolution_date == "2024-01-05T10:00:00.000+0000"

    def test_empty_page(self):
        page = SearchResponse.model_validate({"startAt": 0, "total": 0, "issues": []})
        assert page.issues == []


class TestJiraUser:
    def test_label_prefers_display_name(self):
        assert JiraUser(name="jdoe", displayName="Jane Doe").label == "Jane Doe"

    def test_label_falls_back_to_name(self):
        assert JiraUser(name="jdoe").label == "jdoe"

    def test_label_none_when_anonymous(self):
        assert JiraUser().label is None


class TestJiraIssue:
    def test_fields_optional(self):
        issue = JiraIssue.model_validate({"key": "SPARK-1"})
        assert issue.fields is None
