"""Jira API client for TestFLO templates and test cases."""

import base64
import logging
from pathlib import Path
from typing import Any, Optional

import httpx

from . import config
from .models import JiraIssueData

logger = logging.getLogger(__name__)


class JiraClientError(Exception):
    """Error communicating with Jira API."""
    pass


class JiraClient:
    """Client for Jira REST API v2 (Server) and the TestFLO REST endpoints."""

    def __init__(self):
        self.base_url = config.JIRA_BASE_URL.rstrip("/")
        self.email = config.JIRA_EMAIL
        self.token = config.JIRA_TOKEN
        self.steps_field = config.JIRA_STEPS_FIELD
        self.timeout = config.JIRA_TIMEOUT
        self._client: Optional[httpx.Client] = None

    @property
    def is_configured(self) -> bool:
        """Check if Jira credentials are configured."""
        return bool(self.base_url and self.email and self.token)

    def _get_auth_header(self) -> str:
        """Generate Basic auth header."""
        credentials = f"{self.email}:{self.token}"
        encoded = base64.b64encode(credentials.encode()).decode()
        return f"Basic {encoded}"

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=f"{self.base_url}/rest",
                headers={
                    "Authorization": self._get_auth_header(),
                    "Accept": "application/json",
                },
                timeout=self.timeout,
                transport=httpx.HTTPTransport(retries=2),
            )
        return self._client

    def close(self):
        """Close HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    def _request(self, method: str, path: str, allow_missing: bool = False, **kwargs) -> Optional[httpx.Response]:
        """Send a request; HTTP failures become JiraClientError."""
        if not self.is_configured:
            raise JiraClientError("Jira credentials are not configured")
        logger.debug("%s %s", method, path)
        try:
            response = self._get_client().request(method, path, **kwargs)
            if allow_missing and response.status_code == 404:
                return None
            response.raise_for_status()
            return response
        except httpx.HTTPError as e:
            raise JiraClientError(f"{method} {path} failed: {e}") from e

    def search_issues(
        self,
        jql: str,
        fields: Optional[list[str]] = None,
        max_results: int = 10,
    ) -> list[JiraIssueData]:
        """Run a JQL search."""
        logger.info("JQL search: %s", jql)
        fields = fields or ["summary", "description"]
        response = self._request(
            "GET",
            "/api/2/search",
            params={"jql": jql, "fields": ",".join(fields), "maxResults": max_results},
        )
        issues = []
        for issue in response.json().get("issues", []):
            fields_data = issue.get("fields", {})
            issues.append(JiraIssueData(
                key=issue["key"],
                summary=fields_data.get("summary") or "",
                description=fields_data.get("description"),
            ))
        return issues

    def get_step_rows(self, issue_key: str) -> Optional[list[dict]]:
        """Steps table stored on an issue, or None if the issue is gone."""
        response = self._request(
            "GET",
            f"/api/2/issue/{issue_key}",
            allow_missing=True,
            params={"fields": self.steps_field},
        )
        if response is None:
            return None
        steps = response.json().get("fields", {}).get(self.steps_field) or {}
        return steps.get("stepsRows") or []

    def get_issue_id(self, issue_key: str) -> Optional[str]:
        """Numeric id for an issue key."""
        response = self._request(
            "GET",
            f"/api/2/issue/{issue_key}",
            allow_missing=True,
            params={"fields": "summary"},
        )
        if response is None:
            return None
        return str(response.json()["id"])

    def create_issue(self, fields: dict[str, Any]) -> str:
        """Create an issue and return its key."""
        response = self._request("POST", "/api/2/issue", json={"fields": fields})
        key = response.json()["key"]
        logger.info("Created issue %s", key)
        return key

    def transition_issue(self, issue_key: str, transition_id: str) -> None:
        self._request(
            "POST",
            f"/api/2/issue/{issue_key}/transitions",
            json={"transition": {"id": transition_id}},
        )
        logger.info("Transition %s -> %s", issue_key, transition_id)

    def link_issues(self, inward_key: str, outward_key: str, link_type: str) -> None:
        """Link two issues, e.g. "Relates" or "Parenthood"."""
        self._request(
            "POST",
            "/api/2/issueLink",
            json={
                "type": {"name": link_type},
                "inwardIssue": {"key": inward_key},
                "outwardIssue": {"key": outward_key},
            },
        )
        logger.info("Linked %s -> %s (%s)", inward_key, outward_key, link_type)

    def add_attachment(self, issue_key: str, file_path: Path) -> list[dict]:
        """Upload a file to an issue; returns Jira's attachment descriptors."""
        file_path = Path(file_path)
        with file_path.open("rb") as handle:
            response = self._request(
                "POST",
                f"/api/2/issue/{issue_key}/attachments",
                headers={"X-Atlassian-Token": "no-check"},
                files={"file": (file_path.name, handle, "image/png")},
            )
        return response.json()

    def update_steps(self, issue_id: str, request: dict) -> dict:
        """Replace the TestFLO steps table (statuses, defects, attachments)."""
        response = self._request(
            "POST",
            f"/tms/1.0/steps/{issue_id}",
            params={"update-history": "true"},
            json=request,
        )
        return response.json() if response.content else {}

    def add_templates_to_plan(self, plan_key: str, template_key: str) -> str:
        """Create a Test Case in a Test Plan from a template; returns its key."""
        response = self._request(
            "POST",
            "/tms/1.0/testplan/add-test-case-templates",
            json={
                "testPlanKeys": [plan_key],
                "testCaseTemplateKeys": [template_key],
                "async": False,
            },
        )
        try:
            key = response.json()["testPlans"][0]["testCases"][0]["key"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise JiraClientError(f"No Test Case created from {template_key} in {plan_key}") from e
        logger.info("Created Test Case %s from %s in %s", key, template_key, plan_key)
        return key


def try_link(client: JiraClient, inward_key: str, outward_key: str, link_type: str) -> bool:
    """Link two issues, logging a failure instead of raising."""
    try:
        client.link_issues(inward_key, outward_key, link_type)
    except JiraClientError as e:
        logger.error("Could not link %s and %s: %s. Continuing...", inward_key, outward_key, e)
        return False
    return True


# Singleton instance
_client: Optional[JiraClient] = None


def get_jira_client() -> JiraClient:
    """Get the singleton Jira client instance."""
    global _client
    if _client is None:
        _client = JiraClient()
    return _client
