"""Bug reports for failed records: reuse a matching open bug or file a new one."""

import logging
from pathlib import Path
from typing import Optional

from . import config
from .jira_client import JiraClient, JiraClientError, try_link
from .models import ResultRecord

logger = logging.getLogger(__name__)


BUG_ISSUE_TYPE = "Bug"
RELATES_LINK = "Relates"
SUMMARY_LIMIT = 255


def failed_step(record: ResultRecord) -> str:
    """Description of the record's first failing step, or ""."""
    if record.first_failure_index == -1:
        return ""
    return record.step_descriptions[record.first_failure_index] or ""


def _error_text(record: ResultRecord) -> str:
    # Reports sometimes carry escaped newlines in stack traces
    return record.error_message.replace("\\n", "\n")


def bug_summary(record: ResultRecord) -> str:
    return f"{record.name} - {failed_step(record)}"[:SUMMARY_LIMIT]


def bug_description(record: ResultRecord) -> str:
    """Jira wiki text naming the step, the error and the run context."""
    lines = [
        f'Test case: "{record.name}" failed when performing: "{failed_step(record)}" because of error:',
        "",
        "{code}",
        f"{_error_text(record)}{{code}}",
    ]
    if record.current_url:
        lines += ["", "Page URL:", "{code}", f"{record.current_url}{{code}}"]
    email = getattr(record, "user_email", None)
    uid = getattr(record, "user_uid", None)
    if email or uid:
        lines += ["", "User data:", "{code}", f"Email: {email or ''}", f"UID: {uid or ''}", "{code}"]
    return "\n".join(lines)


def bug_query(record: ResultRecord) -> str:
    """JQL for open bugs (or ones closed as duplicates) with a similar summary."""
    summary = bug_summary(record).replace(" - ", " ").replace('"', '\\"')
    jql = (
        f"project = {config.BUG_PROJECT} AND "
        f"((not status in (Closed, Done)) OR (status in (Closed, Done) AND "
        f"resolution in (Duplicate, \"Won't Do\", \"Can't Do\"))) AND "
        f'type = {BUG_ISSUE_TYPE} AND summary ~ "{summary}"'
    )
    if config.TEMPLATE_REPORTER:
        jql += f" AND reporter = {config.TEMPLATE_REPORTER}"
    return jql + " ORDER BY createdDate DESC"


def find_bug(client: JiraClient, record: ResultRecord) -> Optional[str]:
    """Existing bug whose description already carries the record's error."""
    error = _error_text(record)
    for issue in client.search_issues(bug_query(record), fields=["summary", "description"]):
        if error in (issue.description or ""):
            logger.info("Found existing bug: %s", issue.key)
            return issue.key
    return None


def build_bug_issue(record: ResultRecord) -> dict:
    fields = {
        "project": {"key": config.BUG_PROJECT},
        "summary": bug_summary(record),
        "description": bug_description(record),
        "issuetype": {"name": BUG_ISSUE_TYPE},
    }
    if record.manual_test_case_tags:
        fields["labels"] = list(record.manual_test_case_tags)
    return fields


def create_bug(client: JiraClient, record: ResultRecord, screenshot: Optional[Path] = None) -> str:
    """File a new bug, attaching the failing step's screenshot when there is one."""
    key = client.create_issue(build_bug_issue(record))
    if screenshot is not None and Path(screenshot).exists():
        try:
            client.add_attachment(key, screenshot)
        except JiraClientError as e:
            logger.error("Could not attach %s to %s: %s. Continuing...", screenshot.name, key, e)
    return key


def report_bug(
    client: JiraClient,
    record: ResultRecord,
    test_case_key: str,
    screenshot: Optional[Path] = None,
) -> Optional[str]:
    """Bug key for a failed record, linked to its Test Case.

    Errors are logged and None returned so the results still get published.
    """
    try:
        key = find_bug(client, record) or create_bug(client, record, screenshot)
    except JiraClientError as e:
        logger.error("Error -%s when creating bug for %s. Continuing...", e, test_case_key)
        return None
    try_link(client, key, test_case_key, RELATES_LINK)
    return key
