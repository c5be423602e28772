"""Test Case Template lookup, creation and versioning in Jira."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from . import config
from .jira_client import JiraClient, JiraClientError, try_link
from .models import FeatureResult, ResultRecord
from .reconcile import is_current
from .tags import TEST_LEVEL, classify

logger = logging.getLogger(__name__)


TEMPLATE_ISSUE_TYPE = "Test Case Template"
REQUIREMENT_FIELD = "customfield_10100"
TEST_LEVEL_FIELD = "customfield_18813"
TEST_SCRIPT_FIELD = "customfield_18803"

INACTIVE_TRANSITION = "11"
RELATES_LINK = "Relates"
PARENTHOOD_LINK = "Parenthood"

TEST_LEVELS = {
    "Component": "20295",
    "Integration": "20296",
    "E2E": "20297",
}
DEFAULT_TEST_LEVEL = "Component"


class TemplateState(Enum):
    MISSING = "missing"
    CURRENT = "current"
    STALE = "stale"


class TemplateAction(Enum):
    CREATED = "created"
    REUSED = "reused"
    UPGRADED = "upgraded"


@dataclass
class TemplateStatus:
    """Read-only view of how a record relates to its template."""
    state: TemplateState
    key: Optional[str] = None


@dataclass
class TemplateDecision:
    """Template a record ended up using."""
    key: str
    action: TemplateAction
    previous_key: Optional[str] = None


def script_url(record: ResultRecord) -> str:
    return f"{config.SCRIPT_BASE_URL}{record.script_path}"


def template_description(record: ResultRecord) -> str:
    """Feature records use the feature's own text; scenarios list their links."""
    if isinstance(record, FeatureResult) and record.description:
        return record.description

    lines = []
    if record.manual_test_case_tags:
        lines.append(f"relates to: {', '.join(record.manual_test_case_tags)}")
    if record.requirement_tags:
        lines.append(f"requirements: {', '.join(record.requirement_tags)}")
    lines.append(f"test script: {script_url(record)}")
    return "\n".join(lines)


def level_option_id(record: ResultRecord) -> str:
    """Jira option id for the record's @testLevel tag."""
    levels = record.test_level if isinstance(record, FeatureResult) else classify(record.tags, TEST_LEVEL)
    for level in levels:
        option = TEST_LEVELS.get(level.lstrip(":"))
        if option:
            return option
    logger.warning("Test level not defined for %r, using %s", record.name, DEFAULT_TEST_LEVEL)
    return TEST_LEVELS[DEFAULT_TEST_LEVEL]


def build_template_issue(record: ResultRecord) -> dict:
    """Fields for creating a Test Case Template from a record."""
    fields = {
        "project": {"key": config.TEMPLATE_PROJECT},
        "summary": record.name,
        "description": template_description(record),
        "issuetype": {"name": TEMPLATE_ISSUE_TYPE},
        config.JIRA_STEPS_FIELD: {"stepsRows": [row.to_dict() for row in record.steps_rows]},
        TEST_SCRIPT_FIELD: script_url(record),
        TEST_LEVEL_FIELD: {"id": level_option_id(record)},
    }
    if record.requirement_tags:
        fields[REQUIREMENT_FIELD] = list(record.requirement_tags)
    labels = [tag.lstrip("@") for tag in record.free_tags if " " not in tag]
    if labels:
        fields["labels"] = labels
    return fields


def template_query(record: ResultRecord) -> str:
    """JQL for active templates whose summary resembles the record name."""
    summary = record.name.replace(" - ", " ").replace('"', '\\"')
    jql = (
        f'project = {config.TEMPLATE_PROJECT} AND status = Active '
        f'AND type = "{TEMPLATE_ISSUE_TYPE}" AND summary ~ "{summary}"'
    )
    if config.TEMPLATE_REPORTER:
        jql += f" AND reporter = {config.TEMPLATE_REPORTER}"
    return jql + " ORDER BY createdDate DESC"


def find_template(client: JiraClient, record: ResultRecord) -> Optional[str]:
    """Key of the newest active template named exactly like the record."""
    issues = client.search_issues(template_query(record), fields=["summary", "description"])
    for issue in issues:
        if issue.summary.strip() == record.name.strip():
            logger.info("Found existing template %s for %r", issue.key, record.name)
            return issue.key
    logger.info("No existing template for %r", record.name)
    return None


def check_template(client: JiraClient, record: ResultRecord) -> TemplateStatus:
    """Compare the record's steps with its template without changing Jira."""
    key = find_template(client, record)
    if key is None:
        return TemplateStatus(TemplateState.MISSING)

    persisted = client.get_step_rows(key)
    if persisted is None:
        return TemplateStatus(TemplateState.MISSING)

    if is_current(persisted, record.steps_rows):
        return TemplateStatus(TemplateState.CURRENT, key)
    return TemplateStatus(TemplateState.STALE, key)


def create_template(client: JiraClient, record: ResultRecord) -> str:
    key = client.create_issue(build_template_issue(record))
    for manual_key in record.manual_test_case_tags:
        try_link(client, key, manual_key, RELATES_LINK)
    return key


def upgrade_template(client: JiraClient, old_key: str, record: ResultRecord) -> str:
    """Retire the old template, create its successor and link them."""
    try:
        client.transition_issue(old_key, INACTIVE_TRANSITION)
    except JiraClientError as e:
        logger.error("Could not move template %s to Inactive: %s. Continuing...", old_key, e)
    new_key = create_template(client, record)
    try_link(client, old_key, new_key, PARENTHOOD_LINK)
    return new_key


def resolve_template(client: JiraClient, record: ResultRecord) -> TemplateDecision:
    """Reuse, create or supersede the template for a record."""
    status = check_template(client, record)

    if status.state is TemplateState.MISSING:
        return TemplateDecision(create_template(client, record), TemplateAction.CREATED)

    if status.state is TemplateState.CURRENT:
        logger.info("Existing template %s is up to date", status.key)
        return TemplateDecision(status.key, TemplateAction.REUSED)

    new_key = upgrade_template(client, status.key, record)
    return TemplateDecision(new_key, TemplateAction.UPGRADED, previous_key=status.key)
