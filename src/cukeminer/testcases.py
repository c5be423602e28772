"""Test Cases created from templates in a Test Plan, and their Pass/Fail status."""

import logging
import time
from typing import Iterable, Optional

from . import config
from .jira_client import JiraClient, JiraClientError, try_link
from .models import StepOutcome

logger = logging.getLogger(__name__)


TEST_CASE_ISSUE_TYPE = "Test Case"
TEMPLATE_FIELD_NAME = "TC Template"
RELATES_LINK = "Relates"

# Workflow transitions of a Test Case: Open -> Test -> Pass/Fail
TEST_TRANSITION = "11"
PASS_TRANSITION = "21"
FAIL_TRANSITION = "31"

VERDICT_TRANSITIONS = {
    StepOutcome.PASSED: PASS_TRANSITION,
    StepOutcome.FAILED: FAIL_TRANSITION,
}

CREATE_ATTEMPTS = 5
# Jira search lags behind a just-created Test Case
SEARCH_DELAY = 5.0


def template_test_cases_query(template_key: str) -> str:
    """JQL for open Test Cases created from a template, newest first."""
    jql = (
        f"project = {config.TEST_CASE_PROJECT} AND type = '{TEST_CASE_ISSUE_TYPE}' "
        f"AND status = OPEN AND \"{TEMPLATE_FIELD_NAME}\" ~ '{template_key}'"
    )
    if config.TEMPLATE_REPORTER:
        jql += f" AND reporter = {config.TEMPLATE_REPORTER}"
    return jql + " ORDER BY createdDate DESC"


def find_test_case(client: JiraClient, template_key: str) -> Optional[str]:
    """Newest open Test Case made from ``template_key``, if any."""
    jql = template_test_cases_query(template_key)
    issues = client.search_issues(jql, fields=["summary", "description"])
    if not issues:
        logger.info("No existing Test Case for query %s", jql)
        return None
    logger.info("Found existing Test Case for template: %s", issues[0].key)
    return issues[0].key


def create_test_case(
    client: JiraClient,
    plan_key: str,
    template_key: str,
    manual_keys: Iterable[str] = (),
    attempts: int = CREATE_ATTEMPTS,
    delay: float = SEARCH_DELAY,
) -> Optional[str]:
    """Add a template to a Test Plan and return the Test Case it produced.

    When the request fails the Test Case may still have been created, so it
    is looked up before trying again. The new Test Case is linked to the
    manual Test Case Templates the scenario covers. Returns None when every
    attempt failed.
    """
    key = None
    for attempt in range(1, attempts + 1):
        try:
            key = client.add_templates_to_plan(plan_key, template_key)
            break
        except JiraClientError as e:
            logger.error("Caught error for %s: %s", template_key, e)

        time.sleep(delay)
        try:
            key = find_test_case(client, template_key)
        except JiraClientError as e:
            logger.error("Test Case search for %s failed: %s", template_key, e)
        if key:
            logger.info("Test Case %s successfully added to Test Plan: %s", key, plan_key)
            break
        logger.warning("Error when creating Test Case for %s. Retrying... %d", template_key, attempt)

    if key is None:
        logger.warning("Too many attempts of creating Test Case for template key: %s. Continuing...", template_key)
        return None

    for manual_key in manual_keys:
        try_link(client, key, manual_key, RELATES_LINK)
    return key


def update_test_case_status(client: JiraClient, issue_key: str, verdict: StepOutcome) -> bool:
    """Move a Test Case through Test to Pass or Fail after its run."""
    try:
        client.transition_issue(issue_key, TEST_TRANSITION)
        client.transition_issue(issue_key, VERDICT_TRANSITIONS[verdict])
    except JiraClientError as e:
        logger.error("Error when changing status of %s: %s. Continuing...", issue_key, e)
        return False
    logger.info("Test Case %s status set to %s", issue_key, verdict.value)
    return True
