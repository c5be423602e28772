"""Publishing a record's step results to a TestFLO Test Case."""

import logging
from pathlib import Path
from typing import Optional

from .bugs import report_bug
from .jira_client import JiraClient
from .models import ResultRecord
from .screenshots import save_screenshots, screenshot_paths
from .steps import build_step_rows, build_steps_request
from .testcases import update_test_case_status

logger = logging.getLogger(__name__)


def upload_screenshots(client: JiraClient, issue_key: str, record: ResultRecord, output_dir: Path) -> dict[int, dict]:
    """Write the record's screenshots and attach them to the issue.

    Returns the attachment Jira created for each row index.
    """
    uploaded = {}
    for index, path in save_screenshots(record, output_dir).items():
        response = client.add_attachment(issue_key, path)
        if response:
            uploaded[index] = response[0]
        else:
            logger.warning("No attachment returned for %s", path.name)
    return uploaded


def publish_results(
    client: JiraClient,
    issue_key: str,
    record: ResultRecord,
    output_dir: Path,
    bug_key: Optional[str] = None,
    create_bug: bool = False,
) -> bool:
    """Set the Test Case status and update its steps with statuses,
    screenshots and the bug link.

    With ``create_bug`` a failed record without ``bug_key`` gets a bug found
    or filed for it. Returns False when the issue does not exist.
    """
    issue_id = client.get_issue_id(issue_key)
    if issue_id is None:
        logger.error("No Test Case id for %s", issue_key)
        return False

    update_test_case_status(client, issue_key, record.verdict)

    attachments = None
    if any(record.screenshots):
        attachments = upload_screenshots(client, issue_key, record, output_dir)

    if create_bug and bug_key is None and record.failed:
        screenshot = screenshot_paths(record, output_dir).get(record.first_failure_index)
        bug_key = report_bug(client, record, issue_key, screenshot)

    request = build_steps_request(build_step_rows(record, attachments, bug_key))
    logger.debug("Steps update request for %s: %s", issue_key, request)
    client.update_steps(issue_id, request)
    logger.info("Updated %d step(s) of %s", len(request["stepsRows"]), issue_key)
    return True
