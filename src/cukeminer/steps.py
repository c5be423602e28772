"""TestFLO step table payloads built from parsed records."""

import copy
import html
from typing import Optional

from .models import ResultRecord, StepOutcome


PASS_STATUS = {"ids": [3], "name": "Pass", "color": "#51a825", "isFinalStatus": True}
FAIL_STATUS = {"ids": [4], "name": "Fail", "color": "#CC3300", "isFinalStatus": True}
TODO_STATUS = {"ids": [1], "name": "To do", "color": "#CCCCCC", "isFinalStatus": False}
IN_PROGRESS_STATUS = {"ids": [2], "name": "In progress", "color": "#6693B0", "isFinalStatus": False}

STEP_STATUSES = {
    StepOutcome.PASSED: PASS_STATUS,
    StepOutcome.FAILED: FAIL_STATUS,
    StepOutcome.SKIPPED: TODO_STATUS,
}

STEP_COLUMNS = [
    {"name": "Action", "size": 150},
    {"name": "Input", "size": 150},
    {"name": "Expected result", "size": 150},
]

ON_LOAD_CONFIGURATION_HASH = "dc143aa66153032c7658507691943191"


def _status_for(outcome: Optional[StepOutcome]) -> dict:
    # Scenario header rows carry no outcome and stay "To do"
    return copy.deepcopy(STEP_STATUSES.get(outcome, TODO_STATUS))


def _attachment_ref(attachment: dict) -> dict:
    return {
        "id": str(attachment["id"]),
        "name": attachment.get("filename") or attachment.get("name", ""),
        "temporary": False,
    }


def build_step_rows(
    record: ResultRecord,
    attachments: Optional[dict[int, dict]] = None,
    bug_key: Optional[str] = None,
) -> list[dict]:
    """One TestFLO step row per record row, with statuses and links.

    ``attachments`` maps row indices to the Jira attachment (id, filename)
    uploaded for that row's screenshot.
    """
    rows = []
    for row, outcome in zip(record.steps_rows, record.step_statuses):
        rows.append({
            "cells": list(row.cells),
            "renderedCells": [f"<p>{html.escape(row.cells[0])}</p>", "", ""],
            "isGroup": row.is_group,
            "status": _status_for(outcome),
        })

    failed_index = record.first_failure_index
    if failed_index != -1 and bug_key:
        rows[failed_index]["defects"] = [{"key": bug_key}]

    for index, attachment in (attachments or {}).items():
        rows[index]["attachments"] = [_attachment_ref(attachment)]
    return rows


def build_steps_request(rows: list[dict]) -> dict:
    """Wrap step rows in a TestFLO steps update request."""
    return {
        "stepsVersion": 1,
        "stepsRows": rows,
        "stepsColumns": copy.deepcopy(STEP_COLUMNS),
        "stepsStatuses": copy.deepcopy([TODO_STATUS, IN_PROGRESS_STATUS, PASS_STATUS, FAIL_STATUS]),
        "defaultStatus": copy.deepcopy(TODO_STATUS),
        "onLoadConfigurationHash": ON_LOAD_CONFIGURATION_HASH,
    }
