"""Assembly of one scenario's raw steps into a ScenarioResult."""

import logging
from typing import Optional

from .attachments import (
    SESSION_MARKER_TEXT,
    TEXT_MIME,
    classify_embeddings,
    session_marker,
)
from .models import AttachmentKind, ScenarioResult, StepOutcome, StepRecord
from .status import first_error_message, reduce_outcomes
from .tags import MANUAL_TCT, REQUIREMENT, classify, free_tags

logger = logging.getLogger(__name__)


HOOK_NAME = "Hook"


def is_hook_step(step: dict) -> bool:
    """Hooks have no visible name (or the literal "Hook")."""
    name = step.get("name") or ""
    return name == "" or name == HOOK_NAME


def step_label(step: dict) -> str:
    """Render "<keyword> <name>"."""
    return f"{step['keyword'].strip()} {step['name']}"


def hook_failed(step: dict) -> bool:
    return (step.get("result") or {}).get("status") == StepOutcome.FAILED.value


def parse_outcome(step: dict) -> StepOutcome:
    status = step["result"]["status"]
    try:
        return StepOutcome.from_string(status)
    except ValueError:
        # undefined / pending / ambiguous steps never ran
        logger.debug("Step %r has status %r, recording as skipped", step.get("name"), status)
        return StepOutcome.SKIPPED


def extract_script_path(steps: list[dict], uri: Optional[str] = None) -> str:
    """Script path from the leading hook's text artifact, else the feature uri."""
    if steps and is_hook_step(steps[0]):
        embeddings = steps[0].get("embeddings") or []
        if embeddings:
            first = embeddings[0]
            data = first.get("data") or ""
            if first.get("mime_type") == TEXT_MIME and SESSION_MARKER_TEXT not in data:
                return data
    if uri:
        return uri.replace("\\", "/")
    return ""


def extract_scenario(
    steps: list[dict],
    name: str = "",
    tags: Optional[list[str]] = None,
    uri: Optional[str] = None,
) -> ScenarioResult:
    """Build the canonical record for one scenario's raw steps."""
    records: list[StepRecord] = []
    screenshots: list[Optional[str]] = []
    error_messages: list[Optional[str]] = []
    current_url = None
    user_email = None
    user_uid = None
    marker = None
    hooks_seen = 0
    hook_failure_at: Optional[int] = None

    for raw_index, step in enumerate(steps):
        if is_hook_step(step):
            hooks_seen += 1
            found = session_marker(step.get("embeddings"))
            if found:
                marker = found
            if hook_failed(step):
                if hook_failure_at is None:
                    hook_failure_at = len(records)
                error_messages.append(step["result"].get("error_message"))
            continue

        outcome = parse_outcome(step)
        error_messages.append(step["result"].get("error_message"))
        screenshots.append(None)

        last_attachment = None
        for attachment in classify_embeddings(step.get("embeddings")):
            last_attachment = attachment
            if attachment.kind is AttachmentKind.URL:
                current_url = attachment.data
            elif attachment.kind is AttachmentKind.EMAIL:
                user_email = attachment.data
            elif attachment.kind is AttachmentKind.UID:
                user_uid = attachment.data
            else:
                screenshots[raw_index - hooks_seen] = attachment.data

        records.append(StepRecord(
            label=step_label(step),
            outcome=outcome,
            attachment=last_attachment,
        ))

    reduction = reduce_outcomes([r.outcome for r in records])
    verdict = reduction.verdict
    failure_index = reduction.first_failure_index
    if hook_failure_at is not None and (verdict is StepOutcome.PASSED or hook_failure_at <= failure_index):
        # A failed hook fails at the first step it kept from running, or at
        # the last step when it ran after all of them
        verdict = StepOutcome.FAILED
        failure_index = min(hook_failure_at, len(records) - 1)
    failed = verdict is StepOutcome.FAILED
    tags = tags or []

    return ScenarioResult(
        name=name,
        steps=tuple(records),
        verdict=verdict,
        first_failure_index=failure_index,
        error_message=first_error_message(error_messages) if failed else "",
        tags=tuple(tags),
        manual_test_case_tags=tuple(classify(tags, MANUAL_TCT)),
        requirement_tags=tuple(classify(tags, REQUIREMENT)),
        free_tags=tuple(free_tags(tags)),
        script_path=extract_script_path(steps, uri),
        session_marker=marker,
        current_url=current_url,
        user_email=user_email,
        user_uid=user_uid,
        screenshots=tuple(screenshots),
    )
