"""Reduction of step outcomes into a single verdict."""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from .models import StepOutcome


# Skipped steps alone do not fail a scenario. Cucumber skips every step
# after a failure, which is either a FAILED step or a failed hook; hook
# failures are folded in by the scenario extractor.
SKIPPED_FAILS_VERDICT = False


@dataclass(frozen=True)
class StatusReduction:
    """Verdict plus the position of the first failing outcome."""
    verdict: StepOutcome
    first_failure_index: int


def _is_failing(outcome: Optional[StepOutcome], skipped_fails: bool) -> bool:
    if outcome is StepOutcome.FAILED:
        return True
    return skipped_fails and outcome is StepOutcome.SKIPPED


def reduce_outcomes(
    outcomes: Sequence[Optional[StepOutcome]],
    skipped_fails: bool = SKIPPED_FAILS_VERDICT,
) -> StatusReduction:
    """Fold ordered outcomes into one verdict.

    None entries (feature boundary markers) never fail but keep their
    position, so the index points into the flattened sequence.
    """
    for index, outcome in enumerate(outcomes):
        if _is_failing(outcome, skipped_fails):
            return StatusReduction(StepOutcome.FAILED, index)
    return StatusReduction(StepOutcome.PASSED, -1)


def reduce_verdicts(verdicts: Iterable[StepOutcome]) -> StepOutcome:
    """Feature verdict: failed if any scenario failed."""
    if any(v is StepOutcome.FAILED for v in verdicts):
        return StepOutcome.FAILED
    return StepOutcome.PASSED


def first_error_message(messages: Iterable[Optional[str]]) -> str:
    """First non-empty error message in sequence order."""
    for message in messages:
        if message:
            return message
    return ""
