"""Data models for parsed Cucumber results."""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Optional, Union


# One row of a Jira steps table: action, input, expected result
StepCells = tuple[str, ...]


class StepOutcome(Enum):
    """Possible step result statuses."""
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @classmethod
    def from_string(cls, value: str) -> "StepOutcome":
        """Create outcome from string, case-insensitive."""
        normalized = value.lower().strip()
        for outcome in cls:
            if outcome.value == normalized:
                return outcome
        raise ValueError(f"Unknown step status: {value}")


class AttachmentKind(Enum):
    """Semantic slot an embedded artifact was classified into."""
    URL = "url"
    EMAIL = "email"
    UID = "uid"
    SCREENSHOT = "screenshot"


@dataclass(frozen=True)
class StepAttachment:
    """Classified artifact embedded in a step."""
    kind: AttachmentKind
    data: str


@dataclass(frozen=True)
class StepRecord:
    """Single visible step of a scenario."""
    label: str
    outcome: StepOutcome
    attachment: Optional[StepAttachment] = None

    @property
    def description(self) -> str:
        """Label without double quotes, safe to use in file names."""
        return self.label.replace('"', "")


@dataclass(frozen=True)
class StepRow:
    """Row of the Jira steps table."""
    cells: StepCells
    is_group: bool = False

    @classmethod
    def from_label(cls, label: str, is_group: bool = False) -> "StepRow":
        return cls(cells=(label, "", ""), is_group=is_group)

    def to_dict(self) -> dict:
        return {"cells": list(self.cells), "isGroup": self.is_group}


def _jsonable(value: Any) -> Any:
    """Turn enums and tuples from asdict() output into JSON-safe values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


@dataclass(frozen=True)
class ScenarioResult:
    """Canonical record for one scenario."""
    name: str
    steps: tuple[StepRecord, ...]
    verdict: StepOutcome
    first_failure_index: int
    error_message: str = ""
    tags: tuple[str, ...] = ()
    manual_test_case_tags: tuple[str, ...] = ()
    requirement_tags: tuple[str, ...] = ()
    free_tags: tuple[str, ...] = ()
    script_path: str = ""
    session_marker: Optional[str] = None
    current_url: Optional[str] = None
    user_email: Optional[str] = None
    user_uid: Optional[str] = None
    # One slot per visible step, None where the step has no screenshot
    screenshots: tuple[Optional[str], ...] = ()

    @property
    def step_descriptions(self) -> tuple[str, ...]:
        return tuple(step.description for step in self.steps)

    @property
    def step_statuses(self) -> tuple[StepOutcome, ...]:
        return tuple(step.outcome for step in self.steps)

    @property
    def steps_rows(self) -> tuple[StepRow, ...]:
        return tuple(StepRow.from_label(step.label) for step in self.steps)

    @property
    def failed(self) -> bool:
        return self.verdict is StepOutcome.FAILED

    def to_dict(self) -> dict:
        """Plain dict view, safe for json.dumps."""
        data = _jsonable(asdict(self))
        data["step_descriptions"] = list(self.step_descriptions)
        data["step_statuses"] = [s.value for s in self.step_statuses]
        data["steps_rows"] = [row.to_dict() for row in self.steps_rows]
        return data


@dataclass(frozen=True)
class FeatureResult:
    """Canonical record aggregating all scenarios of a feature.

    Flattened sequences carry a None boundary marker before each scenario's
    entries; ``steps_rows`` carries a group row with the scenario name at
    the same positions.
    """
    name: str
    description: str
    scenario_names: tuple[str, ...]
    step_descriptions: tuple[Optional[str], ...]
    step_statuses: tuple[Optional[StepOutcome], ...]
    step_tags: tuple[Optional[tuple[str, ...]], ...]
    steps_rows: tuple[StepRow, ...]
    screenshots: tuple[Optional[str], ...]
    verdict: StepOutcome
    first_failure_index: int
    error_message: str = ""
    tags: tuple[str, ...] = ()
    manual_test_case_tags: tuple[str, ...] = ()
    requirement_tags: tuple[str, ...] = ()
    free_tags: tuple[str, ...] = ()
    test_level: tuple[str, ...] = ()
    current_url: Optional[str] = None
    script_path: str = ""

    @property
    def boundary_count(self) -> int:
        return sum(1 for row in self.steps_rows if row.is_group)

    @property
    def failed(self) -> bool:
        return self.verdict is StepOutcome.FAILED

    def to_dict(self) -> dict:
        """Plain dict view, safe for json.dumps."""
        data = _jsonable(asdict(self))
        data["steps_rows"] = [row.to_dict() for row in self.steps_rows]
        return data


ResultRecord = Union[ScenarioResult, FeatureResult]


@dataclass
class JiraIssueData:
    """Issue summary fetched from Jira search."""
    key: str
    summary: str
    description: Optional[str] = None
