"""Cucumber JSON report parsing logic."""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Sequence

from .extractor import extract_scenario
from .models import FeatureResult, ResultRecord, ScenarioResult, StepRow
from .status import first_error_message, reduce_verdicts
from .tags import MANUAL_TCT, REQUIREMENT, TEST_LEVEL, classify, free_tags, tags_from_report, union_tags

logger = logging.getLogger(__name__)


FEATURE_NAME_PREFIX = "(Auto-Generated) "


class ParseMode(Enum):
    """One record per scenario, or one aggregated record per feature."""
    SCENARIO = "scenario"
    FEATURE = "feature"


class ScenarioOrder(Enum):
    """Order in which a feature's scenarios are aggregated."""
    DECLARED = "declared"
    REVERSED = "reversed"

    def apply(self, scenarios: Sequence[dict]) -> list[dict]:
        if self is ScenarioOrder.REVERSED:
            return list(reversed(scenarios))
        return list(scenarios)


# Feature records list scenarios last-declared-first
FEATURE_SCENARIO_ORDER = ScenarioOrder.REVERSED


class ReportFileError(Exception):
    """Report files could not be located."""
    pass


def load_features(document: str) -> list[dict]:
    """Decode a report document into its list of feature objects."""
    data = json.loads(document)
    if not isinstance(data, list):
        raise ValueError("Report document is not a list of features")
    # Some runners wrap the feature list in one more array
    if len(data) == 1 and isinstance(data[0], list):
        data = data[0]
    return data


def _scenario_from_element(element: dict, uri: Optional[str]) -> ScenarioResult:
    return extract_scenario(
        element["steps"],
        name=element["name"],
        tags=tags_from_report(element.get("tags")),
        uri=uri,
    )


def parse_scenarios(document: str) -> list[ScenarioResult]:
    """One record per scenario, in declaration order.

    A malformed document is logged and the records parsed so far returned.
    """
    results: list[ScenarioResult] = []
    try:
        for feature in load_features(document):
            for element in feature["elements"]:
                results.append(_scenario_from_element(element, feature.get("uri")))
    except (ValueError, KeyError, TypeError, IndexError, AttributeError, RecursionError) as e:
        logger.error("Error when parsing results: %r. Continuing...", e)
        logger.debug("Parse failure details", exc_info=True)
    return results


def build_feature_result(feature: dict, scenarios: Sequence[ScenarioResult]) -> FeatureResult:
    """Flatten already extracted scenarios into one feature record."""
    descriptions: list[Optional[str]] = []
    statuses: list = []
    step_tags: list[Optional[tuple[str, ...]]] = []
    rows: list[StepRow] = []
    screenshots: list[Optional[str]] = []

    first_failure_index = -1

    for scenario in scenarios:
        descriptions.append(None)
        statuses.append(None)
        step_tags.append(None)
        screenshots.append(None)
        rows.append(StepRow.from_label(scenario.name, is_group=True))
        if first_failure_index == -1 and scenario.first_failure_index != -1:
            first_failure_index = len(rows) + scenario.first_failure_index

        descriptions.extend(scenario.step_descriptions)
        statuses.extend(scenario.step_statuses)
        step_tags.extend(scenario.tags for _ in scenario.steps)
        screenshots.extend(scenario.screenshots)
        rows.extend(scenario.steps_rows)

    tags = union_tags(*(s.tags for s in scenarios))
    urls = [s.current_url for s in scenarios if s.current_url]
    verdict = reduce_verdicts(s.verdict for s in scenarios)

    return FeatureResult(
        name=f"{FEATURE_NAME_PREFIX}{feature['name']}",
        description=feature.get("description") or "",
        scenario_names=tuple(s.name for s in scenarios),
        step_descriptions=tuple(descriptions),
        step_statuses=tuple(statuses),
        step_tags=tuple(step_tags),
        steps_rows=tuple(rows),
        screenshots=tuple(screenshots),
        verdict=verdict,
        first_failure_index=first_failure_index,
        error_message=first_error_message(s.error_message for s in scenarios),
        tags=tuple(tags),
        manual_test_case_tags=tuple(classify(tags, MANUAL_TCT)),
        requirement_tags=tuple(classify(tags, REQUIREMENT)),
        free_tags=tuple(free_tags(tags)),
        test_level=tuple(classify(tags, TEST_LEVEL)),
        current_url=urls[-1] if urls else None,
        script_path=scenarios[0].script_path if scenarios else "",
    )


def parse_features(document: str) -> list[FeatureResult]:
    """One aggregated record per feature.

    Scenarios are visited in FEATURE_SCENARIO_ORDER. A malformed document is
    logged and the records parsed so far returned.
    """
    results: list[FeatureResult] = []
    try:
        for feature in load_features(document):
            uri = feature.get("uri")
            elements = FEATURE_SCENARIO_ORDER.apply(feature["elements"])
            scenarios = [_scenario_from_element(element, uri) for element in elements]
            results.append(build_feature_result(feature, scenarios))
    except (ValueError, KeyError, TypeError, IndexError, AttributeError, RecursionError) as e:
        logger.error("Error when parsing results: %r. Continuing...", e)
        logger.debug("Parse failure details", exc_info=True)
    return results


def parse_document(document: str, mode: ParseMode = ParseMode.SCENARIO) -> list[ResultRecord]:
    """Parse in the requested granularity."""
    if mode is ParseMode.FEATURE:
        return parse_features(document)
    return parse_scenarios(document)


def read_report(file_path: Path) -> str:
    return file_path.read_text(encoding="utf-8")


def parse_report(file_path: Path, mode: ParseMode = ParseMode.SCENARIO) -> list[ResultRecord]:
    """Parse a single report file."""
    logger.info("Parsing report %s", file_path)
    return parse_document(read_report(file_path), mode)


def parse_reports(
    file_paths: list[Path],
    mode: ParseMode = ParseMode.SCENARIO,
    progress_callback: Optional[Callable] = None,
) -> list[ResultRecord]:
    """Parse multiple report files; an unreadable file does not stop the rest."""
    results: list[ResultRecord] = []
    total = len(file_paths)

    for i, file_path in enumerate(file_paths):
        if progress_callback:
            progress_callback(i, total, file_path.name)

        try:
            results.extend(parse_report(file_path, mode))
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Failed to read %s: %s. Continuing...", file_path, e)

    if progress_callback:
        progress_callback(total, total, "complete")

    return results


def collect_json_files(paths: list[str]) -> list[Path]:
    """Gather all JSON report files from given paths (files or directories)."""
    json_files = []

    for path_str in paths:
        path = Path(path_str)

        if path.is_file() and path.suffix.lower() == ".json":
            json_files.append(path)
        elif path.is_dir():
            json_files.extend(path.glob("**/*.json"))
        elif path.is_file():
            raise ReportFileError(f"Not a JSON file: {path}")
        else:
            raise ReportFileError(f"Path not found: {path}")

    if not json_files:
        raise ReportFileError("No JSON report files found in provided paths")

    return sorted(json_files)
