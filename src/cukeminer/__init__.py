"""Cuke-Miner - turn Cucumber JSON reports into Jira test records."""

__version__ = "1.0.0"

from .models import FeatureResult, ScenarioResult, StepOutcome, StepRecord, StepRow
from .parser import ParseMode, parse_features, parse_reports, parse_scenarios
from .reconcile import is_current, reconcile

__all__ = [
    "__version__",
    "FeatureResult",
    "ScenarioResult",
    "StepOutcome",
    "StepRecord",
    "StepRow",
    "ParseMode",
    "parse_features",
    "parse_reports",
    "parse_scenarios",
    "is_current",
    "reconcile",
]
