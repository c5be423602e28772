"""Pytest fixtures for cukeminer tests."""

import json
import pytest

from cukeminer.models import ScenarioResult, StepOutcome, StepRecord


SCREENSHOT_PASSED = "aGVsbG8="   # b"hello"
SCREENSHOT_FAILED = "d29ybGQ="   # b"world"


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep CLI output free of progress logs and warnings."""
    monkeypatch.setattr("cukeminer.config.LOG_LEVEL", "ERROR")
    monkeypatch.setattr("cukeminer.config.LOG_FILE", "")


@pytest.fixture
def make_step():
    """Factory for raw Cucumber step objects."""
    def _make_step(keyword, name, status="passed", error_message=None, embeddings=None):
        step = {"keyword": keyword, "result": {"status": status}}
        if name is not None:
            step["name"] = name
        if error_message:
            step["result"]["error_message"] = error_message
        if embeddings:
            step["embeddings"] = embeddings
        return step
    return _make_step


@pytest.fixture
def passing_scenario(make_step):
    """Scenario with a leading hook, URL/email/screenshot artifacts."""
    return {
        "name": "Successful login",
        "tags": [
            {"name": "@manualTct:QA-101"},
            {"name": "@requirement:REQ-1"},
            {"name": "@smoke"},
            {"name": "@testLevel:E2E"},
        ],
        "steps": [
            make_step("Before", None, embeddings=[
                {"mime_type": "text/plain", "data": "features/login.feature"},
            ]),
            make_step("Given ", 'I open the "login" page', embeddings=[
                {"mime_type": "text/plain", "data": "https://shop.example.com/login"},
            ]),
            make_step("When ", "I sign in as user", embeddings=[
                {"mime_type": "text/plain", "data": "qa.user@example.com"},
            ]),
            make_step("Then ", "I see the dashboard", embeddings=[
                {"mime_type": "image/png", "data": SCREENSHOT_PASSED},
            ]),
            make_step("After", None),
        ],
    }


@pytest.fixture
def failing_scenario(make_step):
    """Scenario whose second visible step fails; hook carries a session marker."""
    return {
        "name": "Wrong password",
        "tags": [
            {"name": "@manualTct:QA-102"},
            {"name": "@regression"},
        ],
        "steps": [
            make_step("Before", None, embeddings=[
                {"mime_type": "text/plain", "data": "HS session abc-123"},
            ]),
            make_step("Given ", "I open the login page"),
            make_step(
                "When ", "I enter a wrong password",
                status="failed",
                error_message="AssertionError: expected error banner",
                embeddings=[{"mime_type": "image/png", "data": SCREENSHOT_FAILED}],
            ),
            make_step("Then ", "I see an error", status="skipped"),
        ],
    }


@pytest.fixture
def report_features(passing_scenario, failing_scenario):
    """Decoded report: one feature, passing scenario declared first."""
    return [{
        "name": "Login",
        "description": "Login flows",
        "uri": "features\\login.feature",
        "elements": [passing_scenario, failing_scenario],
    }]


@pytest.fixture
def report_document(report_features):
    return json.dumps(report_features)


@pytest.fixture
def report_file(tmp_path, report_document):
    """Report written to disk."""
    report = tmp_path / "login.json"
    report.write_text(report_document)
    return report


@pytest.fixture
def second_report_file(tmp_path, make_step):
    """Second report with a single passing checkout scenario."""
    features = [{
        "name": "Checkout",
        "description": "",
        "uri": "features/checkout.feature",
        "elements": [{
            "name": "Pay by card",
            "tags": [{"name": "@requirement:REQ-7"}],
            "steps": [
                make_step("Given ", "a filled cart"),
                make_step("When ", "I pay by card"),
                make_step("Then ", "the order is placed"),
            ],
        }],
    }]
    report = tmp_path / "checkout.json"
    report.write_text(json.dumps(features))
    return report


@pytest.fixture
def scenario_result():
    """Hand-built failed scenario record."""
    return ScenarioResult(
        name="Wrong password",
        steps=(
            StepRecord("Given I open the login page", StepOutcome.PASSED),
            StepRecord("When I enter a wrong password", StepOutcome.FAILED),
            StepRecord("Then I see an error", StepOutcome.SKIPPED),
        ),
        verdict=StepOutcome.FAILED,
        first_failure_index=1,
        error_message="AssertionError: expected error banner",
        tags=("@manualTct:QA-102", "@regression"),
        manual_test_case_tags=("QA-102",),
        free_tags=("@regression",),
        script_path="features/login.feature",
        screenshots=(None, SCREENSHOT_FAILED, None),
    )
