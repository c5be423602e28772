"""Tests for CLI interface."""

import json
from unittest.mock import Mock

import pytest
from click.testing import CliRunner

from cukeminer.cli import filter_by_status, main
from cukeminer.jira_client import JiraClient, JiraClientError
from cukeminer.models import JiraIssueData
from cukeminer.parser import parse_scenarios


@pytest.fixture
def runner():
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def jira_client(monkeypatch):
    """Configured Jira client double used by the templates command."""
    client = Mock(spec=JiraClient)
    client.is_configured = True
    client.search_issues.return_value = []
    client.create_issue.side_effect = ["TCT-1", "TCT-2"]
    monkeypatch.setattr("cukeminer.cli.get_jira_client", lambda: client)
    monkeypatch.setattr("cukeminer.config.TEMPLATE_PROJECT", "TCT")
    return client


class TestFilterByStatus:
    """Tests for verdict filtering."""

    def test_filter_all_returns_all(self, report_document):
        results = parse_scenarios(report_document)
        assert filter_by_status(results, "all") == results

    def test_filter_passed(self, report_document):
        result = filter_by_status(parse_scenarios(report_document), "passed")
        assert [r.name for r in result] == ["Successful login"]

    def test_filter_failed(self, report_document):
        result = filter_by_status(parse_scenarios(report_document), "failed")
        assert [r.name for r in result] == ["Wrong password"]


class TestParseCommand:
    """Tests for the parse command."""

    def test_help_option(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Turn Cucumber JSON reports into Jira test records" in result.output

    def test_names_by_default(self, runner, report_file):
        result = runner.invoke(main, ["parse", str(report_file)])
        assert result.exit_code == 0
        assert result.output.splitlines() == ["Successful login", "Wrong password"]

    def test_feature_mode(self, runner, report_file):
        result = runner.invoke(main, ["parse", "-m", "feature", str(report_file)])
        assert result.exit_code == 0
        assert result.output.strip() == "(Auto-Generated) Login"

    def test_format_json(self, runner, report_file):
        result = runner.invoke(main, ["parse", "-f", "json", str(report_file)])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [r["verdict"] for r in data] == ["passed", "failed"]

    def test_format_detailed(self, runner, report_file):
        result = runner.invoke(main, ["parse", "-f", "detailed", str(report_file)])
        assert result.exit_code == 0
        assert "Status:   failed" in result.output

    def test_format_steps(self, runner, report_file):
        result = runner.invoke(main, ["parse", "-f", "steps", "-s", "failed", str(report_file)])
        assert result.exit_code == 0
        assert "  failed   When I enter a wrong password" in result.output

    def test_status_passed(self, runner, report_file):
        result = runner.invoke(main, ["parse", "-s", "passed", str(report_file)])
        assert result.exit_code == 0
        assert result.output.strip() == "Successful login"

    def test_count_option(self, runner, report_file, second_report_file):
        result = runner.invoke(main, ["parse", "-c", str(report_file), str(second_report_file)])
        assert result.exit_code == 0
        assert result.output.strip() == "3"

    def test_directory_input(self, runner, tmp_path, report_file, second_report_file):
        result = runner.invoke(main, ["parse", "-m", "feature", str(tmp_path)])
        assert result.exit_code == 0
        assert "(Auto-Generated) Checkout" in result.output

    def test_default_results_dir(self, runner, tmp_path, report_file, monkeypatch):
        monkeypatch.setattr("cukeminer.config.RESULTS_DIR", tmp_path)
        result = runner.invoke(main, ["parse", "-c"])
        assert result.exit_code == 0
        assert result.output.strip() == "2"

    def test_output_to_file(self, runner, report_file, tmp_path):
        output_file = tmp_path / "output.txt"
        result = runner.invoke(main, ["parse", "-o", str(output_file), str(report_file)])
        assert result.exit_code == 0
        assert output_file.read_text() == "Successful login\nWrong password\n"

    def test_invalid_path(self, runner):
        result = runner.invoke(main, ["parse", "/nonexistent/report.json"])
        assert result.exit_code != 0

    def test_non_json_file(self, runner, tmp_path):
        txt_file = tmp_path / "report.txt"
        txt_file.write_text("text")
        result = runner.invoke(main, ["parse", str(txt_file)])
        assert result.exit_code == 1
        assert "Not a JSON file" in result.output

    def test_no_records_message(self, runner, tmp_path):
        report = tmp_path / "broken.json"
        report.write_text("not json")
        result = runner.invoke(main, ["parse", str(report)])
        assert result.exit_code == 0
        assert "No records found matching criteria." in result.output

    def test_log_file(self, runner, report_file, tmp_path):
        log_file = tmp_path / "cukeminer.log"
        result = runner.invoke(main, ["-v", "--log-file", str(log_file), "parse", str(report_file)])
        assert result.exit_code == 0
        assert "Parsing report" in log_file.read_text()


class TestScreenshotsCommand:
    """Tests for the screenshots command."""

    def test_writes_screenshots(self, runner, report_file, tmp_path):
        target = tmp_path / "shots"
        result = runner.invoke(main, ["screenshots", "-d", str(target), str(report_file)])
        assert result.exit_code == 0
        assert f"2 screenshot(s) written to {target}" in result.output
        assert (target / "When I enter a wrong password.png").read_bytes() == b"world"


class TestTemplatesCommand:
    """Tests for the templates command."""

    def test_requires_jira(self, runner, report_file, monkeypatch):
        client = Mock(spec=JiraClient)
        client.is_configured = False
        monkeypatch.setattr("cukeminer.cli.get_jira_client", lambda: client)
        result = runner.invoke(main, ["templates", str(report_file)])
        assert result.exit_code == 1
        assert "Jira is not configured" in result.output

    def test_dry_run_reports_state(self, runner, report_file, jira_client):
        jira_client.search_issues.return_value = [JiraIssueData("TCT-7", "Wrong password")]
        jira_client.get_step_rows.return_value = [{"cells": ["Given I open the login page", "", ""]}]
        result = runner.invoke(main, ["templates", "--dry-run", str(report_file)])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].split() == ["missing", "-", "Successful", "login"]
        assert lines[1].split() == ["current", "TCT-7", "Wrong", "password"]
        jira_client.create_issue.assert_not_called()
        jira_client.close.assert_called_once()

    def test_creates_templates(self, runner, report_file, jira_client):
        result = runner.invoke(main, ["templates", str(report_file)])
        assert result.exit_code == 0
        assert result.output.splitlines()[0].split() == ["created", "TCT-1", "Successful", "login"]
        assert jira_client.create_issue.call_count == 2

    def test_upgrade_names_previous_template(self, runner, report_file, jira_client):
        jira_client.search_issues.return_value = [JiraIssueData("TCT-0", "Successful login")]
        jira_client.get_step_rows.return_value = [{"cells": ["Given I open an old page", "", ""]}]
        result = runner.invoke(main, ["templates", str(report_file)])
        assert "upgraded  TCT-1" in result.output
        assert "(supersedes TCT-0)" in result.output

    def test_jira_errors_are_counted(self, runner, report_file, jira_client):
        jira_client.create_issue.side_effect = JiraClientError("forbidden")
        result = runner.invoke(main, ["templates", str(report_file)])
        assert result.exit_code == 1
        assert "2 record(s) could not be synced" in result.output


class TestResultsCommand:
    """Tests for the results command."""

    @pytest.fixture
    def results_client(self, jira_client):
        jira_client.get_issue_id.return_value = "10001"
        jira_client.add_attachment.return_value = [{"id": "5", "filename": "shot.png"}]
        return jira_client

    def test_publishes_named_record(self, runner, report_file, results_client, tmp_path):
        result = runner.invoke(main, [
            "results", "TC-1", str(report_file),
            "-n", "Wrong password", "-b", "BUG-9", "-d", str(tmp_path / "shots"),
        ])
        assert result.exit_code == 0
        assert result.output.split() == ["failed", "TC-1", "Wrong", "password"]
        request = results_client.update_steps.call_args.args[1]
        assert request["stepsRows"][1]["defects"] == [{"key": "BUG-9"}]

    def test_requires_name_for_many_records(self, runner, report_file, results_client):
        result = runner.invoke(main, ["results", "TC-1", str(report_file)])
        assert result.exit_code == 1
        assert "Found 2 records, choose one with --name" in result.output

    def test_single_feature_record(self, runner, report_file, results_client, tmp_path):
        result = runner.invoke(main, ["results", "TC-1", "-m", "feature", "-d", str(tmp_path / "s"), str(report_file)])
        assert result.exit_code == 0
        assert "(Auto-Generated) Login" in result.output

    def test_missing_test_case(self, runner, report_file, results_client):
        results_client.get_issue_id.return_value = None
        result = runner.invoke(main, ["results", "TC-404", "-n", "Successful login", str(report_file)])
        assert result.exit_code == 1
        assert "Test Case TC-404 not found" in result.output

    def test_create_bug_links_failing_step(self, runner, report_file, results_client, tmp_path, monkeypatch):
        monkeypatch.setattr("cukeminer.config.BUG_PROJECT", "BUG")
        results_client.create_issue.side_effect = ["BUG-11"]
        result = runner.invoke(main, [
            "results", "TC-1", str(report_file),
            "-n", "Wrong password", "--create-bug", "-d", str(tmp_path / "shots"),
        ])
        assert result.exit_code == 0
        request = results_client.update_steps.call_args.args[1]
        assert request["stepsRows"][1]["defects"] == [{"key": "BUG-11"}]


class TestTestcaseCommand:
    """Tests for the testcase command."""

    @pytest.fixture
    def plan_client(self, jira_client, monkeypatch):
        monkeypatch.setattr("cukeminer.config.TEST_CASE_PROJECT", "TC")
        jira_client.add_templates_to_plan.side_effect = ["TC-1", "TC-2"]
        jira_client.get_issue_id.return_value = "10001"
        jira_client.add_attachment.return_value = [{"id": "5", "filename": "shot.png"}]
        return jira_client

    def test_creates_and_publishes_each_record(self, runner, report_file, plan_client, tmp_path):
        result = runner.invoke(main, ["testcase", "TP-1", "-d", str(tmp_path / "shots"), str(report_file)])
        assert result.exit_code == 0
        assert [line.split()[:2] for line in result.output.splitlines()] == [
            ["passed", "TC-1"],
            ["failed", "TC-2"],
        ]
        assert plan_client.add_templates_to_plan.call_args_list[0].args == ("TP-1", "TCT-1")
        assert plan_client.update_steps.call_count == 2

    def test_unpublished_records_are_counted(self, runner, report_file, plan_client, tmp_path):
        plan_client.get_issue_id.return_value = None
        result = runner.invoke(main, ["testcase", "TP-1", "-d", str(tmp_path / "shots"), str(report_file)])
        assert result.exit_code == 1
        assert "2 record(s) could not be published" in result.output
