"""Command line interface."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from . import config
from .formatters import FORMATTERS, get_formatter
from .jira_client import JiraClientError, get_jira_client
from .log import setup_logging
from .models import ResultRecord, StepOutcome
from .parser import ParseMode, ReportFileError, collect_json_files, parse_reports
from .results import publish_results
from .screenshots import save_screenshots
from .templates import check_template, resolve_template
from .testcases import create_test_case

logger = logging.getLogger(__name__)


MODES = [mode.value for mode in ParseMode]
FORMATS = list(FORMATTERS)
STATUSES = ["passed", "failed", "all"]


def filter_by_status(results: list[ResultRecord], status: str) -> list[ResultRecord]:
    """Keep only records with the given verdict."""
    if status == "all":
        return results

    target = StepOutcome.from_string(status)
    return [r for r in results if r.verdict == target]


def load_records(input_paths: tuple[str, ...], mode: str) -> list[ResultRecord]:
    """Parse the given paths, or the configured results directory."""
    paths = list(input_paths) or [str(config.RESULTS_DIR)]
    report_files = collect_json_files(paths)
    logger.info("Following result files found: %s", ", ".join(f.name for f in report_files))
    return parse_reports(report_files, mode=ParseMode(mode))


input_paths_argument = click.argument(
    "input_paths", nargs=-1, required=False, type=click.Path(exists=True),
)
mode_option = click.option(
    "-m", "--mode",
    type=click.Choice(MODES, case_sensitive=False),
    default=config.DEFAULT_MODE,
    help="One record per scenario or per feature (default: scenario)",
)
output_dir_option = click.option(
    "-d", "--output-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory for screenshot files (default: configured output dir)",
)
create_bug_option = click.option(
    "--create-bug",
    is_flag=True,
    default=False,
    help="Find or file a bug for a failed record and link it",
)


def require_jira_client():
    """The Jira client, or exit when credentials are missing."""
    client = get_jira_client()
    if not client.is_configured:
        click.echo("Error: Jira is not configured (CUKE_JIRA_URL, CUKE_JIRA_EMAIL, CUKE_JIRA_TOKEN)", err=True)
        sys.exit(1)
    return client


@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    default=False,
    help="Enable debug logging",
)
@click.option(
    "--log-file",
    type=click.Path(),
    default=None,
    help="Also write logs to this file",
)
def main(verbose: bool, log_file: Optional[str]):
    """Turn Cucumber JSON reports into Jira test records.

    INPUT_PATHS default to the configured results directory.
    """
    level = logging.DEBUG if verbose else config.LOG_LEVEL
    setup_logging(level, log_file or config.LOG_FILE or None)


@main.command("parse")
@input_paths_argument
@mode_option
@click.option(
    "-f", "--format",
    "output_format",
    type=click.Choice(FORMATS, case_sensitive=False),
    default=config.DEFAULT_FORMAT,
    help="Output format (default: names)",
)
@click.option(
    "-s", "--status",
    type=click.Choice(STATUSES, case_sensitive=False),
    default=config.DEFAULT_STATUS,
    help="Filter by verdict (default: all)",
)
@click.option(
    "-o", "--output",
    type=click.Path(),
    default=None,
    help="Export results to file",
)
@click.option(
    "-c", "--count",
    is_flag=True,
    default=False,
    help="Show count only",
)
def parse_command(
    input_paths: tuple[str, ...],
    mode: str,
    output_format: str,
    status: str,
    output: Optional[str],
    count: bool,
):
    """Print the records parsed from reports."""
    try:
        results = filter_by_status(load_records(input_paths, mode), status)

        if count:
            click.echo(len(results))
            return

        if not results:
            click.echo("No records found matching criteria.", err=True)
            sys.exit(0)

        formatted = get_formatter(output_format).format(results)

        if output:
            Path(output).write_text(formatted + "\n", encoding="utf-8")
            click.echo(f"Results written to {output}", err=True)
        else:
            click.echo(formatted)

    except (ReportFileError, OSError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command("screenshots")
@input_paths_argument
@mode_option
@output_dir_option
def screenshots_command(input_paths: tuple[str, ...], mode: str, output_dir: Optional[str]):
    """Write embedded step screenshots as PNG files."""
    target = Path(output_dir) if output_dir else config.OUTPUT_DIR
    try:
        written = 0
        for record in load_records(input_paths, mode):
            written += len(save_screenshots(record, target))
        click.echo(f"{written} screenshot(s) written to {target}")
    except (ReportFileError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command("templates")
@input_paths_argument
@mode_option
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Only report whether templates are current",
)
def templates_command(input_paths: tuple[str, ...], mode: str, dry_run: bool):
    """Reconcile records with their Jira Test Case Templates."""
    client = require_jira_client()

    failures = 0
    try:
        for record in load_records(input_paths, mode):
            try:
                if dry_run:
                    status = check_template(client, record)
                    click.echo(f"{status.state.value:<9} {status.key or '-':<12} {record.name}")
                else:
                    decision = resolve_template(client, record)
                    line = f"{decision.action.value:<9} {decision.key:<12} {record.name}"
                    if decision.previous_key:
                        line += f" (supersedes {decision.previous_key})"
                    click.echo(line)
            except JiraClientError as e:
                failures += 1
                logger.error("Template sync failed for %r: %s. Continuing...", record.name, e)
    except ReportFileError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        client.close()

    if failures:
        click.echo(f"{failures} record(s) could not be synced", err=True)
        sys.exit(1)


def select_record(results: list[ResultRecord], name: Optional[str]) -> ResultRecord:
    """The record called ``name``, or the only record when no name is given."""
    if name is not None:
        matches = [r for r in results if r.name == name]
        if not matches:
            raise ValueError(f"No record named {name!r}")
        return matches[0]
    if len(results) != 1:
        raise ValueError(f"Found {len(results)} records, choose one with --name")
    return results[0]


@main.command("results")
@click.argument("issue_key")
@input_paths_argument
@mode_option
@click.option(
    "-n", "--name",
    default=None,
    help="Record to publish when the reports hold more than one",
)
@click.option(
    "-b", "--bug",
    "bug_key",
    default=None,
    help="Bug to link from the failing step",
)
@output_dir_option
@create_bug_option
def results_command(
    issue_key: str,
    input_paths: tuple[str, ...],
    mode: str,
    name: Optional[str],
    bug_key: Optional[str],
    output_dir: Optional[str],
    create_bug: bool,
):
    """Publish step statuses and screenshots to the Test Case ISSUE_KEY."""
    client = require_jira_client()

    target = Path(output_dir) if output_dir else config.OUTPUT_DIR
    try:
        record = select_record(load_records(input_paths, mode), name)
        if not publish_results(client, issue_key, record, target, bug_key, create_bug):
            click.echo(f"Error: Test Case {issue_key} not found", err=True)
            sys.exit(1)
        click.echo(f"{record.verdict.value:<9} {issue_key:<12} {record.name}")
    except (ReportFileError, ValueError, OSError, JiraClientError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        client.close()


@main.command("testcase")
@click.argument("plan_key")
@input_paths_argument
@mode_option
@output_dir_option
@create_bug_option
def testcase_command(
    plan_key: str,
    input_paths: tuple[str, ...],
    mode: str,
    output_dir: Optional[str],
    create_bug: bool,
):
    """Create a Test Case in the Test Plan PLAN_KEY for each record and
    publish its results.
    """
    client = require_jira_client()

    target = Path(output_dir) if output_dir else config.OUTPUT_DIR
    failures = 0
    try:
        for record in load_records(input_paths, mode):
            try:
                template = resolve_template(client, record)
                key = create_test_case(client, plan_key, template.key, record.manual_test_case_tags)
                if key is None or not publish_results(client, key, record, target, create_bug=create_bug):
                    failures += 1
                    continue
                click.echo(f"{record.verdict.value:<9} {key:<12} {record.name}")
            except JiraClientError as e:
                failures += 1
                logger.error("Test Case update failed for %r: %s. Continuing...", record.name, e)
    except (ReportFileError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        client.close()

    if failures:
        click.echo(f"{failures} record(s) could not be published", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
