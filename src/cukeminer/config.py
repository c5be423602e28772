"""Configuration via environment variables."""

import os
from pathlib import Path

# Jira configuration
JIRA_BASE_URL = os.environ.get("CUKE_JIRA_URL", "")
JIRA_TOKEN = os.environ.get("CUKE_JIRA_TOKEN", "")
JIRA_EMAIL = os.environ.get("CUKE_JIRA_EMAIL", "")
JIRA_TIMEOUT = float(os.environ.get("CUKE_JIRA_TIMEOUT", "30"))

# TestFLO custom field holding the steps table
JIRA_STEPS_FIELD = os.environ.get("CUKE_STEPS_FIELD", "customfield_18001")

# Project where Test Case Templates live, and the account that creates them
TEMPLATE_PROJECT = os.environ.get("CUKE_TEMPLATE_PROJECT", "")
TEMPLATE_REPORTER = os.environ.get("CUKE_TEMPLATE_REPORTER", "")

# Projects for Test Cases created from templates, and for bug reports
TEST_CASE_PROJECT = os.environ.get("CUKE_TEST_CASE_PROJECT", "")
BUG_PROJECT = os.environ.get("CUKE_BUG_PROJECT", "")

# Prefix for links to the test script in source control
SCRIPT_BASE_URL = os.environ.get("CUKE_SCRIPT_BASE_URL", "")

# Report input and parsed output locations
RESULTS_DIR = Path(os.environ.get("CUKE_RESULTS_DIR", ".reports/cucumberjs-json"))
OUTPUT_DIR = Path(os.environ.get("CUKE_OUTPUT_DIR", ".output/reports"))

# Logging
LOG_FILE = os.environ.get("CUKE_LOG_FILE", "")
LOG_LEVEL = os.environ.get("CUKE_LOG_LEVEL", "INFO")

# Default CLI options
DEFAULT_MODE = os.environ.get("CUKE_MODE", "scenario")
DEFAULT_FORMAT = os.environ.get("CUKE_FORMAT", "names")
DEFAULT_STATUS = os.environ.get("CUKE_STATUS", "all")
