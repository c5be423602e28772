"""Output formatters for parsed records."""

import json

from .models import FeatureResult, ResultRecord


class Formatter:
    """Base class for formatters."""

    def format(self, results: list[ResultRecord]) -> str:
        raise NotImplementedError


class NamesFormatter(Formatter):
    """Record names, one per line."""

    def format(self, results: list[ResultRecord]) -> str:
        return "\n".join(r.name for r in results)


class DetailedFormatter(Formatter):
    """Structured blocks with verdict, failing step, error and tags."""

    def format(self, results: list[ResultRecord]) -> str:
        lines = []
        separator = "-" * 80

        for i, r in enumerate(results):
            if i > 0:
                lines.append("")
            lines.append(separator)
            lines.append(f"Name:     {r.name}")
            lines.append(f"Status:   {r.verdict.value}")
            lines.append(f"Steps:    {sum(1 for d in r.step_descriptions if d is not None)}")

            if r.failed and r.first_failure_index != -1:
                lines.append(f"Failed:   {r.step_descriptions[r.first_failure_index]}")
            if r.manual_test_case_tags:
                lines.append(f"Manual:   {', '.join(r.manual_test_case_tags)}")
            if r.requirement_tags:
                lines.append(f"Reqs:     {', '.join(r.requirement_tags)}")
            if r.free_tags:
                lines.append(f"Tags:     {', '.join(r.free_tags)}")

            if r.error_message:
                lines.append("Error:")
                for error_line in r.error_message.split("\n"):
                    lines.append(f"  {error_line}")

        if lines:
            lines.append(separator)

        return "\n".join(lines)


class JsonFormatter(Formatter):
    """Records as a JSON list."""

    def format(self, results: list[ResultRecord]) -> str:
        return json.dumps([r.to_dict() for r in results], indent=2)


class StepsFormatter(Formatter):
    """Step table of each record with per-step status."""

    def format(self, results: list[ResultRecord]) -> str:
        lines = []
        for r in results:
            lines.append(f"{r.name} [{r.verdict.value}]")
            for row, status in zip(r.steps_rows, r.step_statuses):
                if row.is_group:
                    lines.append(f"  ## {row.cells[0]}")
                    continue
                indent = "    " if isinstance(r, FeatureResult) else "  "
                lines.append(f"{indent}{status.value:<8} {row.cells[0]}")
            lines.append("")
        return "\n".join(lines).rstrip()


FORMATTERS = {
    "names": NamesFormatter(),
    "detailed": DetailedFormatter(),
    "json": JsonFormatter(),
    "steps": StepsFormatter(),
}


def get_formatter(format_name: str) -> Formatter:
    """Get formatter by name."""
    formatter = FORMATTERS.get(format_name.lower())
    if not formatter:
        valid = ", ".join(FORMATTERS.keys())
        raise ValueError(f"Unknown format: {format_name}. Valid: {valid}")
    return formatter
