"""Tag classification for Cucumber scenario tags."""

import logging
import re
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


MANUAL_TCT = "@manualTct"
REQUIREMENT = "@requirement"
TEST_LEVEL = "@testLevel"
TEST_KIND = "@testKind"

# Issue-key categories capture "KEY-123"; level/kind categories keep the
# leading colon, e.g. "@testLevel:E2E" -> ":E2E"
TAG_PATTERNS = {
    MANUAL_TCT: re.compile(r"(?!^@manualTct:)\w+-\d+"),
    REQUIREMENT: re.compile(r"(?!^@requirement:)\w+-\d+"),
    TEST_LEVEL: re.compile(r"(?!^@testLevel:):\w+-?\d*"),
    TEST_KIND: re.compile(r"(?!^@testKind:):\w+-?\d*"),
}


def classify(tags: Optional[Iterable[str]], category: Optional[str] = None) -> list[str]:
    """Extract the values of one tag category, in input order.

    Without a category the tags are returned unchanged. A tag that mentions
    the category but does not match its pattern is dropped, and an unknown
    category yields no values.
    """
    if not tags:
        return []
    if not category:
        return list(tags)

    pattern = TAG_PATTERNS.get(category)
    if pattern is None:
        logger.debug("Unknown tag category %r, no values extracted", category)
        return []

    matched = []
    for tag in tags:
        if category not in tag:
            continue
        match = pattern.search(tag)
        if match:
            matched.append(match.group())
    return matched


def free_tags(tags: Optional[Iterable[str]]) -> list[str]:
    """Tags that belong to no known category."""
    if not tags:
        return []
    return [t for t in tags if not any(category in t for category in TAG_PATTERNS)]


def union_tags(*tag_lists: Optional[Iterable[str]]) -> list[str]:
    """Order-preserving union; duplicates collapse to the first occurrence."""
    merged: dict[str, None] = {}
    for tags in tag_lists:
        for tag in tags or ():
            merged.setdefault(tag, None)
    return list(merged)


def tags_from_report(raw_tags: Optional[list[dict]]) -> list[str]:
    """Tag names from the report's [{"name": ...}] list."""
    if not raw_tags:
        return []
    return [tag["name"] for tag in raw_tags]
