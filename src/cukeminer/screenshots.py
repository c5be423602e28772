"""Writing embedded step screenshots to disk."""

import base64
import binascii
import logging
from pathlib import Path

from .models import ResultRecord

logger = logging.getLogger(__name__)


def _file_stem(description: str) -> str:
    return description.replace("/", "_").replace("\\", "_")


def screenshot_paths(record: ResultRecord, output_dir: Path) -> dict[int, Path]:
    """Target path for each screenshot, keyed by its row index.

    Files are named after the step they belong to.
    """
    output_dir = Path(output_dir)
    paths: dict[int, Path] = {}
    seen: dict[Path, int] = {}
    for index, (description, data) in enumerate(zip(record.step_descriptions, record.screenshots)):
        if not data or description is None:
            continue
        stem = _file_stem(description)
        path = output_dir / f"{stem}.png"
        # Repeated step texts in one record get numbered files
        if path in seen:
            seen[path] += 1
            path = output_dir / f"{stem} ({seen[path]}).png"
        else:
            seen[path] = 1
        paths[index] = path
    return paths


def save_screenshots(record: ResultRecord, output_dir: Path) -> dict[int, Path]:
    """Decode and write a record's screenshots.

    Returns the written paths keyed by row index; invalid data is skipped.
    """
    output_dir = Path(output_dir)
    written: dict[int, Path] = {}
    for index, path in screenshot_paths(record, output_dir).items():
        try:
            content = base64.b64decode(record.screenshots[index], validate=True)
        except (binascii.Error, ValueError) as e:
            logger.warning("Skipping screenshot %s: %s", path.name, e)
            continue
        output_dir.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        written[index] = path
    logger.info("Saved %d screenshot(s) for %s", len(written), record.name)
    return written
