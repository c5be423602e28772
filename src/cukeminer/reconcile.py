"""Positional comparison of persisted and freshly parsed step tables.

Rows are matched index by index, with no alignment. Inserting or removing a
step anywhere before the tail shifts every later row, so the template is
reported as stale even if the remaining steps are unchanged.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from .models import StepCells, StepRow

logger = logging.getLogger(__name__)


@dataclass
class Reconciliation:
    """Result of checking a persisted step table against fresh steps."""
    current: bool
    # Filled only when stale, to seed the next template version
    fresh_steps: list[StepCells] = field(default_factory=list)


def _cells(row: Any) -> StepCells:
    if isinstance(row, StepRow):
        cells = row.cells
    elif isinstance(row, str):
        cells = (row,)
    elif isinstance(row, dict):
        cells = row.get("cells") or ()
    else:
        cells = row
    return tuple("" if c is None else str(c) for c in cells)


def step_cells(rows: Iterable[Any]) -> list[StepCells]:
    """Normalise StepRows, Jira row dicts, cell sequences or strings to tuples."""
    return [_cells(row) for row in rows or ()]


def is_current(persisted_steps: Iterable[Any], fresh_steps: Iterable[Any]) -> bool:
    """True when every persisted row equals the fresh row at the same index.

    Fresh rows past the persisted length are not compared. A persisted table
    longer than the fresh one is stale.
    """
    persisted = step_cells(persisted_steps)
    fresh = step_cells(fresh_steps)

    for index, persisted_row in enumerate(persisted):
        if index >= len(fresh):
            logger.debug("Persisted step %d has no fresh counterpart", index)
            return False
        if fresh[index] != persisted_row:
            logger.debug(
                "Step %d differs: persisted %r, fresh %r",
                index, persisted_row, fresh[index],
            )
            return False
    return True


def reconcile(persisted_steps: Iterable[Any], fresh_steps: Iterable[Any]) -> Reconciliation:
    """is_current() plus the fresh step table when a new version is needed."""
    fresh = step_cells(fresh_steps)
    if is_current(persisted_steps, fresh):
        return Reconciliation(current=True)
    return Reconciliation(current=False, fresh_steps=fresh)
