"""Decides whether a saved file state is worth a new snapshot."""

import difflib
from typing import Optional

# More than this many inserted/deleted lines is a significant change
SIGNIFICANT_CHANGE_THRESHOLD = 2


def count_changed_lines(previous: str, candidate: str) -> int:
    """Count inserted plus deleted lines in a unified diff of two texts."""
    diff = difflib.unified_diff(
        previous.splitlines(),
        candidate.splitlines(),
        n=0,
        lineterm="",
    )
    changed = 0
    in_hunk = False
    for line in diff:
        # The ---/+++ file header only precedes the first hunk
        if line.startswith("@@"):
            in_hunk = True
            continue
        if in_hunk and line.startswith(("+", "-")):
            changed += 1
    return changed


class AdmissionPolicy:
    """Admission rule for new snapshots.

    With ``save_all_changes`` every byte-level change is admitted. Otherwise
    only changes touching more than ``SIGNIFICANT_CHANGE_THRESHOLD`` lines, or
    a first snapshot spanning more than one line, are admitted.
    """

    def __init__(self, save_all_changes: bool = False):
        self.save_all_changes = save_all_changes

    def should_admit(self, previous: Optional[str], candidate: str) -> bool:
        if previous is not None and previous == candidate:
            return False

        if self.save_all_changes:
            return True

        if previous is None:
            return len(candidate.splitlines()) > 1

        return count_changed_lines(previous, candidate) > SIGNIFICANT_CHANGE_THRESHOLD
