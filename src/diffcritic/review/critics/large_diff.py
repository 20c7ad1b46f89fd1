"""Warns when a change set is too big to review comfortably."""

from ..findings import Category, Finding, Severity, new_finding
from .base import Critic, ReviewInput

DEFAULT_MAX_CHANGED_LINES = 500
DEFAULT_MAX_CHANGED_FILES = 20

SPLIT_SUGGESTION = "consider splitting into smaller, focused pull requests"


class LargeDiffCritic(Critic):
    """
    Compare the diff against a changed-lines and a changed-files threshold.

    Each threshold is checked on its own, so a run yields zero, one or two
    findings.
    """

    def __init__(
        self,
        max_changed_lines: int = DEFAULT_MAX_CHANGED_LINES,
        max_changed_files: int = DEFAULT_MAX_CHANGED_FILES,
    ):
        self.max_changed_lines = max_changed_lines
        self.max_changed_files = max_changed_files

    @property
    def name(self) -> str:
        return "LargeDiffCritic"

    async def review(self, review_input: ReviewInput) -> list[Finding]:
        diff = review_input.diff
        if diff is None:
            return []

        findings: list[Finding] = []

        total_lines = diff.total_additions + diff.total_deletions
        if total_lines > self.max_changed_lines:
            findings.append(
                self._finding("lines", total_lines, self.max_changed_lines)
            )

        total_files = len(diff.files)
        if total_files > self.max_changed_files:
            findings.append(
                self._finding("files", total_files, self.max_changed_files)
            )

        return findings

    def _finding(self, unit: str, actual: int, threshold: int) -> Finding:
        return new_finding(
            Severity.WARNING,
            Category.LARGE_DIFF,
            f"diff has {actual} changed {unit}, exceeding threshold of {threshold}",
            critic_name=self.name,
            suggestion=SPLIT_SUGGESTION,
            metadata={"actual": actual, "threshold": threshold},
        )
