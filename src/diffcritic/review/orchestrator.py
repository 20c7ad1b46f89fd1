"""
Review Orchestrator

Runs every registered critic over one diff and aggregates the findings.

Stages:
1. Retrieve: one git diff for the requested range
2. Classify: tag each changed file with its role
3. Analyze: critics in registration order, each failure isolated
4. Aggregate: stable sort by severity then category, count by severity
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from .critics.base import Critic, ReviewInput
from .errors import ReviewError
from .file_classifier import classify_changed_files
from .findings import Finding, Severity
from .git_diff import DEFAULT_CONTEXT_LINES, DiffOptions, DiffProvider
from .models import extract_changed_files

logger = structlog.get_logger(__name__)


@dataclass
class ReviewSummary:
    """Counts of findings by severity."""

    critical_count: int = 0
    warning_count: int = 0
    info_count: int = 0

    @classmethod
    def from_findings(cls, findings: Sequence[Finding]) -> "ReviewSummary":
        summary = cls()
        for f in findings:
            if f.severity == Severity.CRITICAL:
                summary.critical_count += 1
            elif f.severity == Severity.WARNING:
                summary.warning_count += 1
            elif f.severity == Severity.INFO:
                summary.info_count += 1
        return summary

    def to_dict(self) -> dict[str, int]:
        return {
            "critical_count": self.critical_count,
            "warning_count": self.warning_count,
            "info_count": self.info_count,
        }


@dataclass
class CriticError:
    """A critic failure recorded without stopping the other critics."""

    critic_name: str
    error: Exception

    def to_dict(self) -> dict[str, str]:
        return {"critic_name": self.critic_name, "error": str(self.error)}


@dataclass
class ReviewResult:
    """Complete review output."""

    findings: list[Finding] = field(default_factory=list)
    summary: ReviewSummary = field(default_factory=ReviewSummary)
    base_branch: str = ""
    total_files: int = 0
    errors: list[CriticError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """True when at least one critic failed (partial success)."""
        return bool(self.errors)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        data: dict[str, Any] = {
            "findings": [f.to_dict() for f in self.findings],
            "summary": self.summary.to_dict(),
            "base_branch": self.base_branch,
            "total_files": self.total_files,
        }
        if self.errors:
            data["errors"] = [e.to_dict() for e in self.errors]
        return data


def sort_findings(findings: Sequence[Finding]) -> list[Finding]:
    """Stable sort: critical first, then category name. Ties keep input order."""
    return sorted(findings, key=lambda f: (f.severity.rank, f.category.value))


class Orchestrator:
    """Coordinates critics over the diff of one repository."""

    def __init__(self, diff_provider: DiffProvider, critics: Sequence[Critic]):
        """
        Initialize the orchestrator.

        Args:
            diff_provider: Source of DiffResults (normally GitDiffProvider)
            critics: Critics to run, in the order they should run
        """
        self.diff_provider = diff_provider
        self.critics = list(critics)

    async def run(
        self,
        repo_path: str | Path,
        base_branch: str,
        cancel_event: asyncio.Event | None = None,
        *,
        staged: bool = False,
        context_lines: int = DEFAULT_CONTEXT_LINES,
    ) -> ReviewResult:
        """
        Review the changes in repo_path against base_branch.

        Args:
            repo_path: Path to the git working tree
            base_branch: Branch to compare HEAD against
            cancel_event: When set, no further critics are started
            staged: Review the index instead of the branch range
            context_lines: Context lines kept in each file's patch

        Returns:
            ReviewResult with sorted findings and any critic errors

        Raises:
            ReviewError: If the diff could not be retrieved
        """
        options = DiffOptions(
            base_branch=base_branch, staged=staged, context_lines=context_lines
        )
        try:
            diff = await self.diff_provider.get_diff(repo_path, options)
        except Exception as e:
            raise ReviewError(f"get diff: {e}") from e

        classified = classify_changed_files(extract_changed_files(diff))
        review_input = ReviewInput(
            diff=diff,
            classified_files=tuple(classified),
            repo_path=str(repo_path),
        )
        log = logger.bind(repo_path=str(repo_path), base_branch=diff.base_branch)
        log.info("review_started", files=len(diff.files), critics=len(self.critics))

        all_findings: list[Finding] = []
        critic_errors: list[CriticError] = []

        for critic in self.critics:
            if cancel_event is not None and cancel_event.is_set():
                log.info("review_cancelled", next_critic=critic.name)
                break
            try:
                # None means nothing to report; anything else must be iterable
                findings = list(await critic.review(review_input) or [])
            except Exception as e:
                log.warning("critic_failed", critic=critic.name, error=str(e))
                critic_errors.append(CriticError(critic_name=critic.name, error=e))
                continue
            log.debug("critic_finished", critic=critic.name, findings=len(findings))
            all_findings.extend(findings)

        ordered = sort_findings(all_findings)
        summary = ReviewSummary.from_findings(ordered)
        log.info(
            "review_finished",
            findings=len(ordered),
            critical=summary.critical_count,
            warning=summary.warning_count,
            info=summary.info_count,
            errors=len(critic_errors),
        )

        return ReviewResult(
            findings=ordered,
            summary=summary,
            base_branch=diff.base_branch,
            total_files=len(diff.files),
            errors=critic_errors,
        )
