"""Critic contract shared by every analyzer."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..findings import Finding
from ..models import ClassifiedFile, DiffResult


@dataclass(frozen=True)
class ReviewInput:
    """
    Everything a critic may look at.

    repo_path may be empty, in which case critics skip filesystem checks.
    """

    diff: DiffResult | None
    classified_files: tuple[ClassifiedFile, ...] = ()
    repo_path: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.classified_files, tuple):
            object.__setattr__(self, "classified_files", tuple(self.classified_files))


class Critic(ABC):
    """
    Analyzes a change set and reports findings.

    Critics keep no state between calls. An empty list means nothing to
    report; failures are raised and the orchestrator records them.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique, non-empty identifier for this critic."""

    @abstractmethod
    async def review(self, review_input: ReviewInput) -> list[Finding]:
        """Inspect review_input and return findings."""
