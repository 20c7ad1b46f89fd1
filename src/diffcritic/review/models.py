"""
Data models for the diff side of the review pipeline.

A DiffResult is what git reports, a ChangedFile is the lightweight listing
of one entry, and a ClassifiedFile adds the role the file plays in the repo.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FileStatus(str, Enum):
    """How a file changed between the two sides of the diff."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Report whether value is one of the four known statuses."""
        try:
            cls(value)
        except ValueError:
            return False
        return True


class FileCategory(str, Enum):
    """Role of a changed file, used by critics to pick what to inspect."""

    CODE = "code"
    TEST = "test"
    INFRA = "infra"
    CONFIG = "config"
    OTHER = "other"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Report whether value is a known category."""
        try:
            cls(value)
        except ValueError:
            return False
        return True


@dataclass(frozen=True)
class FileDiff:
    """Diff for a single file as reported by git."""

    path: str
    old_path: str = ""  # renames only
    status: str = FileStatus.MODIFIED.value  # raw git code when unrecognized
    additions: int = 0
    deletions: int = 0
    is_binary: bool = False
    patch: str = ""

    def __post_init__(self) -> None:
        # git reports no line counts for binary content
        if self.is_binary and (self.additions or self.deletions):
            object.__setattr__(self, "additions", 0)
            object.__setattr__(self, "deletions", 0)

    @property
    def total_lines_changed(self) -> int:
        """Total lines affected."""
        return self.additions + self.deletions

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"path": self.path}
        if self.old_path:
            data["old_path"] = self.old_path
        data.update(
            status=self.status,
            additions=self.additions,
            deletions=self.deletions,
            is_binary=self.is_binary,
        )
        if self.patch:
            data["patch"] = self.patch
        return data


@dataclass(frozen=True)
class DiffResult:
    """The full diff between the base branch and HEAD (or the index)."""

    files: tuple[FileDiff, ...] = ()
    total_additions: int = 0
    total_deletions: int = 0
    base_branch: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.files, tuple):
            object.__setattr__(self, "files", tuple(self.files))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "files": [f.to_dict() for f in self.files],
            "total_additions": self.total_additions,
            "total_deletions": self.total_deletions,
            "base_branch": self.base_branch,
        }


@dataclass(frozen=True)
class ChangedFile:
    """A FileDiff without its patch text."""

    path: str
    old_path: str = ""
    status: str = FileStatus.MODIFIED.value
    additions: int = 0
    deletions: int = 0
    is_binary: bool = False


@dataclass(frozen=True)
class ClassifiedFile(ChangedFile):
    """A ChangedFile tagged with its FileCategory."""

    category: FileCategory = field(default=FileCategory.OTHER)


def extract_changed_files(result: DiffResult) -> list[ChangedFile]:
    """Project every FileDiff of result onto a ChangedFile, keeping order."""
    return [
        ChangedFile(
            path=fd.path,
            old_path=fd.old_path,
            status=fd.status,
            additions=fd.additions,
            deletions=fd.deletions,
            is_binary=fd.is_binary,
        )
        for fd in result.files
    ]
