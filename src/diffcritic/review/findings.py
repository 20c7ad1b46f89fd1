"""
Finding model.

A Finding is the one thing every critic emits. Findings are validated and
frozen on construction; create them through new_finding() so the id,
timestamp and default confidence are always filled in.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """How urgent a finding is."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        try:
            cls(value)
        except ValueError:
            return False
        return True

    @property
    def rank(self) -> int:
        """Sort position, lower sorts first."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.CRITICAL: 0, Severity.WARNING: 1, Severity.INFO: 2}


class Category(str, Enum):
    """Kind of finding.

    Only the first three are produced by the bundled critics.
    """

    MISSING_TEST = "missing_test"
    INFRA_CHANGE = "infra_change"
    LARGE_DIFF = "large_diff"
    BUILD_FAILURE = "build_failure"
    LINT_ERROR = "lint_error"
    SECURITY_VULNERABILITY = "security_vulnerability"
    BREAKING_CHANGE = "breaking_change"
    STYLE_ISSUE = "style_issue"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        try:
            cls(value)
        except ValueError:
            return False
        return True


class Location(BaseModel):
    """Where in the tree a finding points. Zero line numbers mean unset."""

    model_config = ConfigDict(frozen=True)

    file_path: str = ""
    start_line: int = Field(default=0, ge=0)
    end_line: int = Field(default=0, ge=0)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"file_path": self.file_path}
        if self.start_line:
            data["start_line"] = self.start_line
        if self.end_line:
            data["end_line"] = self.end_line
        return data


DEFAULT_CONFIDENCE = 0.5


class Finding(BaseModel):
    """A single review finding."""

    model_config = ConfigDict(frozen=True)

    id: str
    severity: Severity
    category: Category
    message: str
    location: Location = Field(default_factory=Location)
    confidence: float = Field(default=DEFAULT_CONFIDENCE, gt=0.0, le=1.0)
    critic_name: str = ""
    suggestion: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Serialize, leaving out empty optional fields."""
        data: dict[str, Any] = {
            "id": self.id,
            "severity": self.severity.value,
            "category": self.category.value,
            "message": self.message,
            "location": self.location.to_dict(),
            "confidence": self.confidence,
            "critic_name": self.critic_name,
        }
        if self.suggestion:
            data["suggestion"] = self.suggestion
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        data["created_at"] = self.created_at.isoformat()
        return data


def _new_finding_id() -> str:
    return f"find_{uuid.uuid4().hex[:8]}"


def new_finding(
    severity: Severity,
    category: Category,
    message: str,
    location: Location | None = None,
    *,
    critic_name: str = "",
    suggestion: str = "",
    metadata: dict[str, Any] | None = None,
    confidence: float = DEFAULT_CONFIDENCE,
) -> Finding:
    """
    Create a Finding with a fresh id and the current UTC time.

    Args:
        severity: How urgent the finding is
        category: Kind of finding
        message: Human-readable description
        location: Where the finding points (defaults to no file)
        critic_name: Name of the critic reporting it
        suggestion: Optional actionable fix
        metadata: Optional free-form details
        confidence: Score in (0, 1]

    Raises:
        pydantic.ValidationError: If any value is out of range
    """
    return Finding(
        id=_new_finding_id(),
        severity=severity,
        category=category,
        message=message,
        location=location or Location(),
        confidence=confidence,
        critic_name=critic_name,
        suggestion=suggestion,
        metadata=dict(metadata) if metadata else {},
        created_at=datetime.now(timezone.utc),
    )
