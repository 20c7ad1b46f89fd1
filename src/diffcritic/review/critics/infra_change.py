"""Warns about changes to infrastructure files."""

import posixpath

from ..file_classifier import CI_WORKFLOW_PREFIX, KUBERNETES_DIRECTORIES
from ..findings import Category, Finding, Location, Severity, new_finding
from ..models import FileCategory, FileStatus
from .base import Critic, ReviewInput


def classify_infra_kind(path: str) -> str:
    """Human-readable kind of infrastructure a path belongs to."""
    normalized = path.replace("\\", "/")
    base = posixpath.basename(normalized)

    if base.startswith("docker-compose"):
        return "Docker Compose"
    if base.startswith("Dockerfile"):
        return "Dockerfile"
    if posixpath.splitext(base)[1] == ".tf":
        return "Terraform"
    if normalized.startswith(CI_WORKFLOW_PREFIX):
        return "CI/CD"
    if any(s in KUBERNETES_DIRECTORIES for s in normalized.split("/")):
        return "Kubernetes"
    return "infrastructure"


class InfraChangeCritic(Critic):
    """Detect infrastructure changes. Renamed files are skipped."""

    @property
    def name(self) -> str:
        return "InfraChangeCritic"

    async def review(self, review_input: ReviewInput) -> list[Finding]:
        findings: list[Finding] = []
        for f in review_input.classified_files:
            if f.category != FileCategory.INFRA:
                continue
            if f.status == FileStatus.RENAMED.value:
                continue

            kind = classify_infra_kind(f.path)
            findings.append(
                new_finding(
                    Severity.WARNING,
                    Category.INFRA_CHANGE,
                    f"{kind} file changed: {posixpath.basename(f.path)} ({f.status})",
                    Location(file_path=f.path),
                    critic_name=self.name,
                    suggestion=(
                        f"review {kind} change carefully for security and operational impact"
                    ),
                )
            )
        return findings
