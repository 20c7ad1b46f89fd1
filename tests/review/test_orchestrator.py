"""
Tests for the review Orchestrator.

Unit tests use a stub diff provider and stub critics; the integration test
runs the bundled critics over a real repository.
"""

import asyncio
import json
from pathlib import Path

import pytest

from diffcritic.review.critics import Critic, ReviewInput, default_critics
from diffcritic.review.errors import DiffRetrievalError, ReviewError
from diffcritic.review.findings import Category, Finding, Severity, new_finding
from diffcritic.review.git_diff import DiffOptions, GitDiffProvider
from diffcritic.review.models import DiffResult, FileDiff
from diffcritic.review.orchestrator import Orchestrator, ReviewSummary, sort_findings


# =============================================================================
# STUBS
# =============================================================================

class StubDiffProvider:
    """Returns a fixed DiffResult and records the calls it receives."""

    def __init__(self, result: DiffResult | None = None, error: Exception | None = None):
        self.result = result or DiffResult(base_branch="main")
        self.error = error
        self.calls: list[tuple[str, DiffOptions]] = []

    async def get_diff(self, repo_path, options=None) -> DiffResult:
        self.calls.append((str(repo_path), options))
        if self.error:
            raise self.error
        return self.result


class StaticCritic(Critic):
    """Emits the same findings on every run."""

    def __init__(self, name: str, *outputs: tuple[Severity, Category]):
        self._name = name
        self.outputs = outputs
        self.inputs: list[ReviewInput] = []

    @property
    def name(self) -> str:
        return self._name

    async def review(self, review_input: ReviewInput) -> list[Finding]:
        self.inputs.append(review_input)
        return [
            new_finding(severity, category, f"{self._name} {i}", critic_name=self._name)
            for i, (severity, category) in enumerate(self.outputs)
        ]


class FailingCritic(Critic):
    @property
    def name(self) -> str:
        return "FailingCritic"

    async def review(self, review_input: ReviewInput) -> list[Finding]:
        raise RuntimeError("boom")


class NoneCritic(Critic):
    """Returns None instead of a list."""

    @property
    def name(self) -> str:
        return "NoneCritic"

    async def review(self, review_input: ReviewInput):
        return None


class NumberCritic(Critic):
    @property
    def name(self) -> str:
        return "NumberCritic"

    async def review(self, review_input: ReviewInput):
        return 42


class CancellingCritic(StaticCritic):
    """Sets the cancel event while it runs."""

    def __init__(self, event: asyncio.Event):
        super().__init__("CancellingCritic", (Severity.INFO, Category.STYLE_ISSUE))
        self.event = event

    async def review(self, review_input: ReviewInput) -> list[Finding]:
        self.event.set()
        return await super().review(review_input)


def sample_diff() -> DiffResult:
    return DiffResult(
        files=(
            FileDiff(path="main.go", status="modified", additions=3, deletions=1),
            FileDiff(path="Dockerfile", status="added", additions=5),
        ),
        total_additions=8,
        total_deletions=1,
        base_branch="develop",
    )


# =============================================================================
# UNIT TESTS: run()
# =============================================================================

class TestOrchestratorRun:
    """Tests for Orchestrator.run()."""

    @pytest.mark.asyncio
    async def test_passes_options_and_builds_input(self):
        provider = StubDiffProvider(sample_diff())
        critic = StaticCritic("A")

        result = await Orchestrator(provider, [critic]).run("/repo", "develop")

        assert provider.calls[0][0] == "/repo"
        assert provider.calls[0][1].base_branch == "develop"
        review_input = critic.inputs[0]
        assert review_input.repo_path == "/repo"
        assert review_input.diff is provider.result
        assert [f.category.value for f in review_input.classified_files] == ["code", "infra"]
        assert result.base_branch == "develop"
        assert result.total_files == 2

    @pytest.mark.asyncio
    async def test_every_critic_sees_same_input(self):
        first, second = StaticCritic("A"), StaticCritic("B")

        await Orchestrator(StubDiffProvider(sample_diff()), [first, second]).run("/repo", "main")

        assert first.inputs[0] is second.inputs[0]

    @pytest.mark.asyncio
    async def test_diff_failure_is_fatal(self):
        provider = StubDiffProvider(error=DiffRetrievalError("git diff failed"))
        critic = StaticCritic("A", (Severity.INFO, Category.STYLE_ISSUE))

        with pytest.raises(ReviewError, match="get diff") as exc_info:
            await Orchestrator(provider, [critic]).run("/repo", "main")

        assert isinstance(exc_info.value.__cause__, DiffRetrievalError)
        assert critic.inputs == []

    @pytest.mark.asyncio
    async def test_failing_critic_is_isolated(self):
        ok = StaticCritic("OkCritic", (Severity.WARNING, Category.LARGE_DIFF))

        result = await Orchestrator(StubDiffProvider(), [FailingCritic(), ok]).run("/r", "main")

        assert len(result.findings) == 1
        assert result.findings[0].critic_name == "OkCritic"
        assert len(result.errors) == 1
        assert result.errors[0].critic_name == "FailingCritic"
        assert str(result.errors[0].error) == "boom"
        assert result.has_errors

    @pytest.mark.asyncio
    async def test_none_result_means_no_findings(self):
        ok = StaticCritic("OkCritic", (Severity.WARNING, Category.LARGE_DIFF))

        result = await Orchestrator(StubDiffProvider(), [NoneCritic(), ok]).run("/r", "main")

        assert [f.critic_name for f in result.findings] == ["OkCritic"]
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_non_iterable_result_is_recorded_as_error(self):
        ok = StaticCritic("OkCritic", (Severity.INFO, Category.STYLE_ISSUE))

        result = await Orchestrator(StubDiffProvider(), [NumberCritic(), ok]).run("/r", "main")

        assert [f.critic_name for f in result.findings] == ["OkCritic"]
        assert [e.critic_name for e in result.errors] == ["NumberCritic"]
        assert isinstance(result.errors[0].error, TypeError)

    @pytest.mark.asyncio
    async def test_no_critics(self):
        result = await Orchestrator(StubDiffProvider(sample_diff()), []).run("/r", "main")

        assert result.findings == []
        assert result.errors == []
        assert result.summary == ReviewSummary()
        assert result.total_files == 2

    @pytest.mark.asyncio
    async def test_cancel_before_start_runs_nothing(self):
        event = asyncio.Event()
        event.set()
        critic = StaticCritic("A", (Severity.INFO, Category.STYLE_ISSUE))

        result = await Orchestrator(StubDiffProvider(), [critic]).run("/r", "main", event)

        assert critic.inputs == []
        assert result.findings == []
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_cancel_between_critics(self):
        event = asyncio.Event()
        later = StaticCritic("Later", (Severity.CRITICAL, Category.BUILD_FAILURE))

        result = await Orchestrator(
            StubDiffProvider(), [CancellingCritic(event), later]
        ).run("/r", "main", event)

        assert later.inputs == []
        assert [f.critic_name for f in result.findings] == ["CancellingCritic"]

    @pytest.mark.asyncio
    async def test_findings_sorted_and_summarized(self):
        critics = [
            StaticCritic(
                "A",
                (Severity.INFO, Category.STYLE_ISSUE),
                (Severity.WARNING, Category.MISSING_TEST),
            ),
            StaticCritic(
                "B",
                (Severity.CRITICAL, Category.SECURITY_VULNERABILITY),
                (Severity.WARNING, Category.INFRA_CHANGE),
                (Severity.CRITICAL, Category.BUILD_FAILURE),
            ),
        ]

        result = await Orchestrator(StubDiffProvider(), critics).run("/r", "main")

        assert [(f.severity.value, f.category.value) for f in result.findings] == [
            ("critical", "build_failure"),
            ("critical", "security_vulnerability"),
            ("warning", "infra_change"),
            ("warning", "missing_test"),
            ("info", "style_issue"),
        ]
        assert result.summary.to_dict() == {
            "critical_count": 2,
            "warning_count": 2,
            "info_count": 1,
        }


# =============================================================================
# UNIT TESTS: sorting and serialization
# =============================================================================

class TestSortFindings:
    """Tests for sort_findings()."""

    def test_ties_keep_registration_order(self):
        first = new_finding(Severity.WARNING, Category.LARGE_DIFF, "first")
        second = new_finding(Severity.WARNING, Category.LARGE_DIFF, "second")
        third = new_finding(Severity.CRITICAL, Category.STYLE_ISSUE, "third")

        ordered = sort_findings([first, second, third])

        assert [f.message for f in ordered] == ["third", "first", "second"]

    def test_does_not_mutate_input(self):
        findings = [
            new_finding(Severity.INFO, Category.STYLE_ISSUE, "a"),
            new_finding(Severity.CRITICAL, Category.STYLE_ISSUE, "b"),
        ]

        sort_findings(findings)

        assert [f.message for f in findings] == ["a", "b"]

    def test_empty(self):
        assert sort_findings([]) == []


class TestReviewResultSerialization:
    """Tests for ReviewResult.to_dict()."""

    @pytest.mark.asyncio
    async def test_field_contract(self):
        critics = [FailingCritic(), StaticCritic("A", (Severity.WARNING, Category.LARGE_DIFF))]

        result = await Orchestrator(StubDiffProvider(sample_diff()), critics).run("/r", "develop")
        data = result.to_dict()

        assert set(data) == {"findings", "summary", "base_branch", "total_files", "errors"}
        assert data["base_branch"] == "develop"
        assert data["total_files"] == 2
        assert data["summary"] == {"critical_count": 0, "warning_count": 1, "info_count": 0}
        assert data["errors"] == [{"critic_name": "FailingCritic", "error": "boom"}]
        assert data["findings"][0]["critic_name"] == "A"
        json.dumps(data)

    @pytest.mark.asyncio
    async def test_errors_omitted_when_empty(self):
        result = await Orchestrator(StubDiffProvider(), []).run("/r", "main")

        assert "errors" not in result.to_dict()


# =============================================================================
# INTEGRATION TESTS
# =============================================================================

@pytest.mark.integration
class TestOrchestratorIntegration:
    """Bundled critics against a real repository."""

    @pytest.mark.asyncio
    async def test_end_to_end(self, git_repo: Path, git, commit_file):
        commit_file(git_repo, "lib/util.go", "package lib\n", "base")
        commit_file(git_repo, "lib/util_test.go", "package lib\n", "base test")
        git(git_repo, "checkout", "-b", "feature")
        commit_file(git_repo, "lib/util.go", "package lib\n\nfunc A() {}\n", "change util")
        commit_file(git_repo, "b.go", "package main\n", "add b")
        commit_file(git_repo, "Dockerfile", "FROM scratch\n", "add docker")

        orchestrator = Orchestrator(GitDiffProvider(), default_critics())
        result = await orchestrator.run(git_repo, "main")

        assert result.errors == []
        assert result.total_files == 3
        by_category = {f.category: f for f in result.findings}
        assert set(by_category) == {Category.MISSING_TEST, Category.INFRA_CHANGE}
        assert by_category[Category.MISSING_TEST].location.file_path == "b.go"
        assert "b_test.go" in by_category[Category.MISSING_TEST].suggestion
        assert by_category[Category.INFRA_CHANGE].message == (
            "Dockerfile file changed: Dockerfile (added)"
        )
        assert result.summary.warning_count == 2

    @pytest.mark.asyncio
    async def test_invalid_branch_is_fatal(self, git_repo: Path):
        orchestrator = Orchestrator(GitDiffProvider(), default_critics())

        with pytest.raises(ReviewError):
            await orchestrator.run(git_repo, "does-not-exist")
