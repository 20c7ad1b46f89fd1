"""
Shared fixtures for diffcritic tests.

Provides temporary git repositories for tests that run a real git.
"""

import subprocess
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog


# =============================================================================
# GIT REPOSITORY FIXTURES
# =============================================================================

def run_git(repo_path: Path, *args: str) -> None:
    """Run a git command in repo_path, failing the test on error."""
    subprocess.run(["git", *args], cwd=repo_path, check=True, capture_output=True)


@pytest.fixture
def git_repo(tmp_path: Path) -> Generator[Path, None, None]:
    """
    Create a temporary git repository with an empty initial commit on main.

    Yields:
        Path to the initialized git repository
    """
    repo_path = tmp_path / "test_repo"
    repo_path.mkdir()

    run_git(repo_path, "init")
    run_git(repo_path, "symbolic-ref", "HEAD", "refs/heads/main")
    run_git(repo_path, "config", "user.email", "test@test.com")
    run_git(repo_path, "config", "user.name", "Test User")
    run_git(repo_path, "config", "commit.gpgsign", "false")
    run_git(repo_path, "commit", "--allow-empty", "-m", "Initial commit")

    yield repo_path


@pytest.fixture
def commit_file() -> Callable[..., None]:
    """Write a file into a repository and commit it."""

    def _commit(repo_path: Path, rel_path: str, content: str, message: str = "update") -> None:
        target = repo_path / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        run_git(repo_path, "add", rel_path)
        run_git(repo_path, "commit", "-m", message)

    return _commit



@pytest.fixture
def git() -> Callable[..., None]:
    """Run arbitrary git commands: git(repo_path, "checkout", "-b", "feature")."""
    return run_git


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any structlog configuration a test applied."""
    yield
    structlog.reset_defaults()
