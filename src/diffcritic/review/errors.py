"""Exceptions raised by the review pipeline."""

from collections.abc import Sequence


class DiffCriticError(Exception):
    """Base class for all diffcritic errors."""


class DiffRetrievalError(DiffCriticError):
    """A git invocation failed while building the diff."""

    def __init__(
        self,
        message: str,
        git_args: Sequence[str] = (),
        returncode: int | None = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.git_args = list(git_args)
        self.returncode = returncode
        self.stderr = stderr


class CriticReviewError(DiffCriticError):
    """A critic could not finish its review."""


class ReviewError(DiffCriticError):
    """The review run failed and produced no result."""
