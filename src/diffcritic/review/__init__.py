"""
Code Review Module

Diff retrieval, file classification and pluggable critics that turn a
branch's changes into a ranked list of findings.
"""

from .critics import (
    Critic,
    InfraChangeCritic,
    LargeDiffCritic,
    MissingTestCritic,
    ReviewInput,
    default_critics,
)
from .errors import (
    CriticReviewError,
    DiffCriticError,
    DiffRetrievalError,
    ReviewError,
)
from .file_classifier import classify_changed_files, classify_file
from .findings import Category, Finding, Location, Severity, new_finding
from .git_diff import DiffOptions, DiffProvider, GitDiffProvider
from .models import (
    ChangedFile,
    ClassifiedFile,
    DiffResult,
    FileCategory,
    FileDiff,
    FileStatus,
    extract_changed_files,
)
from .orchestrator import CriticError, Orchestrator, ReviewResult, ReviewSummary

__all__ = [
    "Orchestrator",
    "ReviewResult",
    "ReviewSummary",
    "CriticError",
    "Critic",
    "ReviewInput",
    "MissingTestCritic",
    "InfraChangeCritic",
    "LargeDiffCritic",
    "default_critics",
    "GitDiffProvider",
    "DiffProvider",
    "DiffOptions",
    "DiffResult",
    "FileDiff",
    "FileStatus",
    "ChangedFile",
    "ClassifiedFile",
    "FileCategory",
    "extract_changed_files",
    "classify_file",
    "classify_changed_files",
    "Finding",
    "Location",
    "Severity",
    "Category",
    "new_finding",
    "DiffCriticError",
    "DiffRetrievalError",
    "CriticReviewError",
    "ReviewError",
]
