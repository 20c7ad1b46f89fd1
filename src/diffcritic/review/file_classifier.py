"""
File Classifier

Assigns each changed path a FileCategory. Rules are tried in order and the
first match wins, so a test file under .github/workflows/ is still a test.
"""

import posixpath
from collections.abc import Callable, Iterable

from .models import ChangedFile, ClassifiedFile, FileCategory

SOURCE_EXTENSIONS = frozenset({".go", ".ts", ".js", ".py", ".rs", ".java"})

TEST_DIRECTORIES = frozenset({"testdata", "test"})

CI_WORKFLOW_PREFIX = ".github/workflows/"
KUBERNETES_DIRECTORIES = frozenset({"k8s", "kubernetes"})
INFRA_NAME_PREFIXES = ("Dockerfile", "docker-compose")

CONFIG_FILES = frozenset({
    "go.mod",
    "go.sum",
    "Makefile",
    "Taskfile.yml",
    "aqua.yaml",
    "package.json",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "pyproject.toml",
    "requirements.txt",
    "poetry.lock",
    "uv.lock",
    "Cargo.lock",
    ".gitignore",
})
CONFIG_NAME_PREFIXES = (".env", ".golangci")
CONFIG_EXTENSIONS = frozenset({".toml", ".yaml", ".yml"})


def _split(path: str) -> tuple[str, str, str, list[str]]:
    """Return (normalized path, basename, extension, segments)."""
    normalized = path.replace("\\", "/")
    base = posixpath.basename(normalized)
    ext = posixpath.splitext(base)[1]
    return normalized, base, ext, normalized.split("/")


def is_test_file(path: str) -> bool:
    _, base, ext, segments = _split(path)
    if ext in SOURCE_EXTENSIONS:
        stem = base[: -len(ext)]
        if stem.endswith("_test") or stem.endswith(".test"):
            return True
    return any(s in TEST_DIRECTORIES for s in segments)


def is_infra_file(path: str) -> bool:
    normalized, base, ext, segments = _split(path)
    if base.startswith(INFRA_NAME_PREFIXES):
        return True
    if ext == ".tf":
        return True
    if normalized.startswith(CI_WORKFLOW_PREFIX):
        return True
    return any(s in KUBERNETES_DIRECTORIES for s in segments)


def is_config_file(path: str) -> bool:
    _, base, ext, _ = _split(path)
    if base in CONFIG_FILES:
        return True
    if base.startswith(CONFIG_NAME_PREFIXES):
        return True
    return ext in CONFIG_EXTENSIONS


def is_code_file(path: str) -> bool:
    return _split(path)[2] in SOURCE_EXTENSIONS


# Priority order: test > infra > config > code > other
CLASSIFICATION_RULES: tuple[tuple[FileCategory, Callable[[str], bool]], ...] = (
    (FileCategory.TEST, is_test_file),
    (FileCategory.INFRA, is_infra_file),
    (FileCategory.CONFIG, is_config_file),
    (FileCategory.CODE, is_code_file),
)


def classify_file(path: str) -> FileCategory:
    """Classify a single path by the first matching rule."""
    for category, matches in CLASSIFICATION_RULES:
        if matches(path):
            return category
    return FileCategory.OTHER


def classify_changed_files(files: Iterable[ChangedFile]) -> list[ClassifiedFile]:
    """Tag every changed file with its category, keeping order."""
    return [
        ClassifiedFile(
            path=f.path,
            old_path=f.old_path,
            status=f.status,
            additions=f.additions,
            deletions=f.deletions,
            is_binary=f.is_binary,
            category=classify_file(f.path),
        )
        for f in files
    ]
