"""
Git Diff Provider

Runs three git diff queries over the same range (numstat, name-status and the
full patch) and merges them into one DiffResult.
"""

import asyncio
import io
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import structlog

from .errors import DiffRetrievalError
from .models import DiffResult, FileDiff, FileStatus

logger = structlog.get_logger(__name__)

DEFAULT_BASE_BRANCH = "main"
DEFAULT_CONTEXT_LINES = 3

RENAME_ARROW = " => "

# Single-letter name-status codes; renames carry a similarity score (R100)
STATUS_CODES = {
    "A": FileStatus.ADDED.value,
    "M": FileStatus.MODIFIED.value,
    "D": FileStatus.DELETED.value,
}


@dataclass(frozen=True)
class DiffOptions:
    """What range to diff and how much context to keep in patches."""

    base_branch: str = DEFAULT_BASE_BRANCH
    staged: bool = False  # git diff --cached
    context_lines: int = DEFAULT_CONTEXT_LINES

    def __post_init__(self) -> None:
        if self.context_lines < 0:
            raise ValueError(f"context_lines must be >= 0, got {self.context_lines}")


@dataclass(frozen=True)
class FileStat:
    """One --numstat line."""

    additions: int = 0
    deletions: int = 0
    is_binary: bool = False


@dataclass(frozen=True)
class NameStatusEntry:
    """One --name-status line."""

    status: str
    path: str
    old_path: str = ""


class DiffProvider(Protocol):
    """Anything that can produce a DiffResult for a repository."""

    async def get_diff(
        self, repo_path: str | Path, options: DiffOptions | None = None
    ) -> DiffResult: ...


def _parse_count(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


# Escapes git uses inside C-quoted paths ("a\"b", "tab\there", "\303\251")
C_ESCAPES = {
    "a": 7,
    "b": 8,
    "t": 9,
    "n": 10,
    "v": 11,
    "f": 12,
    "r": 13,
    '"': 34,
    "\\": 92,
}
OCTAL_DIGITS = "01234567"


def unquote_path(path: str) -> str:
    """
    Undo git's C-style path quoting.

    Paths holding a double quote, a backslash or a control character are
    printed as "..." with escapes even with core.quotepath=off. Unquoted
    paths are returned unchanged.
    """
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path

    body = path[1:-1]
    raw = bytearray()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\" or i + 1 == len(body):
            raw += ch.encode()
            i += 1
            continue
        escaped = body[i + 1]
        octal = body[i + 1 : i + 4]
        if len(octal) == 3 and all(c in OCTAL_DIGITS for c in octal):
            raw.append(int(octal, 8) & 0xFF)
            i += 4
        elif escaped in C_ESCAPES:
            raw.append(C_ESCAPES[escaped])
            i += 2
        else:
            raw += escaped.encode()
            i += 2
    return raw.decode(errors="replace")


def _numstat_entry(added: str, deleted: str) -> FileStat:
    if added == "-" and deleted == "-":
        return FileStat(is_binary=True)
    return FileStat(_parse_count(added), _parse_count(deleted))


def parse_numstat(output: str) -> dict[str, FileStat]:
    """
    Parse git diff --numstat output.

    Keys are the path column verbatim, so renames appear as "old => new".
    Binary files report "-" for both counts. Output produced with -z is
    recognised by its NUL separators; its renames are keyed "old => new" too.
    """
    if "\0" in output:
        return _parse_numstat_z(output)

    stats: dict[str, FileStat] = {}
    for line in output.splitlines():
        parts = line.split("\t", 2)
        if len(parts) < 3:
            continue
        added, deleted, path = parts
        stats[unquote_path(path)] = _numstat_entry(added, deleted)
    return stats


def _parse_numstat_z(output: str) -> dict[str, FileStat]:
    # "a\td\tpath\0" or, for renames and copies, "a\td\t\0old\0new\0"
    stats: dict[str, FileStat] = {}
    tokens = output.split("\0")
    i = 0
    while i < len(tokens):
        parts = tokens[i].split("\t", 2)
        i += 1
        if len(parts) < 3:
            continue
        added, deleted, path = parts
        if not path:
            if i + 1 >= len(tokens):
                break
            path = f"{tokens[i]}{RENAME_ARROW}{tokens[i + 1]}"
            i += 2
        stats[path] = _numstat_entry(added, deleted)
    return stats


def _name_status_entry(code: str, paths: list[str]) -> NameStatusEntry:
    if code.startswith("R") and len(paths) >= 2:
        return NameStatusEntry(
            status=FileStatus.RENAMED.value,
            path=paths[1],
            old_path=paths[0],
        )
    if len(paths) >= 2:
        # Copies (C75) list source and destination; the copy is the file
        return NameStatusEntry(status=code, path=paths[-1])
    return NameStatusEntry(status=STATUS_CODES.get(code, code), path=paths[0])


def parse_name_status(output: str) -> list[NameStatusEntry]:
    """Parse git diff --name-status output (plain or -z), keeping git's ordering."""
    if "\0" in output:
        return _parse_name_status_z(output)

    entries: list[NameStatusEntry] = []
    for line in output.splitlines():
        parts = line.split("\t")
        if len(parts) < 2 or not parts[0]:
            continue
        entries.append(_name_status_entry(parts[0], [unquote_path(p) for p in parts[1:]]))
    return entries


def _parse_name_status_z(output: str) -> list[NameStatusEntry]:
    # "M\0path\0" or "R100\0old\0new\0"
    entries: list[NameStatusEntry] = []
    tokens = output.split("\0")
    i = 0
    while i < len(tokens):
        code = tokens[i]
        i += 1
        if not code:
            continue
        width = 2 if code[0] in "RC" else 1
        paths = tokens[i : i + width]
        i += width
        if len(paths) < width or not all(paths):
            break
        entries.append(_name_status_entry(code, paths))
    return entries


DIFF_HEADER = "diff --git "


def _read_quoted(text: str) -> tuple[str, str]:
    """Split a leading C-quoted token off text."""
    i = 1
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == '"':
            return text[: i + 1], text[i + 1 :].lstrip(" ")
        i += 1
    return text, ""


def _strip_side(path: str, prefix: str) -> str:
    path = unquote_path(path)
    return path[len(prefix) :] if path.startswith(prefix) else path


def _header_new_path(rest: str) -> str:
    """
    New-side path of a "diff --git a/... b/..." header.

    Unquoted headers are ambiguous when a path contains " b/"; equal halves
    are tried first, which covers every header except renames and copies.
    Those carry "rename to"/"+++" lines that split_patches prefers anyway.
    """
    if rest.startswith('"'):
        _, new = _read_quoted(rest)
        return _strip_side(new, "b/")

    quoted_at = rest.find(' "b/')
    if quoted_at != -1:
        return _strip_side(rest[quoted_at + 1 :], "b/")

    half = (len(rest) - 1) // 2
    if (
        len(rest) % 2 == 1
        and rest[half] == " "
        and rest.startswith("a/")
        and rest[half + 1 : half + 3] == "b/"
        and rest[2:half] == rest[half + 3 :]
    ):
        return rest[half + 3 :]

    split_at = rest.find(" b/")
    if split_at == -1:
        return rest
    return rest[split_at + 3 :]


def _extended_header_path(text: str) -> str | None:
    """Path named by a "+++", "rename to" or "copy to" line, if any."""
    if text.startswith("+++ "):
        value = text[4:]
        if value.endswith("\t"):
            # git appends a tab to ---/+++ names containing spaces
            value = value[:-1]
        if value == "/dev/null":
            return None
        return _strip_side(value, "b/")
    for prefix in ("rename to ", "copy to "):
        if text.startswith(prefix):
            return unquote_path(text[len(prefix) :])
    return None


def split_patches(output: str) -> dict[str, str]:
    """
    Split a unified diff into per-file fragments keyed by the new-side path.

    The key comes from the "diff --git" header and is replaced by the
    "rename to", "copy to" or "+++ b/" line when one precedes the first hunk.
    """
    patches: dict[str, str] = {}
    current_path: str | None = None
    current_lines: list[str] = []
    in_hunk = False

    # Only "\n" ends a line; patch content may hold other line separators
    for line in io.StringIO(output, newline="\n"):
        text = line.rstrip("\n")
        if text.startswith(DIFF_HEADER):
            if current_path is not None:
                patches[current_path] = "".join(current_lines)
            current_path = _header_new_path(text[len(DIFF_HEADER) :])
            current_lines = [line]
            in_hunk = False
            continue
        if current_path is None:
            continue
        current_lines.append(line)
        if in_hunk:
            continue
        if text.startswith("@@"):
            in_hunk = True
            continue
        named = _extended_header_path(text)
        if named:
            current_path = named

    if current_path is not None:
        patches[current_path] = "".join(current_lines)
    return patches


def expand_rename_path(numstat_path: str) -> str:
    """
    Return the new-side path of a numstat rename entry.

    Handles both "old => new" and git's compact "src/{a.py => b.py}" form.
    """
    if "{" in numstat_path and "}" in numstat_path:
        prefix, rest = numstat_path.split("{", 1)
        inner, suffix = rest.split("}", 1)
        if RENAME_ARROW in inner:
            new = inner.split(RENAME_ARROW, 1)[1]
            return re.sub(r"/{2,}", "/", prefix + new + suffix).lstrip("/")
    if RENAME_ARROW in numstat_path:
        return numstat_path.split(RENAME_ARROW, 1)[1]
    return numstat_path


def _lookup_stat(
    entry: NameStatusEntry,
    stats: dict[str, FileStat],
    renamed_stats: dict[str, FileStat],
) -> FileStat:
    if entry.status == FileStatus.RENAMED.value:
        composite = f"{entry.old_path}{RENAME_ARROW}{entry.path}"
        if composite in stats:
            return stats[composite]
        if entry.path in stats:
            return stats[entry.path]
        return renamed_stats.get(entry.path, FileStat())
    return stats.get(entry.path, FileStat())


def merge_diff(
    stats: dict[str, FileStat],
    entries: list[NameStatusEntry],
    patches: dict[str, str],
    base_branch: str,
) -> DiffResult:
    """Join the three parsed reports into a DiffResult, in name-status order."""
    renamed_stats = {
        expand_rename_path(path): stat for path, stat in stats.items() if RENAME_ARROW in path
    }

    files: list[FileDiff] = []
    total_additions = 0
    total_deletions = 0
    for entry in entries:
        stat = _lookup_stat(entry, stats, renamed_stats)
        patch = patches.get(entry.path)
        if patch is None and entry.old_path:
            patch = patches.get(entry.old_path, "")

        file_diff = FileDiff(
            path=entry.path,
            old_path=entry.old_path,
            status=entry.status,
            additions=stat.additions,
            deletions=stat.deletions,
            is_binary=stat.is_binary,
            patch=patch or "",
        )
        total_additions += file_diff.additions
        total_deletions += file_diff.deletions
        files.append(file_diff)

    return DiffResult(
        files=tuple(files),
        total_additions=total_additions,
        total_deletions=total_deletions,
        base_branch=base_branch,
    )


class GitDiffProvider:
    """Build a DiffResult by running git in the repository."""

    def __init__(self, git_binary: str = "git"):
        self.git_binary = git_binary

    async def get_diff(
        self, repo_path: str | Path, options: DiffOptions | None = None
    ) -> DiffResult:
        """
        Retrieve the diff for repo_path.

        Raises:
            DiffRetrievalError: If any git invocation fails
        """
        options = options or DiffOptions()
        base_branch = options.base_branch or DEFAULT_BASE_BRANCH
        range_args = self._build_range_args(options, base_branch)

        numstat = await self._run_git(repo_path, ["diff", "--numstat", "-z", *range_args])
        name_status = await self._run_git(repo_path, ["diff", "--name-status", "-z", *range_args])
        full_diff = await self._run_git(
            repo_path, ["diff", f"-U{options.context_lines}", *range_args]
        )

        result = merge_diff(
            parse_numstat(numstat),
            parse_name_status(name_status),
            split_patches(full_diff),
            base_branch,
        )
        logger.info(
            "diff_retrieved",
            repo_path=str(repo_path),
            base_branch=base_branch,
            staged=options.staged,
            files=len(result.files),
            additions=result.total_additions,
            deletions=result.total_deletions,
        )
        return result

    def _build_range_args(self, options: DiffOptions, base_branch: str) -> list[str]:
        """Build the range part of the diff command."""
        if options.staged:
            return ["--cached", "--"]
        return [f"{base_branch}..HEAD", "--"]

    async def _run_git(self, repo_path: str | Path, args: list[str]) -> str:
        """Run git command and return output."""
        cmd = [self.git_binary, "-c", "core.quotepath=off", "-C", str(repo_path), *args]
        logger.debug("git_command", args=args, repo_path=str(repo_path))

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise DiffRetrievalError(
                f"could not run {self.git_binary}: {e}", git_args=args
            ) from e

        try:
            stdout, stderr = await proc.communicate()
        except BaseException:
            # Cancelled or interrupted: never leave the git child running
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise

        if proc.returncode != 0:
            error_msg = stderr.decode(errors="replace").strip()
            raise DiffRetrievalError(
                f"git {' '.join(args)} failed: {error_msg}",
                git_args=args,
                returncode=proc.returncode,
                stderr=error_msg,
            )

        return stdout.decode(errors="replace")
