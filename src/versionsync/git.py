"""Thin wrappers around the git executable.

Every call runs in its own subprocess with an explicit deadline. Failures are
mapped onto two error kinds: ``GitQueryError`` for a single query that went
wrong (non-zero exit, timeout) and ``GitUnavailableError`` when git itself
cannot be used in the given directory.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional, Sequence

from .utils import format_command, log_debug

DEFAULT_GIT_TIMEOUT = 30.0


class GitError(RuntimeError):
    """Base class for failures while talking to git."""


class GitQueryError(GitError):
    """A single git invocation failed; retrying with other arguments may work."""

    def __init__(self, message: str, *, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class GitUnavailableError(GitError):
    """git cannot be used at all in the requested directory."""


def run_git(
    args: Sequence[str],
    cwd: Path,
    *,
    timeout: Optional[float] = DEFAULT_GIT_TIMEOUT,
) -> str:
    """Run ``git <args>`` in *cwd* and return its standard output."""
    command = ["git", *args]
    log_debug(f"running {format_command(command)}")
    try:
        result = subprocess.run(
            command,
            cwd=str(cwd),
            check=True,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        if not Path(cwd).is_dir():
            raise GitUnavailableError(f"working directory {cwd} does not exist.") from exc
        raise GitUnavailableError("git is required but was not found in PATH.") from exc
    except OSError as exc:
        raise GitUnavailableError(f"cannot run git in {cwd}: {exc}") from exc
    except subprocess.TimeoutExpired as exc:
        raise GitQueryError(f"git {args[0]} timed out after {timeout:g}s.") from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        message = f"git {args[0]} failed (exit status {exc.returncode})"
        if stderr:
            message = f"{message}: {stderr.splitlines()[-1]}"
        raise GitQueryError(message, stderr=stderr) from exc
    return result.stdout


def ensure_repository(cwd: Path, *, timeout: Optional[float] = DEFAULT_GIT_TIMEOUT) -> None:
    """Raise ``GitUnavailableError`` unless *cwd* lies inside a git work tree."""
    try:
        output = run_git(["rev-parse", "--is-inside-work-tree"], cwd, timeout=timeout)
    except GitQueryError as exc:
        raise GitUnavailableError(f"{cwd} is not a git repository.") from exc
    if output.strip() != "true":
        raise GitUnavailableError(f"{cwd} is not inside a git work tree.")


def latest_tag(
    cwd: Path,
    prefix: Optional[str] = None,
    *,
    timeout: Optional[float] = DEFAULT_GIT_TIMEOUT,
) -> Optional[str]:
    """Return the most recent tag, optionally restricted to names starting with *prefix*.

    Prefixed lookups order candidates by creation date (newest first). The
    unscoped lookup asks ``git describe`` for the nearest tag reachable from
    HEAD. Returns None when no tag qualifies.
    """
    if prefix:
        output = run_git(
            ["tag", "--list", f"{prefix}*", "--sort=-creatordate"],
            cwd,
            timeout=timeout,
        )
        for line in output.splitlines():
            name = line.strip()
            if name:
                return name
        return None
    output = run_git(["describe", "--tags", "--abbrev=0"], cwd, timeout=timeout)
    return output.strip() or None


def remote_repository_slug(cwd: Path) -> Optional[str]:
    """Return the GitHub repository slug (owner/name) of ``origin`` if available."""
    try:
        url = run_git(["remote", "get-url", "origin"], cwd).strip()
    except GitError:
        return None
    if not url:
        return None
    if url.endswith(".git"):
        url = url[: -len(".git")]
    if url.startswith("git@"):
        _, _, remainder = url.partition(":")
        return remainder
    if url.startswith(("https://", "http://")):
        _, _, remainder = url.partition("://")
        parts = remainder.split("/", 1)
        if len(parts) == 2:
            return parts[1]
    return url


def has_staged_changes(cwd: Path) -> bool:
    """Check if there are staged changes to commit."""
    try:
        run_git(["diff", "--cached", "--quiet"], cwd, timeout=None)
    except GitQueryError:
        return True
    return False


def create_commit(cwd: Path, message: str) -> None:
    """Commit the staged changes with *message*."""
    try:
        run_git(["commit", "-m", message], cwd, timeout=None)
    except GitQueryError as exc:
        raise GitQueryError(f"git failed to create commit: {exc}", stderr=exc.stderr) from exc


def create_annotated_tag(cwd: Path, tag_name: str, message: str) -> bool:
    """Create an annotated tag.

    Returns True when a new tag was created, False if the tag already existed.
    """
    existing = {line.strip() for line in run_git(["tag", "--list", tag_name], cwd).splitlines()}
    if tag_name in existing:
        return False
    try:
        run_git(["tag", "-a", tag_name, "-m", message], cwd, timeout=None)
    except GitQueryError as exc:
        raise GitQueryError(f"git failed to create tag '{tag_name}': {exc}") from exc
    return True


def current_branch(cwd: Path) -> Optional[str]:
    """Return the current branch name if HEAD is not detached."""
    try:
        branch = run_git(["rev-parse", "--abbrev-ref", "HEAD"], cwd).strip()
    except GitError:
        return None
    if not branch or branch == "HEAD":
        return None
    return branch


def upstream_branch(cwd: Path) -> Optional[tuple[str, str]]:
    """Return the configured upstream of the current branch as (remote, branch)."""
    try:
        upstream = run_git(
            ["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"], cwd
        ).strip()
    except GitError:
        return None
    remote_name, _, branch_name = upstream.partition("/")
    if not remote_name or not branch_name:
        return None
    return remote_name, branch_name


def select_remote(cwd: Path, repository: Optional[str] = None) -> str:
    """Return the remote whose URL mentions *repository*, else ``origin``, else the first one."""
    remotes: dict[str, list[str]] = {}
    for line in run_git(["remote", "-v"], cwd).splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        remotes.setdefault(parts[0], []).append(parts[1])
    if not remotes:
        raise GitQueryError("no git remotes configured; cannot push.")
    if repository:
        for name, urls in remotes.items():
            if any(repository in url for url in urls):
                return name
    if "origin" in remotes:
        return "origin"
    return next(iter(remotes))


def push_target(cwd: Path, repository: Optional[str] = None) -> tuple[str, str, str]:
    """Return (remote, remote branch, local branch) for pushing the current branch."""
    branch = current_branch(cwd)
    if not branch:
        raise GitQueryError(
            "cannot push the current branch because HEAD is detached. "
            "check out a branch before publishing the release."
        )
    upstream = upstream_branch(cwd)
    if upstream:
        remote_name, remote_branch = upstream
    else:
        remote_name = select_remote(cwd, repository)
        remote_branch = branch
    return remote_name, remote_branch, branch


def push_branch(cwd: Path, remote: str, local_branch: str, remote_branch: str) -> None:
    """Push *local_branch* to *remote_branch* on *remote*."""
    try:
        run_git(["push", remote, f"{local_branch}:{remote_branch}"], cwd, timeout=None)
    except GitQueryError as exc:
        raise GitQueryError(
            f"git failed to push branch '{local_branch}' to '{remote}/{remote_branch}': {exc}"
        ) from exc


def push_tag(cwd: Path, remote: str, tag_name: str) -> None:
    """Push *tag_name* to *remote*."""
    try:
        run_git(["push", remote, tag_name], cwd, timeout=None)
    except GitQueryError as exc:
        raise GitQueryError(f"git failed to push tag '{tag_name}' to '{remote}': {exc}") from exc
