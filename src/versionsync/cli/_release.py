"""The ``release`` command: publish the generated changelog as a GitHub release."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import NoReturn, Optional

import click
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from ..changelog import generate_changelog
from ..git import (
    GitError,
    create_annotated_tag,
    create_commit,
    has_staged_changes,
    push_branch,
    push_tag,
    push_target,
)
from ..utils import (
    abort_on_user_interrupt,
    console,
    format_bold,
    format_command,
    log_info,
    log_success,
    log_warning,
)
from ..version_files import validate_version
from ._core import CLIContext, changelog_display_options

__all__ = [
    "StepStatus",
    "ReleaseStep",
    "StepTracker",
    "publish_release",
    "release_cmd",
]


class StepStatus(Enum):
    """Status of a release workflow step."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ReleaseStep:
    """A single step in the release workflow."""

    name: str
    command: str
    status: StepStatus = StepStatus.PENDING


@dataclass
class StepTracker:
    """Tracks progress through release workflow steps."""

    steps: list[ReleaseStep] = field(default_factory=list)

    def add(self, name: str, command: str) -> None:
        self.steps.append(ReleaseStep(name, command))

    def _set(self, name: str, status: StepStatus) -> None:
        for step in self.steps:
            if step.name == name:
                step.status = status

    def complete(self, name: str) -> None:
        self._set(name, StepStatus.COMPLETED)

    def fail(self, name: str) -> None:
        self._set(name, StepStatus.FAILED)

    @property
    def progress(self) -> str:
        done = sum(1 for step in self.steps if step.status == StepStatus.COMPLETED)
        return f"{done}/{len(self.steps)}"


def _render_release_progress(tracker: StepTracker) -> None:
    """Render release progress summary to stderr on failure."""
    lines: list[str] = []
    for step in tracker.steps:
        if step.status == StepStatus.COMPLETED:
            lines.append(f"[green]✔[/green] [dim]{escape(step.command)}[/dim]")
        elif step.status == StepStatus.FAILED:
            lines.append(f"[red]✘[/red] [red]{escape(step.command)}[/red]")
        else:
            lines.append(f"[dim]○ {escape(step.command)}[/dim]")
    if lines:
        console.print(
            Panel(
                Text.from_markup("\n".join(lines)),
                title=f"Release Progress ({tracker.progress})",
                border_style="red",
            )
        )
    for step in tracker.steps:
        if step.status == StepStatus.FAILED:
            console.print()
            console.print("[bold]To retry the failed step, run:[/bold]", highlight=False)
            console.print(f"  {step.command}", highlight=False, markup=False, soft_wrap=True)


def _github_release_exists(gh_path: str, repository: str, tag: str) -> bool:
    try:
        subprocess.run(
            [gh_path, "release", "view", tag, "--repo", repository],
            check=True,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except subprocess.CalledProcessError:
        return False
    return True


def _resolve_notes(
    ctx: CLIContext,
    version: str,
    *,
    notes_file: Optional[Path],
    edit: bool,
    show_date: Optional[bool],
    show_author: Optional[bool],
    include_body: Optional[bool],
) -> str:
    if notes_file is not None:
        if not notes_file.is_file():
            raise click.ClickException(f"Notes file not found: {notes_file}")
        notes = notes_file.read_text(encoding="utf-8")
    else:
        request = ctx.ensure_config().changelog_request(
            version,
            show_date=show_date,
            show_author=show_author,
            include_body=include_body,
        )
        notes = generate_changelog(request, ctx.project_root)
    if edit:
        edited = click.edit(notes, extension=".md")
        if edited is not None:
            notes = edited
    notes = notes.strip()
    if not notes:
        raise click.ClickException("Release notes are empty; aborting publish.")
    return notes


def publish_release(
    ctx: CLIContext,
    *,
    current_version: Optional[str] = None,
    title: Optional[str] = None,
    notes_file: Optional[Path] = None,
    edit: bool = False,
    show_date: Optional[bool] = None,
    show_author: Optional[bool] = None,
    include_body: Optional[bool] = None,
    create_commit_first: bool = False,
    commit_message: Optional[str] = None,
    create_tag: bool = False,
    draft: Optional[bool] = None,
    prerelease: Optional[bool] = None,
    assume_yes: bool = False,
) -> None:
    """Python wrapper around the ``release`` command."""

    config = ctx.ensure_config()
    project_root = ctx.project_root

    repository = ctx.repository()
    if not repository:
        raise click.ClickException(
            "Set 'repository' in versionsync.yaml or add an 'origin' remote before publishing."
        )
    gh_path = shutil.which("gh")
    if gh_path is None:
        raise click.ClickException("The 'gh' CLI is required but was not found in PATH.")

    version = ctx.current_version(current_version)
    validate_version(version)
    tag = f"{config.release_prefix}{version}"
    release_title = title or config.release.title.format(tag=tag, version=version)
    use_draft = config.release.draft if draft is None else draft
    use_prerelease = config.release.prerelease if prerelease is None else prerelease

    # Notes are generated before tagging; a fresh tag at HEAD would leave
    # the tag-scoped range empty.
    notes = _resolve_notes(
        ctx,
        version,
        notes_file=notes_file,
        edit=edit,
        show_date=show_date,
        show_author=show_author,
        include_body=include_body,
    )

    final_commit_message: Optional[str] = None
    if create_commit_first:
        if not has_staged_changes(project_root):
            raise click.ClickException(
                "No staged changes to commit. Stage changes with 'git add' first."
            )
        final_commit_message = commit_message or config.release.commit_message.format(
            version=version, tag=tag
        )

    remote: Optional[str] = None
    remote_branch: Optional[str] = None
    local_branch: Optional[str] = None
    if create_tag:
        try:
            remote, remote_branch, local_branch = push_target(project_root, repository)
        except GitError as exc:
            raise click.ClickException(str(exc)) from exc

    release_exists = _github_release_exists(gh_path, repository, tag)
    if release_exists:
        command = [gh_path, "release", "edit", tag, "--repo", repository]
    else:
        command = [gh_path, "release", "create", tag, "--repo", repository]
    command.extend(["--title", release_title, "--notes-file", "-"])
    if use_draft:
        command.append("--draft")
    if use_prerelease:
        command.append("--prerelease")

    tracker = StepTracker()
    if final_commit_message is not None:
        tracker.add("commit", format_command(["git", "commit", "-m", final_commit_message]))
    if create_tag:
        tracker.add("tag", format_command(["git", "tag", "-a", tag, "-m", release_title]))
        tracker.add("push_branch", f"git push {remote} {local_branch}:{remote_branch}")
        tracker.add("push_tag", f"git push {remote} {tag}")
    tracker.add("publish", format_command(command))

    if not assume_yes:
        action = "gh release edit" if release_exists else "gh release create"
        log_info(f"publish {tag} to GitHub repository {repository}?")
        log_info(f"this will run {format_bold(action)}.")
        try:
            confirmed = click.confirm(
                "",
                default=True,
                prompt_suffix="[Y/n]: ",
                show_default=False,
            )
        except (click.exceptions.Abort, KeyboardInterrupt) as exc:
            abort_on_user_interrupt(exc)
        if not confirmed:
            log_info("aborted release publish.")
            return

    def _fail_step_and_raise(step_name: str, exc: Exception) -> NoReturn:
        tracker.fail(step_name)
        _render_release_progress(tracker)
        raise click.ClickException(str(exc)) from exc

    if final_commit_message is not None:
        try:
            create_commit(project_root, final_commit_message)
        except GitError as exc:
            _fail_step_and_raise("commit", exc)
        tracker.complete("commit")
        log_success(f"created commit: {final_commit_message}")

    if create_tag:
        assert remote is not None and local_branch is not None and remote_branch is not None
        try:
            created = create_annotated_tag(project_root, tag, release_title)
        except GitError as exc:
            _fail_step_and_raise("tag", exc)
        tracker.complete("tag")
        if created:
            log_success(f"created git tag {tag}.")
        else:
            log_warning(f"git tag {tag} already exists; skipping creation.")

        try:
            push_branch(project_root, remote, local_branch, remote_branch)
        except GitError as exc:
            _fail_step_and_raise("push_branch", exc)
        tracker.complete("push_branch")
        log_success(f"pushed branch {local_branch} to remote {remote}/{remote_branch}.")

        try:
            push_tag(project_root, remote, tag)
        except GitError as exc:
            _fail_step_and_raise("push_tag", exc)
        tracker.complete("push_tag")
        log_success(f"pushed git tag {tag} to remote {remote}.")

    try:
        subprocess.run(command, input=notes, text=True, check=True)
    except subprocess.CalledProcessError as exc:
        tracker.fail("publish")
        _render_release_progress(tracker)
        raise click.ClickException(
            f"'gh' exited with status {exc.returncode}. See output for details."
        ) from exc
    tracker.complete("publish")
    log_success(f"published {tag} to GitHub repository {repository}.")


@click.command("release")
@changelog_display_options()
@click.option(
    "--current-version",
    help="Version being released (default: read from the project's version file).",
)
@click.option("--title", help="Release title (default: from config, 'Release {tag}').")
@click.option(
    "--notes-file",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Use this Markdown file as release notes instead of generating a changelog.",
)
@click.option("--edit", is_flag=True, help="Open the release notes in $EDITOR before publishing.")
@click.option(
    "--commit",
    "create_commit_first",
    is_flag=True,
    help="Commit staged changes before publishing.",
)
@click.option(
    "--commit-message",
    help="Custom commit message (default: from config, 'Release {version}').",
)
@click.option(
    "--tag",
    "create_tag",
    is_flag=True,
    help="Create and push an annotated git tag before publishing.",
)
@click.option(
    "--draft/--no-draft",
    default=None,
    help="Create the GitHub release as a draft.",
)
@click.option(
    "--prerelease/--no-prerelease",
    default=None,
    help="Mark the GitHub release as a prerelease.",
)
@click.option(
    "--yes",
    "assume_yes",
    is_flag=True,
    help="Publish without confirmation prompts.",
)
@click.pass_obj
def release_cmd(
    ctx: CLIContext,
    show_date: Optional[bool],
    show_author: Optional[bool],
    include_body: Optional[bool],
    current_version: Optional[str],
    title: Optional[str],
    notes_file: Optional[Path],
    edit: bool,
    create_commit_first: bool,
    commit_message: Optional[str],
    create_tag: bool,
    draft: Optional[bool],
    prerelease: Optional[bool],
    assume_yes: bool,
) -> None:
    """Publish a GitHub release for the current version using the gh CLI.

    The release notes default to the changelog generated from git history.
    """

    publish_release(
        ctx,
        current_version=current_version,
        title=title,
        notes_file=notes_file,
        edit=edit,
        show_date=show_date,
        show_author=show_author,
        include_body=include_body,
        create_commit_first=create_commit_first,
        commit_message=commit_message,
        create_tag=create_tag,
        draft=draft,
        prerelease=prerelease,
        assume_yes=assume_yes,
    )
