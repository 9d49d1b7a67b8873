"""End-to-end changelog generation against real git repositories."""

from __future__ import annotations

import subprocess
from datetime import date
from pathlib import Path

import pytest

from versionsync.changelog import (
    FAILURE_HEADING,
    ChangelogDocument,
    format_commit,
    generate_changelog,
)
from versionsync.commits import CommitRecord
from versionsync.history import ChangelogRequest

TODAY = date(2026, 1, 2)


@pytest.fixture(autouse=True)
def _isolate_git(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # Keep git from discovering a repository above the test directory.
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))


def test_format_commit_variants() -> None:
    record = CommitRecord(subject="Add parser", date="2024-03-01", author="Ada Lovelace")
    assert format_commit(record, show_date=False, show_author=False) == "- Add parser"
    assert (
        format_commit(record, show_date=True, show_author=True)
        == "- **2024-03-01** Add parser _(by Ada Lovelace)_"
    )
    with_body = CommitRecord(subject="Add parser", body="First line\nSecond line")
    assert (
        format_commit(with_body, show_date=True, show_author=True)
        == "- Add parser\n  First line\n  Second line"
    )


def test_document_render_layout() -> None:
    document = ChangelogDocument("Release 1.0.0", "Recent Changes", ["- a", "- b"], "\n")
    assert document.render() == "# Release 1.0.0\n\n## Recent Changes\n\n- a\n- b\n"


def test_changes_since_matching_tag(git_repo) -> None:
    git_repo.commit("Initial import")
    git_repo.tag("v1.0.0")
    git_repo.commit("Add parser")
    git_repo.commit("Fix crash")

    markdown = generate_changelog(ChangelogRequest("1.0.0"), git_repo.path)
    assert markdown == (
        "# Release 1.0.0\n\n## Changes since v1.0.0\n\n- Fix crash\n- Add parser\n"
    )


def test_recent_changes_when_tag_does_not_match(git_repo) -> None:
    git_repo.commit("Initial import")
    git_repo.tag("v1.0.0")
    git_repo.commit("Add parser")

    markdown = generate_changelog(ChangelogRequest("1.1.0"), git_repo.path)
    assert markdown == (
        "# Release 1.1.0\n\n## Recent Changes\n\n- Add parser\n- Initial import\n"
    )


def test_tag_at_head_falls_back_to_recent_window(git_repo) -> None:
    git_repo.commit("Initial import")
    git_repo.commit("Add parser")
    git_repo.tag("v1.0.0")

    markdown = generate_changelog(ChangelogRequest("1.0.0"), git_repo.path)
    assert markdown == (
        "# Release 1.0.0\n\n## Changes since v1.0.0\n\n- Add parser\n- Initial import\n"
    )


def test_recent_window_limits_commit_count(git_repo) -> None:
    for index in range(5):
        git_repo.commit(f"Change {index}")

    markdown = generate_changelog(ChangelogRequest("0.1.0", recent_window=2), git_repo.path)
    assert markdown.endswith("## Recent Changes\n\n- Change 4\n- Change 3\n")

    markdown = generate_changelog(ChangelogRequest("0.1.0", recent_window=0), git_repo.path)
    assert markdown.count("\n- Change ") == 5


def test_custom_and_empty_tag_prefix(git_repo) -> None:
    git_repo.commit("Initial import")
    git_repo.tag("release-2.0.0")
    git_repo.commit("Add parser")

    markdown = generate_changelog(
        ChangelogRequest("2.0.0", tag_prefix="release-"), git_repo.path
    )
    assert "## Changes since release-2.0.0\n\n- Add parser\n" in markdown

    git_repo.tag("2.1.0")
    git_repo.commit("Fix crash")
    markdown = generate_changelog(ChangelogRequest("2.1.0", tag_prefix=""), git_repo.path)
    assert markdown.endswith("## Changes since 2.1.0\n\n- Fix crash\n")


def test_author_and_quotes_render_verbatim(git_repo) -> None:
    git_repo.commit('Handle "quoted" names and $HOME')

    markdown = generate_changelog(
        ChangelogRequest("1.0.0", show_author=True), git_repo.path
    )
    assert '- Handle "quoted" names and $HOME _(by Ada Lovelace)_\n' in markdown


def test_dates_use_short_format(git_repo) -> None:
    git_repo.commit("Add parser")

    markdown = generate_changelog(ChangelogRequest("1.0.0", show_date=True), git_repo.path)
    entry = markdown.splitlines()[-1]
    assert entry.startswith("- **")
    stamp = entry[len("- **") : len("- **") + 10]
    assert date.fromisoformat(stamp)
    assert entry.endswith("** Add parser")


def test_bodies_are_indented_and_separated(git_repo) -> None:
    git_repo.commit("Initial import")
    git_repo.commit("Add parser\n\nParses the input.\nHandles edge cases.")

    markdown = generate_changelog(
        ChangelogRequest("1.0.0", show_author=True, include_body=True), git_repo.path
    )
    assert markdown == (
        "# Release 1.0.0\n\n## Recent Changes\n\n"
        "- Add parser _(by Ada Lovelace)_\n  Parses the input.\n  Handles edge cases.\n\n"
        "- Initial import _(by Ada Lovelace)_\n"
    )


def test_generation_is_idempotent(git_repo) -> None:
    git_repo.commit("Initial import")
    git_repo.tag("v1.0.0")
    git_repo.commit("Add parser")

    request = ChangelogRequest("1.0.0", show_author=True, include_body=True)
    assert generate_changelog(request, git_repo.path) == generate_changelog(
        request, git_repo.path
    )


def test_repository_without_commits_gets_placeholder(git_repo) -> None:
    markdown = generate_changelog(ChangelogRequest("1.0.0"), git_repo.path, today=TODAY)
    assert markdown == (
        "# Release 1.0.0\n\n## Recent Changes\n\n"
        "- **2026-01-02** Version 1.0.0\n"
        "  No commit history was available for this release.\n"
    )


def test_timeouts_degrade_to_placeholder(
    monkeypatch: pytest.MonkeyPatch, git_repo
) -> None:
    git_repo.commit("Initial import")
    real_run = subprocess.run

    def slow_log(command, *args, **kwargs):
        if command[:2] == ["git", "log"]:
            raise subprocess.TimeoutExpired(command, kwargs.get("timeout"))
        return real_run(command, *args, **kwargs)

    monkeypatch.setattr("versionsync.git.subprocess.run", slow_log)

    markdown = generate_changelog(
        ChangelogRequest("1.0.0", timeout=5.0), git_repo.path, today=TODAY
    )
    assert "- **2026-01-02** Version 1.0.0\n" in markdown


def test_directory_outside_repository_reports_failure(tmp_path: Path) -> None:
    plain_dir = tmp_path / "plain"
    plain_dir.mkdir()

    markdown = generate_changelog(ChangelogRequest("1.0.0"), plain_dir)
    assert markdown.startswith(f"# Release 1.0.0\n\n{FAILURE_HEADING}\n\n")
    assert "is not a git repository." in markdown


def test_missing_directory_reports_failure(tmp_path: Path) -> None:
    markdown = generate_changelog(ChangelogRequest("1.0.0"), tmp_path / "missing")
    assert FAILURE_HEADING in markdown
    assert "does not exist." in markdown


def test_missing_git_executable_reports_failure(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    empty_bin = tmp_path / "bin"
    empty_bin.mkdir()
    monkeypatch.setenv("PATH", str(empty_bin))

    markdown = generate_changelog(ChangelogRequest("1.0.0"), tmp_path)
    assert FAILURE_HEADING in markdown
    assert "git is required but was not found in PATH." in markdown


def test_default_window_lists_thirty_commits(git_repo) -> None:
    git_repo.commit("Change 0")
    git_repo.tag("v0.9.0")
    for index in range(1, 35):
        git_repo.commit(f"Change {index}")

    markdown = generate_changelog(ChangelogRequest("1.0.0"), git_repo.path)
    entries = markdown.split("## Recent Changes\n\n", 1)[1].splitlines()
    assert len(entries) == 30
    assert entries[0] == "- Change 34"
    assert entries[-1] == "- Change 5"


def test_empty_commit_message_renders_unknown_subject(git_repo) -> None:
    git_repo.commit("Initial import")
    git_repo.git("commit", "--allow-empty", "--allow-empty-message", "--no-gpg-sign", "-m", "")

    markdown = generate_changelog(ChangelogRequest("1.0.0"), git_repo.path)
    assert markdown == (
        "# Release 1.0.0\n\n## Recent Changes\n\n- Unknown commit\n- Initial import\n"
    )

    markdown = generate_changelog(
        ChangelogRequest("1.0.0", show_author=True, include_body=True), git_repo.path
    )
    assert "- Unknown commit _(by Ada Lovelace)_\n" in markdown


def test_delimiter_text_in_body_stays_in_one_entry(git_repo) -> None:
    git_repo.commit(
        "Real subject\n\nsee ---COMMIT-DELIMITER--- here\n---COMMIT-DELIMITER---\nmore"
    )

    markdown = generate_changelog(ChangelogRequest("1.0.0", include_body=True), git_repo.path)
    assert markdown == (
        "# Release 1.0.0\n\n## Recent Changes\n\n"
        "- Real subject\n"
        "  see ---COMMIT-DELIMITER--- here\n"
        "  ---COMMIT-DELIMITER---\n"
        "  more\n"
    )
