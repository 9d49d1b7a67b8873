"""Markdown changelog generation from git history.

``generate_changelog`` is the single entry point: it resolves the range,
fetches the log (escalating through the fallback ranges), parses it and
renders a titled Markdown document. Git failures never escape; they degrade
to a placeholder document or, when git is unusable, an inline error notice.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Optional

from .commits import CommitRecord, parse_commit_stream, parse_preformatted_lines
from .git import GitUnavailableError, ensure_repository
from .history import (
    RECORD_MARKER,
    ChangelogRequest,
    FetchOutcome,
    TagInfo,
    fetch_history,
)
from .utils import log_debug, log_error, log_warning

RECENT_CHANGES_LABEL = "Recent Changes"
FAILURE_HEADING = "### Failed to get commit history"
SYNTHETIC_NOTICE = "No commit history was available for this release."
BODY_INDENT = "  "


@dataclass(frozen=True)
class ChangelogDocument:
    """A rendered-once changelog: title, section label and entry blocks."""

    heading: str
    section_label: str
    entries: list[str] = field(default_factory=list)
    entry_separator: str = "\n\n"

    def render(self) -> str:
        blocks = [f"# {self.heading}", f"## {self.section_label}"]
        if self.entries:
            blocks.append(self.entry_separator.join(self.entries))
        return "\n\n".join(blocks) + "\n"


def release_heading(current_version: str) -> str:
    return f"Release {current_version}"


def section_label(request: ChangelogRequest, tag_info: TagInfo) -> str:
    """Name the section after the release tag only when it matches the current version."""
    if tag_info.matches(request):
        return f"Changes since {tag_info.last_tag}"
    return RECENT_CHANGES_LABEL


def format_commit(record: CommitRecord, *, show_date: bool, show_author: bool) -> str:
    """Render one commit as a Markdown bullet with an indented body block."""
    line = "- "
    if show_date and record.date:
        line += f"**{record.date}** "
    line += record.subject
    if show_author and record.author:
        line += f" _(by {record.author})_"
    body_lines = record.body_lines
    if body_lines:
        line += "\n" + "\n".join(f"{BODY_INDENT}{body_line}" for body_line in body_lines)
    return line


def synthetic_record(current_version: str, today: Optional[date] = None) -> CommitRecord:
    """Return the placeholder entry used when no commit could be read."""
    generated_on = today or date.today()
    return CommitRecord(
        subject=f"Version {current_version}",
        date=generated_on.isoformat(),
        body=SYNTHETIC_NOTICE,
    )


def synthetic_document(request: ChangelogRequest, today: Optional[date] = None) -> ChangelogDocument:
    record = synthetic_record(request.current_version, today)
    return ChangelogDocument(
        heading=release_heading(request.current_version),
        section_label=RECENT_CHANGES_LABEL,
        entries=[format_commit(record, show_date=True, show_author=False)],
    )


def build_document(
    request: ChangelogRequest,
    outcome: FetchOutcome,
    *,
    today: Optional[date] = None,
) -> ChangelogDocument:
    """Turn fetched log output into a document, falling back to the placeholder."""
    if outcome.synthetic:
        log_warning(
            f"no commit history found; using a placeholder entry for {request.current_version}."
        )
        return synthetic_document(request, today)

    if request.include_body:
        records = parse_commit_stream(
            outcome.raw,
            RECORD_MARKER,
            show_date=request.show_date,
            show_author=request.show_author,
        )
        entries = [
            format_commit(record, show_date=request.show_date, show_author=request.show_author)
            for record in records
        ]
        separator = "\n\n"
    else:
        entries = parse_preformatted_lines(
            outcome.raw, show_date=request.show_date, show_author=request.show_author
        )
        separator = "\n"

    if not entries:
        log_warning("log output contained no commits; using a placeholder entry.")
        return synthetic_document(request, today)

    log_debug(f"rendering {len(entries)} commit(s)")
    return ChangelogDocument(
        heading=release_heading(request.current_version),
        section_label=section_label(request, outcome.tag_info),
        entries=entries,
        entry_separator=separator,
    )


def failure_document(request: ChangelogRequest, reason: str) -> str:
    """Return the inline error document shown when git cannot be used."""
    heading = release_heading(request.current_version)
    return f"# {heading}\n\n{FAILURE_HEADING}\n\n{reason}\n"


def generate_changelog(
    request: ChangelogRequest,
    cwd: Path,
    *,
    today: Optional[date] = None,
) -> str:
    """Generate the Markdown changelog for *request* from the repository at *cwd*.

    Always returns a non-empty string.
    """
    try:
        ensure_repository(cwd, timeout=request.timeout)
        outcome = fetch_history(request, cwd)
    except GitUnavailableError as exc:
        log_error(f"failed to get commit history: {exc}")
        return failure_document(request, str(exc))
    return build_document(request, outcome, today=today).render()
