"""Parsing of raw ``git log`` output into commit records."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

UNKNOWN_SUBJECT = "Unknown commit"


@dataclass(frozen=True)
class CommitRecord:
    """One commit as it will appear in the changelog."""

    subject: str
    date: Optional[str] = None
    author: Optional[str] = None
    body: str = ""

    @property
    def body_lines(self) -> list[str]:
        return self.body.split("\n") if self.body else []


def header_fields(*, show_date: bool, show_author: bool) -> tuple[str, ...]:
    """Return the header fields of a delimited commit in emission order."""
    fields: list[str] = []
    if show_date:
        fields.append("date")
    fields.append("subject")
    if show_author:
        fields.append("author")
    return tuple(fields)


def _strip_field_prefix(line: str, name: str) -> str:
    prefix = f"{name}:"
    if line.startswith(prefix):
        return line[len(prefix) :]
    return line


def parse_commit_segment(segment: str, fields: Iterable[str]) -> CommitRecord:
    """Decode a single delimited commit.

    Header lines are consumed in the order given by *fields*; whatever
    follows them is the body.
    """
    # str.splitlines would also break on the record separator and other
    # control characters; git only emits "\n".
    lines = segment.strip("\n").split("\n")
    values: dict[str, Optional[str]] = {}
    index = 0
    for name in fields:
        if index < len(lines):
            values[name] = _strip_field_prefix(lines[index], name).strip()
        else:
            values[name] = None
        index += 1
    body = "\n".join(lines[index:]).strip()
    return CommitRecord(
        subject=values.get("subject") or UNKNOWN_SUBJECT,
        date=values.get("date") or None,
        author=values.get("author") or None,
        body=body,
    )


def split_records(raw: str, marker: str) -> list[str]:
    """Split *raw* at lines that consist of exactly *marker*.

    The marker text elsewhere in a line (a commit body quoting it, say) does
    not start a new record.
    """
    segments: list[str] = []
    current: list[str] = []
    for line in raw.split("\n"):
        if line.rstrip("\r") == marker:
            segments.append("\n".join(current))
            current = []
        else:
            current.append(line)
    segments.append("\n".join(current))
    return [segment for segment in segments if segment.strip()]


def parse_commit_stream(
    raw: str,
    marker: str,
    *,
    show_date: bool = False,
    show_author: bool = False,
) -> list[CommitRecord]:
    """Split delimited log output into records, preserving log order."""
    fields = header_fields(show_date=show_date, show_author=show_author)
    return [parse_commit_segment(segment, fields) for segment in split_records(raw, marker)]


def _simple_line_pattern(*, show_date: bool, show_author: bool) -> re.Pattern[str]:
    prefix = r"- "
    if show_date:
        prefix += r"\*\*[^*]*\*\* "
    suffix = r" _\(by .*\)_" if show_author else ""
    return re.compile(f"^(?P<prefix>{prefix})(?P<subject>.*?)(?P<suffix>{suffix})$")


def parse_preformatted_lines(
    raw: str,
    *,
    show_date: bool = False,
    show_author: bool = False,
) -> list[str]:
    """Return the non-empty lines of single-line-per-commit log output.

    A line whose subject slot is blank gets ``UNKNOWN_SUBJECT`` in its place.
    """
    pattern = _simple_line_pattern(show_date=show_date, show_author=show_author)
    lines: list[str] = []
    for line in raw.split("\n"):
        line = line.rstrip("\r")
        if not line.strip():
            continue
        match = pattern.match(line)
        if match and not match.group("subject").strip():
            line = f"{match.group('prefix')}{UNKNOWN_SUBJECT}{match.group('suffix')}"
        lines.append(line.rstrip())
    return lines
