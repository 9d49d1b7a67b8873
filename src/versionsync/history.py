"""Commit history retrieval: range selection, log queries, and fallback escalation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .commits import header_fields
from .git import DEFAULT_GIT_TIMEOUT, GitQueryError, latest_tag, run_git
from .utils import log_debug

DEFAULT_RECENT_WINDOW = 30
COMMIT_DELIMITER = "---COMMIT-DELIMITER---"
# A record starts on a line holding exactly this marker; git emits the
# leading record separator byte for %x1e.
RECORD_MARKER = "\x1e" + COMMIT_DELIMITER

# Header lines of the "with bodies" format, keyed by field name. The emitted
# order comes from ``header_fields``, the same function the parser uses.
FIELD_PLACEHOLDERS = {
    "date": "%ad",
    "subject": "%s",
    "author": "%an",
}


@dataclass(frozen=True)
class ChangelogRequest:
    """Options for one changelog generation call."""

    current_version: str
    tag_prefix: str = "v"
    show_date: bool = False
    show_author: bool = False
    include_body: bool = False
    recent_window: int = DEFAULT_RECENT_WINDOW
    timeout: Optional[float] = DEFAULT_GIT_TIMEOUT

    @property
    def expected_tag(self) -> str:
        """Tag name the current version would be released under."""
        return f"{self.tag_prefix}{self.current_version}"

    @property
    def requested_fields(self) -> tuple[str, ...]:
        return header_fields(show_date=self.show_date, show_author=self.show_author)


@dataclass(frozen=True)
class TagInfo:
    """Result of the tag lookup; an empty ``last_tag`` means no tag qualified."""

    last_tag: str = ""

    def matches(self, request: ChangelogRequest) -> bool:
        return bool(self.last_tag) and self.last_tag == request.expected_tag


@dataclass(frozen=True)
class SinceTag:
    tag: str


@dataclass(frozen=True)
class RecentWindow:
    count: int


@dataclass(frozen=True)
class AllHistory:
    pass


RangeDecision = Union[SinceTag, RecentWindow, AllHistory]


@dataclass(frozen=True)
class FetchOutcome:
    """Raw log output together with the range that produced it.

    ``decision`` is None and ``synthetic`` is True when every query came back
    empty or failed.
    """

    raw: str
    decision: Optional[RangeDecision]
    tag_info: TagInfo
    synthetic: bool = False


def build_log_format(request: ChangelogRequest) -> str:
    """Return the ``--pretty=format:`` template for the request's rendering mode."""
    if request.include_body:
        parts = [f"%x1e{COMMIT_DELIMITER}%n"]
        for name in request.requested_fields:
            parts.append(f"{name}:{FIELD_PLACEHOLDERS[name]}%n")
        parts.append("%b")
        return "".join(parts)

    template = "- "
    if request.show_date:
        template += "**%ad** "
    template += "%s"
    if request.show_author:
        template += " _(by %an)_"
    return template


def build_log_args(decision: RangeDecision, log_format: str) -> list[str]:
    """Return the ``git`` argument vector (without the executable) for one query.

    The format is passed as a single argv element, so quotes in it (or in the
    commit messages it expands to) never need shell escaping.
    """
    args = ["log"]
    if isinstance(decision, SinceTag):
        args.append(f"{decision.tag}..HEAD")
    elif isinstance(decision, RecentWindow):
        args.extend(["-n", str(decision.count)])
    args.extend([f"--pretty=format:{log_format}", "--date=short"])
    return args


def describe_decision(decision: RangeDecision) -> str:
    if isinstance(decision, SinceTag):
        return f"commits since {decision.tag}"
    if isinstance(decision, RecentWindow):
        return f"the {decision.count} most recent commits"
    return "the full history"


def resolve_tag_info(
    cwd: Path,
    tag_prefix: str,
    *,
    timeout: Optional[float] = DEFAULT_GIT_TIMEOUT,
) -> TagInfo:
    """Find the most recent release tag, preferring tags that start with *tag_prefix*."""
    if tag_prefix:
        try:
            tag = latest_tag(cwd, tag_prefix, timeout=timeout)
        except GitQueryError as exc:
            log_debug(f"prefixed tag lookup failed: {exc}")
            tag = None
        if tag:
            log_debug(f"latest tag matching '{tag_prefix}*': {tag}")
            return TagInfo(tag)
    try:
        tag = latest_tag(cwd, timeout=timeout)
    except GitQueryError as exc:
        log_debug(f"no tags found: {exc}")
        return TagInfo()
    log_debug(f"latest tag: {tag}")
    return TagInfo(tag or "")


def run_log_query(
    cwd: Path,
    decision: RangeDecision,
    log_format: str,
    *,
    timeout: Optional[float] = DEFAULT_GIT_TIMEOUT,
) -> str:
    """Execute one log query and return its raw output."""
    return run_git(build_log_args(decision, log_format), cwd, timeout=timeout)


def plan_ranges(request: ChangelogRequest, tag_info: TagInfo) -> list[RangeDecision]:
    """Return the ordered, duplicate-free query ranges to attempt."""
    plan: list[RangeDecision] = []
    if tag_info.matches(request):
        plan.append(SinceTag(tag_info.last_tag))
    else:
        log_debug(
            f"latest tag '{tag_info.last_tag or '(none)'}' does not match "
            f"'{request.expected_tag}'; skipping tag-scoped range."
        )
    if request.recent_window > 0:
        plan.append(RecentWindow(request.recent_window))
    else:
        plan.append(AllHistory())
    return plan


def fetch_history(request: ChangelogRequest, cwd: Path) -> FetchOutcome:
    """Fetch raw commit text, escalating from the tag range to a recent window.

    Transient query failures are treated like empty output. When nothing
    yields commits the outcome is marked synthetic; ``GitUnavailableError``
    propagates to the caller.
    """
    tag_info = resolve_tag_info(cwd, request.tag_prefix, timeout=request.timeout)
    log_format = build_log_format(request)
    for decision in plan_ranges(request, tag_info):
        try:
            raw = run_log_query(cwd, decision, log_format, timeout=request.timeout)
        except GitQueryError as exc:
            log_debug(f"query for {describe_decision(decision)} failed: {exc}")
            continue
        if raw.strip():
            log_debug(f"using {describe_decision(decision)}")
            return FetchOutcome(raw=raw, decision=decision, tag_info=tag_info)
        log_debug(f"no output for {describe_decision(decision)}")
    return FetchOutcome(raw="", decision=None, tag_info=tag_info, synthetic=True)
