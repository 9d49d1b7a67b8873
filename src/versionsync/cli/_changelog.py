"""The ``changelog`` and ``version`` commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..changelog import generate_changelog
from ..history import ChangelogRequest
from ..utils import emit_output, log_success
from ._core import CLIContext, changelog_display_options

__all__ = [
    "build_changelog_request",
    "render_changelog",
    "changelog_cmd",
    "version_cmd",
]


def build_changelog_request(
    ctx: CLIContext,
    *,
    current_version: Optional[str] = None,
    show_date: Optional[bool] = None,
    show_author: Optional[bool] = None,
    include_body: Optional[bool] = None,
    tag_prefix: Optional[str] = None,
    recent_window: Optional[int] = None,
) -> ChangelogRequest:
    """Combine config defaults and explicit overrides into a request."""
    config = ctx.ensure_config()
    return config.changelog_request(
        ctx.current_version(current_version),
        show_date=show_date,
        show_author=show_author,
        include_body=include_body,
        tag_prefix=tag_prefix,
        recent_window=recent_window,
    )


def render_changelog(
    ctx: CLIContext,
    *,
    current_version: Optional[str] = None,
    show_date: Optional[bool] = None,
    show_author: Optional[bool] = None,
    include_body: Optional[bool] = None,
    tag_prefix: Optional[str] = None,
    recent_window: Optional[int] = None,
) -> str:
    """Python wrapper for the ``changelog`` command returning the Markdown."""

    request = build_changelog_request(
        ctx,
        current_version=current_version,
        show_date=show_date,
        show_author=show_author,
        include_body=include_body,
        tag_prefix=tag_prefix,
        recent_window=recent_window,
    )
    return generate_changelog(request, ctx.project_root)


@click.command("changelog")
@changelog_display_options()
@click.option("--prefix", "tag_prefix", help="Release tag prefix (default: from config, 'v').")
@click.option(
    "--current-version",
    help="Version being released (default: read from the project's version file).",
)
@click.option(
    "--window",
    "recent_window",
    type=click.IntRange(min=0),
    help="Number of recent commits to list when no release tag applies (0 = all).",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Write the changelog to a file instead of stdout.",
)
@click.pass_obj
def changelog_cmd(
    ctx: CLIContext,
    show_date: Optional[bool],
    show_author: Optional[bool],
    include_body: Optional[bool],
    tag_prefix: Optional[str],
    current_version: Optional[str],
    recent_window: Optional[int],
    output: Optional[Path],
) -> None:
    """Print a Markdown changelog generated from the git history."""

    markdown = render_changelog(
        ctx,
        current_version=current_version,
        show_date=show_date,
        show_author=show_author,
        include_body=include_body,
        tag_prefix=tag_prefix,
        recent_window=recent_window,
    )
    if output is None:
        emit_output(markdown, newline=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(markdown, encoding="utf-8")
    log_success(f"wrote changelog to {output}")


@click.command("version")
@click.option("--tag", "as_tag", is_flag=True, help="Print the release tag name instead.")
@click.pass_obj
def version_cmd(ctx: CLIContext, as_tag: bool) -> None:
    """Print the current project version."""

    config = ctx.ensure_config()
    version = ctx.current_version()
    emit_output(f"{config.release_prefix}{version}" if as_tag else version)
