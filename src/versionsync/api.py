"""Python-friendly facade for invoking versionsync functionality."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .cli import CLIContext, create_cli_context, publish_release, render_changelog


class VersionSync:
    """High-level helper that mirrors the CLI commands for Python callers."""

    def __init__(
        self,
        *,
        root: Path | str | None = None,
        config: Path | str | None = None,
        debug: bool = False,
    ) -> None:
        resolved_root = Path(root) if root is not None else None
        resolved_config = Path(config) if config is not None else None
        self._ctx = create_cli_context(
            root=resolved_root,
            config=resolved_config,
            debug=debug,
        )

    @property
    def context(self) -> CLIContext:
        """Expose the underlying CLIContext for advanced scenarios."""

        return self._ctx

    def current_version(self) -> str:
        """Return the version declared in the project's version file."""

        return self._ctx.current_version()

    def changelog(
        self,
        *,
        current_version: Optional[str] = None,
        show_date: Optional[bool] = None,
        show_author: Optional[bool] = None,
        include_body: Optional[bool] = None,
        tag_prefix: Optional[str] = None,
        recent_window: Optional[int] = None,
    ) -> str:
        """Return the Markdown changelog for the current version.

        Arguments left as None fall back to the values in ``versionsync.yaml``.
        """

        return render_changelog(
            self._ctx,
            current_version=current_version,
            show_date=show_date,
            show_author=show_author,
            include_body=include_body,
            tag_prefix=tag_prefix,
            recent_window=recent_window,
        )

    def release(
        self,
        *,
        current_version: Optional[str] = None,
        title: Optional[str] = None,
        notes_file: Path | str | None = None,
        create_commit: bool = False,
        commit_message: Optional[str] = None,
        create_tag: bool = False,
        draft: Optional[bool] = None,
        prerelease: Optional[bool] = None,
        assume_yes: bool = False,
    ) -> None:
        """Publish a GitHub release using the same workflow as the CLI."""

        publish_release(
            self._ctx,
            current_version=current_version,
            title=title,
            notes_file=Path(notes_file) if notes_file is not None else None,
            create_commit_first=create_commit,
            commit_message=commit_message,
            create_tag=create_tag,
            draft=draft,
            prerelease=prerelease,
            assume_yes=assume_yes,
        )
