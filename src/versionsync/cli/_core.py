"""Core CLI infrastructure: context, shared options, and the entry point."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import click

from .. import __version__ as package_version
from ..config import Config, default_config_path, load_config, load_project_config
from ..git import remote_repository_slug
from ..utils import abort_on_user_interrupt, configure_logging, log_debug
from ..version_files import read_project_version

F = TypeVar("F", bound=Callable[..., Any])

__all__ = [
    "CLIContext",
    "VERSION_FLAGS",
    "changelog_display_options",
    "create_cli_context",
    "_create_cli_group",
    "main",
]

VERSION_FLAGS = {"--version", "-V"}


@dataclass
class CLIContext:
    """Shared command context."""

    project_root: Path
    config_path: Path
    _config: Optional[Config] = None

    def ensure_config(self) -> Config:
        if self._config is None:
            try:
                if self.config_path.exists():
                    self._config = load_config(self.config_path)
                else:
                    self._config = load_project_config(self.project_root)
            except ValueError as error:
                raise click.ClickException(f"{self.config_path}: {error}") from error
        return self._config

    def current_version(self, override: Optional[str] = None) -> str:
        """Return the version being released, preferring an explicit override."""
        if override:
            return override.strip()
        config = self.ensure_config()
        return read_project_version(self.project_root, config.version_file)

    def repository(self) -> Optional[str]:
        """Return the configured repository slug, or the one behind ``origin``."""
        config = self.ensure_config()
        return config.repository or remote_repository_slug(self.project_root)


def changelog_display_options() -> Callable[[F], F]:
    """Shared --date/--author/--body switches for commands that render changelogs.

    Each switch defaults to None so that the config value applies unless the
    flag is given explicitly.
    """

    def decorator(f: F) -> F:
        f = click.option(
            "--body/--no-body",
            "include_body",
            default=None,
            help="Include full commit message bodies.",
        )(f)
        f = click.option(
            "--author/--no-author",
            "show_author",
            default=None,
            help="Show the author of each commit.",
        )(f)
        f = click.option(
            "--date/--no-date",
            "show_date",
            default=None,
            help="Show the date of each commit.",
        )(f)
        return f

    return decorator


def _resolve_project_root(value: Path) -> Path:
    resolved = value.resolve()
    for candidate in [resolved] + list(resolved.parents):
        if default_config_path(candidate).is_file():
            return candidate
    return resolved


def create_cli_context(
    *,
    root: Path | None = None,
    config: Optional[Path] = None,
    debug: bool = False,
) -> CLIContext:
    """Return a CLIContext using the same resolution logic as the CLI entry point."""

    configure_logging(debug)

    resolved_root = root.resolve() if root is not None else _resolve_project_root(Path("."))
    config_path = config.resolve() if config else default_config_path(resolved_root)
    log_debug(f"resolved project root: {resolved_root}")
    log_debug(f"using config path: {config_path}")
    return CLIContext(project_root=resolved_root, config_path=config_path)


def _create_cli_group() -> click.Group:
    """Create the main CLI group. Called after all commands are defined."""

    @click.group(context_settings={"help_option_names": ["-h", "--help"]})
    @click.option(
        "--root",
        type=click.Path(path_type=Path, exists=True, file_okay=False),
        help="Repository root containing the version file and versionsync.yaml.",
    )
    @click.option(
        "--config",
        type=click.Path(path_type=Path, dir_okay=False),
        help="Path to an explicit versionsync config YAML file.",
    )
    @click.option(
        "--debug",
        "-d",
        is_flag=True,
        help="Enable debug logging.",
    )
    @click.pass_context
    def _cli(
        ctx: click.Context,
        root: Path | None,
        config: Optional[Path],
        debug: bool,
    ) -> None:
        """Generate changelogs from git history and publish releases."""

        ctx.obj = create_cli_context(root=root, config=config, debug=debug)

    return click.version_option(version=package_version)(_cli)


def main(argv: list[str] | None = None) -> int:
    """Entry point for console_scripts."""
    from . import cli

    args = list(argv) if argv is not None else list(sys.argv[1:])

    if any(flag in args for flag in VERSION_FLAGS):
        click.echo(package_version)
        return 0

    try:
        cli.main(args=args, prog_name="versionsync", standalone_mode=False)
    except click.ClickException as exc:
        exc.show(file=sys.stderr)
        exit_code = getattr(exc, "exit_code", 1)
        return exit_code if isinstance(exit_code, int) else 1
    except click.exceptions.Exit as exc:
        return exc.exit_code if isinstance(exc.exit_code, int) else 0
    except KeyboardInterrupt as exc:
        try:
            abort_on_user_interrupt(exc)
        except click.exceptions.Exit as exit_exc:
            exit_code = getattr(exit_exc, "exit_code", 130)
            return exit_code if isinstance(exit_code, int) else 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0
    return 0
