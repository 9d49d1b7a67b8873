"""CLI package for versionsync.

- _core.py: CLIContext, shared options, main entry point
- _changelog.py: changelog and version commands
- _release.py: release publishing
"""

from __future__ import annotations

from ._core import (
    CLIContext,
    VERSION_FLAGS,
    changelog_display_options,
    create_cli_context,
    _create_cli_group,
    main,
)
from ._changelog import (
    build_changelog_request,
    changelog_cmd,
    render_changelog,
    version_cmd,
)
from ._release import (
    StepStatus,
    StepTracker,
    publish_release,
    release_cmd,
)

cli = _create_cli_group()

cli.add_command(changelog_cmd)
cli.add_command(version_cmd)
cli.add_command(release_cmd)


__all__ = [
    "cli",
    "main",
    "CLIContext",
    "VERSION_FLAGS",
    "changelog_display_options",
    "create_cli_context",
    "build_changelog_request",
    "render_changelog",
    "changelog_cmd",
    "version_cmd",
    "StepStatus",
    "StepTracker",
    "publish_release",
    "release_cmd",
]
