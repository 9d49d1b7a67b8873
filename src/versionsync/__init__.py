"""Core package exports for versionsync."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as metadata_version
from typing import TYPE_CHECKING, Any

__all__ = ["__version__", "VersionSync", "ChangelogRequest", "generate_changelog"]

try:
    __version__ = metadata_version("versionsync")
except PackageNotFoundError:  # pragma: no cover - fallback for editable installs
    __version__ = "0.0.0"

if TYPE_CHECKING:  # pragma: no cover
    from .api import VersionSync
    from .changelog import generate_changelog
    from .history import ChangelogRequest


def __getattr__(name: str) -> Any:  # pragma: no cover - simple delegation
    if name == "VersionSync":
        from .api import VersionSync as _VersionSync

        return _VersionSync
    if name == "ChangelogRequest":
        from .history import ChangelogRequest as _ChangelogRequest

        return _ChangelogRequest
    if name == "generate_changelog":
        from .changelog import generate_changelog as _generate_changelog

        return _generate_changelog
    raise AttributeError(f"module 'versionsync' has no attribute {name!r}")
