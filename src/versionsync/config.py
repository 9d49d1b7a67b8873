"""Configuration helpers for versionsync."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

import yaml

from .git import DEFAULT_GIT_TIMEOUT
from .history import DEFAULT_RECENT_WINDOW, ChangelogRequest

CONFIG_FILENAME = "versionsync.yaml"
DEFAULT_RELEASE_PREFIX = "v"
DEFAULT_COMMIT_MESSAGE = "Release {version}"
DEFAULT_RELEASE_TITLE = "Release {tag}"

# Option names used by the editor add-on settings, accepted as aliases.
_LEGACY_KEYS = {
    "releasePrefix": "release_prefix",
    "changelogShowDate": "changelog_show_date",
    "changelogShowAuthor": "changelog_show_author",
    "changelogIncludeMessageBody": "changelog_include_message_body",
}
_LEGACY_RELEASE_KEYS = {
    "createDraftRelease": "draft",
    "markAsPrerelease": "prerelease",
}


def default_config_path(project_root: Path) -> Path:
    """Return the default config path for a project root."""
    return project_root / CONFIG_FILENAME


@dataclass
class ReleaseConfig:
    """Configuration for release publishing."""

    commit_message: str = DEFAULT_COMMIT_MESSAGE
    title: str = DEFAULT_RELEASE_TITLE
    draft: bool = False
    prerelease: bool = False


@dataclass
class Config:
    """Structured representation of ``versionsync.yaml``."""

    release_prefix: str = DEFAULT_RELEASE_PREFIX
    changelog_show_date: bool = False
    changelog_show_author: bool = False
    changelog_include_message_body: bool = False
    changelog_recent_window: int = DEFAULT_RECENT_WINDOW
    git_timeout: Optional[float] = DEFAULT_GIT_TIMEOUT
    version_file: Optional[str] = None
    repository: Optional[str] = None
    release: ReleaseConfig = field(default_factory=ReleaseConfig)

    def changelog_request(
        self,
        current_version: str,
        *,
        show_date: Optional[bool] = None,
        show_author: Optional[bool] = None,
        include_body: Optional[bool] = None,
        tag_prefix: Optional[str] = None,
        recent_window: Optional[int] = None,
    ) -> ChangelogRequest:
        """Build a request from config values, letting explicit arguments win."""
        return ChangelogRequest(
            current_version=current_version,
            tag_prefix=self.release_prefix if tag_prefix is None else tag_prefix,
            show_date=self.changelog_show_date if show_date is None else show_date,
            show_author=self.changelog_show_author if show_author is None else show_author,
            include_body=(
                self.changelog_include_message_body if include_body is None else include_body
            ),
            recent_window=(
                self.changelog_recent_window if recent_window is None else recent_window
            ),
            timeout=self.git_timeout,
        )


def _apply_aliases(raw: Mapping[str, Any], aliases: Mapping[str, str]) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for key, value in raw.items():
        normalized[aliases.get(str(key), str(key))] = value
    return normalized


def _read_bool(raw: Mapping[str, Any], key: str, default: bool, *, label: str) -> bool:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Config option '{label}' must be a boolean.")
    return value


def _read_string(raw: Mapping[str, Any], key: str, default: str, *, label: str) -> str:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValueError(f"Config option '{label}' must be a string.")
    return value


def _read_optional_string(raw: Mapping[str, Any], key: str) -> Optional[str]:
    value = raw.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_release_config(raw_release: object) -> ReleaseConfig:
    if raw_release is None:
        return ReleaseConfig()
    if not isinstance(raw_release, MutableMapping):
        raise ValueError("Config option 'release' must be a mapping.")
    release_raw = _apply_aliases(raw_release, _LEGACY_RELEASE_KEYS)
    return ReleaseConfig(
        commit_message=_read_string(
            release_raw, "commit_message", DEFAULT_COMMIT_MESSAGE, label="release.commit_message"
        ),
        title=_read_string(release_raw, "title", DEFAULT_RELEASE_TITLE, label="release.title"),
        draft=_read_bool(release_raw, "draft", False, label="release.draft"),
        prerelease=_read_bool(release_raw, "prerelease", False, label="release.prerelease"),
    )


def parse_config(raw_input: Mapping[str, Any]) -> Config:
    """Validate a raw mapping and convert it into a ``Config``."""
    raw = _apply_aliases(raw_input, _LEGACY_KEYS)

    # The add-on kept release flags at the top level.
    release_raw = raw.get("release")
    for legacy_key, target_key in _LEGACY_RELEASE_KEYS.items():
        if legacy_key in raw:
            if release_raw is None:
                release_raw = {}
            if isinstance(release_raw, MutableMapping):
                release_raw = {**release_raw, target_key: raw[legacy_key]}

    window_raw = raw.get("changelog_recent_window")
    recent_window = DEFAULT_RECENT_WINDOW
    if window_raw is not None:
        if isinstance(window_raw, bool) or not isinstance(window_raw, int) or window_raw < 0:
            raise ValueError(
                "Config option 'changelog_recent_window' must be a non-negative integer."
            )
        recent_window = window_raw

    timeout: Optional[float] = DEFAULT_GIT_TIMEOUT
    if "git_timeout" in raw:
        timeout_raw = raw.get("git_timeout")
        if timeout_raw is None:
            timeout = None
        elif (
            isinstance(timeout_raw, bool)
            or not isinstance(timeout_raw, (int, float))
            or timeout_raw <= 0
        ):
            raise ValueError("Config option 'git_timeout' must be a positive number or null.")
        else:
            timeout = float(timeout_raw)

    return Config(
        release_prefix=_read_string(
            raw, "release_prefix", DEFAULT_RELEASE_PREFIX, label="release_prefix"
        ).strip(),
        changelog_show_date=_read_bool(
            raw, "changelog_show_date", False, label="changelog_show_date"
        ),
        changelog_show_author=_read_bool(
            raw, "changelog_show_author", False, label="changelog_show_author"
        ),
        changelog_include_message_body=_read_bool(
            raw,
            "changelog_include_message_body",
            False,
            label="changelog_include_message_body",
        ),
        changelog_recent_window=recent_window,
        git_timeout=timeout,
        version_file=_read_optional_string(raw, "version_file"),
        repository=_read_optional_string(raw, "repository"),
        release=_parse_release_config(release_raw),
    )


def load_config(path: Path) -> Config:
    """Load the configuration from disk."""
    with path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, MutableMapping):
        raise ValueError("Config root must be a mapping")
    return parse_config(raw)


def load_project_config(project_root: Path) -> Config:
    """Load the project config, or return defaults when the project has none."""
    config_path = default_config_path(project_root)
    if config_path.exists():
        return load_config(config_path)
    return Config()


def dump_config(config: Config) -> dict[str, Any]:
    """Convert a Config into a plain dictionary with only non-default values."""
    defaults = Config()
    data: dict[str, Any] = {}
    if config.release_prefix != defaults.release_prefix:
        data["release_prefix"] = config.release_prefix
    for key in (
        "changelog_show_date",
        "changelog_show_author",
        "changelog_include_message_body",
    ):
        if getattr(config, key):
            data[key] = True
    if config.changelog_recent_window != defaults.changelog_recent_window:
        data["changelog_recent_window"] = config.changelog_recent_window
    if config.git_timeout != defaults.git_timeout:
        data["git_timeout"] = config.git_timeout
    if config.version_file:
        data["version_file"] = config.version_file
    if config.repository:
        data["repository"] = config.repository

    release: dict[str, Any] = {}
    if config.release.commit_message != DEFAULT_COMMIT_MESSAGE:
        release["commit_message"] = config.release.commit_message
    if config.release.title != DEFAULT_RELEASE_TITLE:
        release["title"] = config.release.title
    if config.release.draft:
        release["draft"] = True
    if config.release.prerelease:
        release["prerelease"] = True
    if release:
        data["release"] = release
    return data


def save_config(config: Config, path: Path) -> None:
    """Write the configuration to disk."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(dump_config(config), handle, sort_keys=False)
