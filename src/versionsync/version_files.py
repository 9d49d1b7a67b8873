"""Reading the current project version from package-manager manifests."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Literal, Optional

import click
from packaging.version import InvalidVersion, Version

SUPPORTED_VERSION_FILES: tuple[str, ...] = (
    "package.json",
    "pyproject.toml",
    "project.toml",
    "Cargo.toml",
)

_TABLE_PATTERN = re.compile(r"^\s*\[(?P<table>[^\]]+)\]\s*(?:#.*)?$")
_VERSION_ASSIGNMENT_PATTERN = re.compile(
    r'^\s*version\s*=\s*(?P<quote>["\'])(?P<value>[^"\']*)(?P=quote)\s*(?:#.*)?$'
)

VersionFileKind = Literal["package_json", "pyproject", "cargo"]


def strip_release_prefix(version: str) -> str:
    """Convert release labels like v1.2.3 into bare version strings."""
    if version.startswith(("v", "V")):
        return version[1:]
    return version


def validate_version(version: str) -> Version:
    """Parse *version* (with or without a leading v) or raise a ClickException."""
    try:
        return Version(strip_release_prefix(version.strip()))
    except InvalidVersion as exc:
        raise click.ClickException(
            f"'{version}' is not a valid version (expected e.g. 1.2.3 or v1.2.3)."
        ) from exc


def _version_file_kind(path: Path) -> VersionFileKind:
    lowered = path.name.lower()
    if lowered == "package.json":
        return "package_json"
    if lowered in {"pyproject.toml", "project.toml"}:
        return "pyproject"
    if lowered == "cargo.toml":
        return "cargo"
    raise click.ClickException(
        f"Unsupported version file {path}. Supported filenames: "
        f"{', '.join(SUPPORTED_VERSION_FILES)}."
    )


def _toml_table_version(content: str, table_name: str) -> Optional[str]:
    """Return the static ``version`` value of *table_name*, if the table declares one."""
    active = False
    for line in content.splitlines():
        table_match = _TABLE_PATTERN.match(line)
        if table_match:
            active = table_match.group("table").strip() == table_name
            continue
        if not active:
            continue
        version_match = _VERSION_ASSIGNMENT_PATTERN.match(line)
        if version_match:
            return version_match.group("value")
    return None


def _read_package_json(path: Path, content: str) -> Optional[str]:
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"Cannot parse JSON in {path}: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise click.ClickException(f"Expected a JSON object in {path}.")
    value = parsed.get("version")
    if value is not None and not isinstance(value, str):
        raise click.ClickException(
            f"Expected 'version' in {path} to be a string, got {type(value).__name__}."
        )
    return value


def read_version_file(path: Path) -> Optional[str]:
    """Return the version declared in *path*, or None if it declares no static version."""
    content = path.read_text(encoding="utf-8")
    kind = _version_file_kind(path)
    if kind == "package_json":
        value = _read_package_json(path, content)
    elif kind == "pyproject":
        value = _toml_table_version(content, "project") or _toml_table_version(
            content, "tool.poetry"
        )
    else:
        value = _toml_table_version(content, "package") or _toml_table_version(
            content, "workspace.package"
        )
    if value is None or not value.strip():
        return None
    return strip_release_prefix(value.strip())


def read_project_version(project_root: Path, explicit_path: Optional[str] = None) -> str:
    """Return the current project version.

    An explicitly configured file must exist and declare a version. Otherwise
    the supported manifests in *project_root* are tried in order and the
    first one with a static version wins.
    """
    if explicit_path:
        path = Path(explicit_path).expanduser()
        if not path.is_absolute():
            path = project_root / path
        if not path.is_file():
            raise click.ClickException(f"Configured version file does not exist: {path}")
        version = read_version_file(path)
        if version is None:
            raise click.ClickException(f"{path} does not declare a static version.")
        return version

    for filename in SUPPORTED_VERSION_FILES:
        candidate = project_root / filename
        if not candidate.is_file():
            continue
        version = read_version_file(candidate)
        if version is not None:
            return version
    raise click.ClickException(
        f"No version found in {project_root}. Looked for: {', '.join(SUPPORTED_VERSION_FILES)}."
    )
