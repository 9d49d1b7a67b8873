"""Shared fixtures: throwaway git repositories."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

import pytest


@dataclass
class GitRepo:
    """A scratch repository with helpers for building history."""

    path: Path

    def git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=self.path,
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout

    def commit(self, message: str) -> None:
        self.git("commit", "--allow-empty", "--no-gpg-sign", "-m", message)

    def tag(self, name: str) -> None:
        self.git("tag", name)

    def write_package_json(self, version: str) -> None:
        (self.path / "package.json").write_text(
            f'{{\n  "name": "demo",\n  "version": "{version}"\n}}\n',
            encoding="utf-8",
        )


@pytest.fixture
def git_repo(tmp_path: Path) -> GitRepo:
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    repo = GitRepo(project_dir)
    repo.git("init")
    repo.git("config", "user.email", "ada@example.com")
    repo.git("config", "user.name", "Ada Lovelace")
    repo.git("config", "commit.gpgsign", "false")
    repo.git("config", "tag.gpgsign", "false")
    return repo
