"""Tests for loading and saving versionsync.yaml."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from versionsync.config import (
    CONFIG_FILENAME,
    Config,
    ReleaseConfig,
    dump_config,
    load_config,
    load_project_config,
    parse_config,
    save_config,
)


def test_missing_project_config_uses_defaults(tmp_path: Path) -> None:
    config = load_project_config(tmp_path)
    assert config == Config()
    assert config.release_prefix == "v"
    assert config.changelog_recent_window == 30
    assert config.git_timeout == 30.0


def test_load_config_reads_options(tmp_path: Path) -> None:
    config_path = tmp_path / CONFIG_FILENAME
    config_path.write_text(
        "\n".join(
            [
                "release_prefix: release-",
                "changelog_show_date: true",
                "changelog_show_author: true",
                "changelog_recent_window: 0",
                "git_timeout: 5",
                "version_file: packages/core/package.json",
                "repository: octo/demo",
                "release:",
                "  title: 'Demo {version}'",
                "  prerelease: true",
            ]
        )
        + "\n",
        encoding="utf-8",
    )

    config = load_config(config_path)
    assert config.release_prefix == "release-"
    assert config.changelog_show_date is True
    assert config.changelog_show_author is True
    assert config.changelog_include_message_body is False
    assert config.changelog_recent_window == 0
    assert config.git_timeout == 5.0
    assert config.version_file == "packages/core/package.json"
    assert config.repository == "octo/demo"
    assert config.release == ReleaseConfig(title="Demo {version}", prerelease=True)


def test_camel_case_option_names_are_accepted() -> None:
    config = parse_config(
        {
            "releasePrefix": "",
            "changelogShowAuthor": True,
            "changelogIncludeMessageBody": True,
            "createDraftRelease": True,
        }
    )
    assert config.release_prefix == ""
    assert config.changelog_show_author is True
    assert config.changelog_include_message_body is True
    assert config.release.draft is True
    assert config.release.prerelease is False


def test_null_timeout_disables_deadline() -> None:
    assert parse_config({"git_timeout": None}).git_timeout is None


@pytest.mark.parametrize(
    ("raw", "option"),
    [
        ({"changelog_show_date": "yes"}, "changelog_show_date"),
        ({"changelog_recent_window": -1}, "changelog_recent_window"),
        ({"changelog_recent_window": True}, "changelog_recent_window"),
        ({"git_timeout": 0}, "git_timeout"),
        ({"release": ["draft"]}, "release"),
        ({"release": {"draft": "sometimes"}}, "release.draft"),
    ],
)
def test_invalid_options_name_the_option(raw: dict, option: str) -> None:
    with pytest.raises(ValueError, match=f"'{option}'"):
        parse_config(raw)


def test_non_mapping_root_is_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / CONFIG_FILENAME
    config_path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError, match="mapping"):
        load_config(config_path)


def test_changelog_request_prefers_explicit_arguments() -> None:
    config = Config(changelog_show_date=True, changelog_recent_window=10, git_timeout=None)
    request = config.changelog_request("1.2.3", show_author=True, recent_window=3)
    assert request.current_version == "1.2.3"
    assert request.tag_prefix == "v"
    assert request.show_date is True
    assert request.show_author is True
    assert request.include_body is False
    assert request.recent_window == 3
    assert request.timeout is None

    request = config.changelog_request("1.2.3", show_date=False, tag_prefix="")
    assert request.show_date is False
    assert request.expected_tag == "1.2.3"


def test_dump_config_omits_defaults() -> None:
    assert dump_config(Config()) == {}
    config = Config(
        changelog_show_author=True,
        repository="octo/demo",
        release=ReleaseConfig(draft=True),
    )
    assert dump_config(config) == {
        "changelog_show_author": True,
        "repository": "octo/demo",
        "release": {"draft": True},
    }


def test_save_config_writes_loadable_yaml(tmp_path: Path) -> None:
    config = Config(release_prefix="release-", changelog_recent_window=5)
    config_path = tmp_path / "nested" / CONFIG_FILENAME
    save_config(config, config_path)

    assert yaml.safe_load(config_path.read_text(encoding="utf-8")) == {
        "release_prefix": "release-",
        "changelog_recent_window": 5,
    }
    assert load_config(config_path) == config
