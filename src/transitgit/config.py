"""Build configuration loading.

Configuration comes from an optional ``transitgit.yaml`` file. Environment
variables take precedence over the file for the git identity and branch
prefix, so CI jobs can override them without editing the file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

from transitgit.errors import TransitGitError
from transitgit.observability.logging import get_logger

log = get_logger(__name__)

# Default configuration values
DEFAULT_CONFIG_FILENAME = "transitgit.yaml"
DEFAULT_AUTHOR_NAME = "transitgit"
DEFAULT_AUTHOR_EMAIL = "transitgit@localhost"
DEFAULT_STOP_ID_SEPARATOR = ":"
TRIP_SELECTIONS = ("longest", "first")


class ConfigError(TransitGitError):
    """Raised when the build configuration cannot be loaded."""

    def __init__(self, path: Path | None, reason: str) -> None:
        self.path = path
        self.reason = reason
        where = f" at {path}" if path is not None else ""
        super().__init__(f"Failed to load config{where}: {reason}")


@dataclass
class GitConfig:
    """Identity and naming used when writing commits.

    Resolution order for each field:
    1. Environment variable (e.g., TRANSITGIT_AUTHOR_NAME)
    2. Config file (e.g., git.author_name)
    3. Built-in default

    Attributes:
        author_name: Author and committer name of every commit.
        author_email: Author and committer email of every commit.
        branch_prefix: Prefix prepended to every route branch name.
    """

    author_name: str = DEFAULT_AUTHOR_NAME
    author_email: str = DEFAULT_AUTHOR_EMAIL
    branch_prefix: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GitConfig:
        """Create config from dictionary, applying environment overrides."""
        return cls(
            author_name=os.getenv("TRANSITGIT_AUTHOR_NAME")
            or data.get("author_name", DEFAULT_AUTHOR_NAME),
            author_email=os.getenv("TRANSITGIT_AUTHOR_EMAIL")
            or data.get("author_email", DEFAULT_AUTHOR_EMAIL),
            branch_prefix=os.getenv("TRANSITGIT_BRANCH_PREFIX")
            or data.get("branch_prefix", ""),
        )


@dataclass
class FeedConfig:
    """How routes are extracted from a GTFS feed.

    Attributes:
        stop_id_separator: Stop ids are truncated at the first occurrence of
            this separator, so platform-level ids collapse onto their station.
            Empty string disables truncation.
        trip_selection: "longest" picks the trip with the most stop times as
            the route's representative, "first" picks the first trip by id.
    """

    stop_id_separator: str = DEFAULT_STOP_ID_SEPARATOR
    trip_selection: str = "longest"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FeedConfig:
        """Create config from dictionary."""
        return cls(
            stop_id_separator=data.get("stop_id_separator", DEFAULT_STOP_ID_SEPARATOR),
            trip_selection=data.get("trip_selection", "longest"),
        )


@dataclass
class BuildConfig:
    """Top-level configuration for a transitgit run."""

    git: GitConfig = field(default_factory=GitConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BuildConfig:
        """Create config from dictionary.

        Args:
            data: Dictionary with optional ``git`` and ``feed`` sections.

        Returns:
            BuildConfig instance.
        """
        return cls(
            git=GitConfig.from_dict(dict(data.get("git") or {})),
            feed=FeedConfig.from_dict(dict(data.get("feed") or {})),
        )

    def validate(self, path: Path | None = None) -> BuildConfig:
        """Check field values, raising ConfigError on the first bad one.

        Returns:
            self, for chaining.
        """
        for section, values in (("git", self.git), ("feed", self.feed)):
            for name, value in vars(values).items():
                if not isinstance(value, str):
                    raise ConfigError(
                        path, f"{section}.{name} must be a string, got {type(value).__name__}"
                    )

        if self.feed.trip_selection not in TRIP_SELECTIONS:
            raise ConfigError(
                path,
                f"feed.trip_selection must be one of {', '.join(TRIP_SELECTIONS)}, "
                f"got {self.feed.trip_selection!r}",
            )
        if not self.git.author_name.strip() or not self.git.author_email.strip():
            raise ConfigError(path, "git.author_name and git.author_email must not be empty")
        return self


def load_config(config_path: Path | None = None) -> BuildConfig:
    """Load build configuration.

    Args:
        config_path: Explicit config file. If None, ``transitgit.yaml`` in the
            current directory is used when present.

    Returns:
        BuildConfig instance (defaults plus environment overrides when no
        file exists).

    Raises:
        ConfigError: If an explicit file is missing, or any file cannot be
            parsed or holds invalid values.
    """
    explicit = config_path is not None
    path = config_path if config_path is not None else Path(DEFAULT_CONFIG_FILENAME)

    if not path.exists():
        if explicit:
            raise ConfigError(path, "File not found")
        return BuildConfig.from_dict({}).validate()

    yaml = YAML(typ="safe")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)
    except Exception as e:
        raise ConfigError(path, str(e)) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(path, "Top level must be a mapping")
    for section in ("git", "feed"):
        if not isinstance(data.get(section) or {}, dict):
            raise ConfigError(path, f"Section {section!r} must be a mapping")

    config = BuildConfig.from_dict(data).validate(path)
    log.debug("config_loaded", path=str(path))
    return config
