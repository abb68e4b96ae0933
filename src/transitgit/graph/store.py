"""Version store protocol and in-memory implementation.

The VersionStore protocol is everything the graph build needs from a
content store: create a commit on a branch, and point another branch at an
existing commit. The build never reads commit content back; it only keeps
the ids it was handed as parents for later commits.

DictVersionStore keeps commits in a dict and is used by tests and by
``build --dry-run``. GitVersionStore (git_store.py) writes a real git
repository.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence


def dedupe_parents(parents: Sequence[str]) -> list[str]:
    """Drop repeated parent ids, keeping first-seen order."""
    return list(dict.fromkeys(parents))


@runtime_checkable
class VersionStore(Protocol):
    """Storage backend protocol for the commit graph.

    Methods raise no transitgit errors; storage failures propagate as-is
    and abort the build.
    """

    def create_commit(self, content: str, parents: Sequence[str], branch: str) -> str:
        """Create a commit on *branch* and move the branch head to it.

        Args:
            content: Commit message (the stop name).
            parents: Parent commit ids, in order; duplicates are dropped.
            branch: Branch that receives the commit. Created if missing.

        Returns:
            Id of the new commit.
        """
        ...

    def move_branch_head(self, branch: str, commit_id: str) -> None:
        """Point *branch* at an existing commit, creating the branch if needed."""
        ...

    def branch_heads(self) -> dict[str, str]:
        """Return branch name -> head commit id."""
        ...

    def commit_count(self) -> int:
        """Return the number of commits created through this store."""
        ...


@dataclass(frozen=True)
class StoredCommit:
    """A commit held by DictVersionStore."""

    commit_id: str
    content: str
    parents: tuple[str, ...]
    branch: str


class DictVersionStore:
    """In-memory version store.

    Commit ids are SHA-1 digests over content, parents, branch and a
    sequence number, so identical stops on different branches still get
    distinct ids.
    """

    def __init__(self) -> None:
        self._commits: dict[str, StoredCommit] = {}
        self._heads: dict[str, str] = {}
        self._moves: list[tuple[str, str]] = []

    def create_commit(self, content: str, parents: Sequence[str], branch: str) -> str:
        unique_parents = dedupe_parents(parents)
        for parent in unique_parents:
            if parent not in self._commits:
                raise KeyError(f"Unknown parent commit {parent!r}")

        payload = json.dumps(
            [content, unique_parents, branch, len(self._commits)], ensure_ascii=False
        )
        commit_id = hashlib.sha1(payload.encode("utf-8")).hexdigest()  # noqa: S324
        self._commits[commit_id] = StoredCommit(
            commit_id=commit_id,
            content=content,
            parents=tuple(unique_parents),
            branch=branch,
        )
        self._heads[branch] = commit_id
        return commit_id

    def move_branch_head(self, branch: str, commit_id: str) -> None:
        if commit_id not in self._commits:
            raise KeyError(f"Unknown commit {commit_id!r}")
        self._heads[branch] = commit_id
        self._moves.append((branch, commit_id))

    def branch_heads(self) -> dict[str, str]:
        return dict(self._heads)

    def commit_count(self) -> int:
        return len(self._commits)

    # -- Inspection ------------------------------------------------------------

    def get_commit(self, commit_id: str) -> StoredCommit | None:
        """Get a commit by id, or None if unknown."""
        return self._commits.get(commit_id)

    def parents_of(self, commit_id: str) -> tuple[str, ...]:
        """Parent ids of a commit, in creation order."""
        return self._commits[commit_id].parents

    def commits(self) -> list[StoredCommit]:
        """All commits in creation order."""
        return list(self._commits.values())

    def head_moves(self) -> list[tuple[str, str]]:
        """Every move_branch_head call as (branch, commit_id), in call order."""
        return list(self._moves)
