"""Git-backed version store.

GitVersionStore implements the VersionStore protocol on a real git
repository through GitPython. Every commit carries the empty tree: the
graph lives entirely in commit messages and parent links, so the working
tree is never touched.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from git import Actor, IndexFile, Repo
from git.objects import Commit

from transitgit.config import GitConfig
from transitgit.graph.store import dedupe_parents
from transitgit.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from git.objects import Tree

log = get_logger(__name__)


class GitVersionStore:
    """Version store writing commits and branch refs into a git repository.

    Opens the repository at *path* if one exists, otherwise initialises a
    new one (creating the directory as needed).
    """

    def __init__(self, path: str | Path, config: GitConfig | None = None) -> None:
        """Open or create the repository.

        Args:
            path: Repository working directory.
            config: Commit identity. Defaults to GitConfig().
        """
        config = config or GitConfig()
        self._path = Path(path)

        if (self._path / ".git").exists():
            self._repo = Repo(self._path)
            if self._repo.heads:
                log.warning(
                    "repository_not_empty",
                    path=str(self._path),
                    branches=[head.name for head in self._repo.heads],
                )
        else:
            log.info("repository_created", path=str(self._path))
            self._repo = Repo.init(self._path, mkdir=True)

        self._actor = Actor(config.author_name, config.author_email)
        # Empty tree, independent of whatever the repository index holds
        empty_index = IndexFile(self._repo)
        empty_index.entries = {}
        self._tree: Tree = empty_index.write_tree()
        self._created = 0

    @property
    def repo(self) -> Repo:
        """Underlying GitPython repository."""
        return self._repo

    def close(self) -> None:
        """Release git subprocesses held by the repository."""
        self._repo.close()

    def create_commit(self, content: str, parents: Sequence[str], branch: str) -> str:
        parent_commits = [self._repo.commit(sha) for sha in dedupe_parents(parents)]
        commit = Commit.create_from_tree(
            self._repo,
            self._tree,
            content,
            parent_commits=parent_commits,
            head=False,
            author=self._actor,
            committer=self._actor,
        )
        self._repo.create_head(branch, commit, force=True)
        self._created += 1
        log.debug(
            "git_commit_created",
            commit=commit.hexsha,
            message=content,
            parents=[p.hexsha for p in parent_commits],
            branch=branch,
        )
        return commit.hexsha

    def move_branch_head(self, branch: str, commit_id: str) -> None:
        self._repo.create_head(branch, self._repo.commit(commit_id), force=True)
        log.debug("git_branch_moved", branch=branch, commit=commit_id)

    def branch_heads(self) -> dict[str, str]:
        return {head.name: head.commit.hexsha for head in self._repo.heads}

    def commit_count(self) -> int:
        return self._created

    def checkout_branch(self, branch: str) -> None:
        """Point HEAD at *branch* so ``git log`` in the result works out of the box."""
        self._repo.head.reference = self._repo.heads[branch]
