import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from snapvcs.base import Blob, BranchTable, Commit, CommitGraph, ObjectStore, StagingArea
from snapvcs.errors import AlreadyExists, InvalidOperation, NotFound
from snapvcs.repository import Repository
from snapvcs.worktree import WorkingTree

logger = logging.getLogger(__name__)


@dataclass
class MemoryRepoData:
    """
    Shared state of one in-memory repository.

    Reusing the same instance across Repository handles plays the role
    of the persisted directory.
    """

    blobs: dict[str, Blob] = field(default_factory=dict)
    commits: dict[str, Commit] = field(default_factory=dict)
    branches: dict[str, str] = field(default_factory=dict)
    current_branch: str | None = None
    staged: dict[str, str | None] = field(default_factory=dict)


class MemoryObjectStore(ObjectStore):
    def __init__(self, data: MemoryRepoData) -> None:
        self.data = data

    def put(self, hash_: str, data: Blob) -> None:
        if hash_ not in self.data.blobs:
            self.data.blobs[hash_] = data

    def get(self, hash_: str) -> Blob:
        try:
            return self.data.blobs[hash_]
        except KeyError:
            raise NotFound(f"No blob with hash {hash_} exists.") from None

    def has(self, hash_: str) -> bool:
        return hash_ in self.data.blobs

    def remove(self, hash_: str) -> None:
        if self.data.blobs.pop(hash_, None) is not None:
            logger.debug("Removed blob %s", hash_[:8])


class MemoryCommitGraph(CommitGraph):
    def __init__(self, data: MemoryRepoData) -> None:
        self.data = data

    def _insert(self, commit: Commit) -> None:
        self.data.commits[commit.id] = commit

    def get(self, commit_id: str) -> Commit:
        try:
            return self.data.commits[commit_id]
        except KeyError:
            raise NotFound("No commit with that id exists.") from None

    def has(self, commit_id: str) -> bool:
        return commit_id in self.data.commits

    def find_by_message(self, message: str) -> set[str]:
        return {c.id for c in self.data.commits.values() if c.message == message}

    def all_commits(self) -> Iterable[Commit]:
        return list(self.data.commits.values())

    def ids_with_prefix(self, prefix: str) -> list[str]:
        return sorted(cid for cid in self.data.commits if cid.startswith(prefix))

    def references_blob(self, hash_: str) -> bool:
        return any(hash_ in c.files.values() for c in self.data.commits.values())


class MemoryStagingArea(StagingArea):
    """
    Staged entries keyed by path; a None hash marks a removal.
    """

    def __init__(self, data: MemoryRepoData) -> None:
        self.data = data

    def stage_add(self, path: str, hash_: str) -> None:
        self.data.staged[path] = hash_

    def stage_remove(self, path: str) -> None:
        self.data.staged[path] = None

    def unstage(self, path: str) -> None:
        self.data.staged.pop(path, None)

    def clear(self) -> None:
        self.data.staged.clear()

    def additions(self) -> dict[str, str]:
        return {p: h for p, h in self.data.staged.items() if h is not None}

    def removals(self) -> set[str]:
        return {p for p, h in self.data.staged.items() if h is None}

    def is_empty(self) -> bool:
        return len(self.data.staged) == 0


class MemoryBranchTable(BranchTable):
    def __init__(self, data: MemoryRepoData) -> None:
        self.data = data

    @property
    def current(self) -> str:
        if self.data.current_branch is None:
            raise NotFound("No current branch.")
        return self.data.current_branch

    def get(self, name: str) -> str:
        try:
            return self.data.branches[name]
        except KeyError:
            raise NotFound("A branch with that name does not exist.") from None

    def has(self, name: str) -> bool:
        return name in self.data.branches

    def names(self) -> list[str]:
        return sorted(self.data.branches)

    def create(self, name: str, commit_id: str) -> None:
        if name in self.data.branches:
            raise AlreadyExists("A branch with that name already exists.")
        self.data.branches[name] = commit_id
        if self.data.current_branch is None:
            self.data.current_branch = name

    def remove(self, name: str) -> None:
        if name not in self.data.branches:
            raise NotFound("A branch with that name does not exist.")
        if name == self.data.current_branch:
            raise InvalidOperation("Cannot remove the current branch.")
        del self.data.branches[name]

    def set_head(self, commit_id: str) -> None:
        self.data.branches[self.current] = commit_id

    def switch_to(self, name: str) -> None:
        if name not in self.data.branches:
            raise NotFound("No such branch exists.")
        self.data.current_branch = name


def create_memory_repository(data: MemoryRepoData, work_path: str | Path) -> Repository:
    return Repository(
        objects=MemoryObjectStore(data),
        commits=MemoryCommitGraph(data),
        staging=MemoryStagingArea(data),
        branches=MemoryBranchTable(data),
        worktree=WorkingTree(work_path),
    )
