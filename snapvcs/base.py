import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping

from .errors import NotFound, PreconditionFailed
from .hashing import blob_hash, commit_id

logger = logging.getLogger(__name__)

Blob = bytes
FileTable = dict[str, str]

MIN_PREFIX_LENGTH = 4


@dataclass(frozen=True)
class Commit:
    """
    Immutable snapshot of the tracked files at a point in history.
    """

    id: str
    message: str
    timestamp: float
    parents: tuple[str, ...] = ()
    files: FileTable = field(default_factory=dict, hash=False)

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def first_parent(self) -> str | None:
        return self.parents[0] if self.parents else None

    def has_file(self, path: str) -> bool:
        return path in self.files

    def file_hash(self, path: str) -> str | None:
        return self.files.get(path)

    def __repr__(self) -> str:
        return f"Commit(id={self.id[:8]}..., message={self.message!r}, files={len(self.files)})"


class ObjectStore:
    """
    Content-addressed storage of immutable blobs.
    """

    def put(self, hash_: str, data: Blob) -> None:
        """Store a blob under its hash. Storing the same content twice is a no-op."""
        raise NotImplementedError()

    def get(self, hash_: str) -> Blob:
        """Return the blob content, raising NotFound if it is absent."""
        raise NotImplementedError()

    def has(self, hash_: str) -> bool:
        """Check whether a blob is stored."""
        raise NotImplementedError()

    def remove(self, hash_: str) -> None:
        """Drop a blob that no commit refers to."""
        raise NotImplementedError()

    def store(self, data: Blob) -> str:
        """Hash and store the content, returning its hash."""
        hash_ = blob_hash(data)
        self.put(hash_, data)
        return hash_


class CommitGraph:
    """
    Hash-identified commits linked into a DAG by their parent ids.

    Backends implement storage and lookup; traversal is shared.
    """

    def _insert(self, commit: Commit) -> None:
        """Persist a fully built commit."""
        raise NotImplementedError()

    def get(self, commit_id: str) -> Commit:
        """Load a commit, raising NotFound if the id is unknown."""
        raise NotImplementedError()

    def has(self, commit_id: str) -> bool:
        """Check whether a commit with exactly this id exists."""
        raise NotImplementedError()

    def find_by_message(self, message: str) -> set[str]:
        """Ids of all commits with exactly this message. Empty if none."""
        raise NotImplementedError()

    def all_commits(self) -> Iterable[Commit]:
        """Every stored commit, in no particular order."""
        raise NotImplementedError()

    def ids_with_prefix(self, prefix: str) -> list[str]:
        """Ids of all commits that start with the given prefix."""
        raise NotImplementedError()

    def references_blob(self, hash_: str) -> bool:
        """Check whether any commit's file table refers to the blob."""
        raise NotImplementedError()

    def create(
        self,
        message: str,
        files: Mapping[str, str],
        parents: Iterable[str] = (),
        timestamp: float | None = None,
    ) -> str:
        """Build, hash and store a new commit, returning its id."""
        if not message:
            raise PreconditionFailed("Please enter a commit message.")

        parents = tuple(parents)
        for parent in parents:
            if not self.has(parent):
                raise NotFound(f"No commit with id {parent} exists.")

        if timestamp is None:
            timestamp = time.time()
        timestamp = float(timestamp)
        files = dict(files)

        new_id = commit_id(message, timestamp, parents, files)
        if not self.has(new_id):
            self._insert(Commit(new_id, message, timestamp, parents, files))
            logger.debug("Stored commit %s with %d parent(s)", new_id[:8], len(parents))
        return new_id

    def resolve(self, commit_id: str) -> str:
        """Expand a full or abbreviated commit id to the stored full id."""
        if self.has(commit_id):
            return commit_id
        if len(commit_id) < MIN_PREFIX_LENGTH:
            raise NotFound("No commit with that id exists.")

        matches = self.ids_with_prefix(commit_id)
        if not matches:
            raise NotFound("No commit with that id exists.")
        if len(matches) > 1:
            raise PreconditionFailed(f"Commit id {commit_id} is ambiguous.")
        return matches[0]

    def history(self, start: str) -> Iterator[Commit]:
        """Yield commits from start to the root following first parents."""
        current: str | None = start
        while current is not None:
            commit = self.get(current)
            yield commit
            current = commit.first_parent

    def ancestors(self, start: str) -> Iterator[Commit]:
        """Yield start and every commit reachable from it, each once (BFS)."""
        visited: set[str] = set()
        queue: deque[str] = deque([start])
        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            visited.add(current)
            commit = self.get(current)
            yield commit
            for parent in commit.parents:
                if parent not in visited:
                    queue.append(parent)

    def split_point(self, first: str, second: str) -> str:
        """Find the common ancestor used as the merge baseline.

        Walks both histories breadth-first through one shared queue,
        seeded with ``first`` then ``second``. The first id dequeued a
        second time is the split point. On histories with several common
        ancestors this returns the one the walk reaches first, which is
        not necessarily the most recent.
        """
        visited: set[str] = set()
        queue: deque[str] = deque([first, second])

        while queue:
            current = queue.popleft()
            if current in visited:
                return current
            visited.add(current)
            queue.extend(self.get(current).parents)

        raise NotFound(f"Commits {first[:8]} and {second[:8]} share no ancestor.")


class StagingArea:
    """
    Pending changes between the working directory and the next commit.

    A path is either staged for addition (with the hash of its content)
    or staged for removal, never both.
    """

    def stage_add(self, path: str, hash_: str) -> None:
        """Stage the content for addition, cancelling a pending removal."""
        raise NotImplementedError()

    def stage_remove(self, path: str) -> None:
        """Stage the path for removal, cancelling a pending addition."""
        raise NotImplementedError()

    def unstage(self, path: str) -> None:
        """Drop whatever is staged for the path."""
        raise NotImplementedError()

    def clear(self) -> None:
        """Empty both the addition and the removal sets."""
        raise NotImplementedError()

    def additions(self) -> dict[str, str]:
        """Paths staged for addition mapped to their blob hashes."""
        raise NotImplementedError()

    def removals(self) -> set[str]:
        """Paths staged for removal."""
        raise NotImplementedError()

    def staged_hash(self, path: str) -> str | None:
        return self.additions().get(path)

    def is_staged_for_addition(self, path: str) -> bool:
        return path in self.additions()

    def is_staged_for_removal(self, path: str) -> bool:
        return path in self.removals()

    def is_empty(self) -> bool:
        return not self.additions() and not self.removals()


class BranchTable:
    """
    Branch names mapped to commit ids, plus the current branch.

    The head is the commit the current branch points to.
    """

    @property
    def current(self) -> str:
        """Name of the current branch."""
        raise NotImplementedError()

    def get(self, name: str) -> str:
        """Commit id of a branch, raising NotFound if it does not exist."""
        raise NotImplementedError()

    def has(self, name: str) -> bool:
        raise NotImplementedError()

    def names(self) -> list[str]:
        """All branch names, sorted."""
        raise NotImplementedError()

    def create(self, name: str, commit_id: str) -> None:
        """Create a branch pointing at the commit. Fails if the name is taken."""
        raise NotImplementedError()

    def remove(self, name: str) -> None:
        """Delete a branch other than the current one."""
        raise NotImplementedError()

    def set_head(self, commit_id: str) -> None:
        """Move the current branch to the commit."""
        raise NotImplementedError()

    def switch_to(self, name: str) -> None:
        """Make another existing branch current without moving any pointer."""
        raise NotImplementedError()

    @property
    def head(self) -> str:
        return self.get(self.current)
