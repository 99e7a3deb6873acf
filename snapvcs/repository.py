import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from .base import BranchTable, Commit, CommitGraph, ObjectStore, StagingArea
from .errors import AlreadyExists, NoOpRequested, NotFound, PreconditionFailed
from .hashing import blob_hash
from .merge import MergeCase, MergeResult, conflict_content, plan_merge
from .worktree import WorkingTree

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "master"
INITIAL_MESSAGE = "initial commit"

UNTRACKED_IN_THE_WAY = (
    "There is an untracked file in the way; delete it, or add and commit it first."
)


@dataclass(frozen=True)
class StatusReport:
    current_branch: str
    branches: list[str] = field(default_factory=list)
    staged: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    untracked: list[str] = field(default_factory=list)


class Repository:
    """
    Version-control operations over one working tree.

    A Repository is a short-lived handle: it is built at the start of an
    invocation from the object store, commit graph, staging area and
    branch table of one repository, and it is the only component that
    touches the working tree. Every check that can fail runs before the
    first mutation, so a failed operation leaves state as it found it.
    """

    def __init__(
        self,
        objects: ObjectStore,
        commits: CommitGraph,
        staging: StagingArea,
        branches: BranchTable,
        worktree: WorkingTree,
    ) -> None:
        self.objects = objects
        self.commits = commits
        self.staging = staging
        self.branches = branches
        self.worktree = worktree

    def __repr__(self) -> str:
        return f"Repository(root={str(self.worktree.root)!r})"

    @property
    def head_commit(self) -> Commit:
        return self.commits.get(self.branches.head)

    def initialize(self, default_branch: str = DEFAULT_BRANCH) -> str:
        """Create the initial commit and the default branch."""
        if self.branches.names():
            raise AlreadyExists(
                "A version-control system already exists in the current directory."
            )
        root = self.commits.create(INITIAL_MESSAGE, {}, (), timestamp=0)
        self.branches.create(default_branch, root)
        logger.info("Initialized repository on branch %s", default_branch)
        return root

    # -- Staging --

    def add(self, path: str) -> None:
        """Stage the working copy of a file for the next commit."""
        if not self.worktree.exists(path):
            raise NotFound("File does not exist.")
        self._stage_content(path, self.worktree.read(path))

    def _stage_content(self, path: str, content: bytes) -> None:
        if self.staging.is_staged_for_removal(path):
            self.staging.unstage(path)

        hash_ = blob_hash(content)
        previous = self.staging.staged_hash(path)

        if self.head_commit.file_hash(path) == hash_:
            # Same as the committed version: nothing to stage
            if previous is not None:
                self.staging.unstage(path)
                self._release_blob(previous)
            return

        self.objects.put(hash_, content)
        self.staging.stage_add(path, hash_)
        if previous is not None and previous != hash_:
            self._release_blob(previous)
        logger.debug("Staged %s as %s", path, hash_[:8])

    def _release_blob(self, hash_: str) -> None:
        """Drop a blob that was staged but is referenced by nothing now."""
        if hash_ in self.staging.additions().values():
            return
        if self.commits.references_blob(hash_):
            return
        self.objects.remove(hash_)

    def rm(self, path: str) -> None:
        """Unstage a file, and stop tracking it if the head commit has it."""
        tracked = self.head_commit.has_file(path)
        staged = self.staging.staged_hash(path)

        if not tracked and staged is None:
            raise NoOpRequested("No reason to remove the file.")

        if staged is not None:
            self.staging.unstage(path)
            self._release_blob(staged)

        if tracked:
            self.staging.stage_remove(path)
            self.worktree.delete(path)

    # -- Commits --

    def commit(self, message: str, second_parent: str | None = None) -> str:
        """Record the head files plus the staged changes as a new commit.

        A merge commit passes the tip of the merged branch as
        ``second_parent`` and may be recorded without staged changes.
        """
        if not message:
            raise PreconditionFailed("Please enter a commit message.")
        if second_parent is None and self.staging.is_empty():
            raise PreconditionFailed("No changes added to the commit.")

        head = self.head_commit
        files = dict(head.files)
        files.update(self.staging.additions())
        for path in self.staging.removals():
            files.pop(path, None)

        parents = (head.id,) if second_parent is None else (head.id, second_parent)
        new_id = self.commits.create(message, files, parents)

        self.branches.set_head(new_id)
        self.staging.clear()
        logger.info("Committed %s on %s", new_id[:8], self.branches.current)
        return new_id

    def log(self) -> Iterator[Commit]:
        """Commits from the head back to the initial commit, first parents only."""
        return self.commits.history(self.branches.head)

    def global_log(self) -> list[Commit]:
        return list(self.commits.all_commits())

    def find(self, message: str) -> list[str]:
        ids = sorted(self.commits.find_by_message(message))
        if not ids:
            raise NotFound("Found no commit with that message.")
        return ids

    # -- Status --

    def _untracked_files(self) -> list[str]:
        head = self.head_commit
        return [
            name
            for name in self.worktree.files()
            if (not head.has_file(name) and not self.staging.is_staged_for_addition(name))
            or self.staging.is_staged_for_removal(name)
        ]

    def _modified_files(self) -> list[str]:
        head = self.head_commit
        additions = self.staging.additions()
        removals = self.staging.removals()
        result = []

        for name, hash_ in head.files.items():
            if not self.worktree.exists(name):
                if name not in removals:
                    result.append(f"{name} (deleted)")
            elif name not in additions and blob_hash(self.worktree.read(name)) != hash_:
                result.append(f"{name} (modified)")

        for name, hash_ in additions.items():
            if not self.worktree.exists(name):
                result.append(f"{name} (deleted)")
            elif blob_hash(self.worktree.read(name)) != hash_:
                result.append(f"{name} (modified)")

        return sorted(set(result))

    def status(self) -> StatusReport:
        return StatusReport(
            current_branch=self.branches.current,
            branches=self.branches.names(),
            staged=sorted(self.staging.additions()),
            removed=sorted(self.staging.removals()),
            modified=self._modified_files(),
            untracked=self._untracked_files(),
        )

    # -- Checkout / reset --

    def _check_untracked(self, target_files: Iterable[str]) -> None:
        targets = set(target_files)
        for name in self._untracked_files():
            if name in targets:
                raise PreconditionFailed(UNTRACKED_IN_THE_WAY)

    def _resolve_commit(self, commit_id: str) -> Commit:
        return self.commits.get(self.commits.resolve(commit_id))

    def checkout_file(self, path: str, commit_id: str | None = None) -> None:
        """Overwrite the working copy of a file with its committed version."""
        if commit_id is None:
            commit = self.head_commit
        else:
            commit = self._resolve_commit(commit_id)

        hash_ = commit.file_hash(path)
        if hash_ is None:
            raise NotFound("File does not exist in that commit.")
        self.worktree.write(path, self.objects.get(hash_))

    def _checkout_commit(self, target: Commit) -> None:
        """Make the working tree match a commit and empty the stage."""
        self._check_untracked(target.files)

        head = self.head_commit
        for path, hash_ in target.files.items():
            self.worktree.write(path, self.objects.get(hash_))
        for path in head.files:
            if not target.has_file(path):
                self.worktree.delete(path)

        self.staging.clear()

    def checkout_branch(self, name: str) -> None:
        if not self.branches.has(name):
            raise NotFound("No such branch exists.")
        if name == self.branches.current:
            raise NoOpRequested("No need to checkout the current branch.")

        self._checkout_commit(self.commits.get(self.branches.get(name)))
        self.branches.switch_to(name)
        logger.info("Switched to branch %s", name)

    def reset(self, commit_id: str) -> None:
        """Check out a commit and move the current branch to it."""
        target = self._resolve_commit(commit_id)
        self._checkout_commit(target)
        self.branches.set_head(target.id)
        logger.info("Reset %s to %s", self.branches.current, target.id[:8])

    # -- Branches --

    def branch(self, name: str) -> None:
        self.branches.create(name, self.branches.head)

    def rm_branch(self, name: str) -> None:
        self.branches.remove(name)

    # -- Merge --

    def merge(self, name: str) -> MergeResult:
        """Merge the tip of another branch into the current branch."""
        if not self.branches.has(name):
            raise NotFound("A branch with that name does not exist.")
        current = self.branches.current
        if name == current:
            raise NoOpRequested("Cannot merge a branch with itself.")

        head = self.head_commit
        given = self.commits.get(self.branches.get(name))
        split = self.commits.get(self.commits.split_point(given.id, head.id))

        self._check_untracked(set(given.files) | set(split.files))
        if not self.staging.is_empty():
            raise PreconditionFailed("You have uncommitted changes.")

        if split.id == given.id:
            logger.info("Nothing to merge: %s is an ancestor of %s", name, current)
            return MergeResult(strategy="ancestor", commit=None)

        if split.id == head.id:
            self._checkout_commit(given)
            self.branches.set_head(given.id)
            logger.info("Fast-forwarded %s to %s", current, given.id[:8])
            return MergeResult(strategy="fast_forward", commit=given.id)

        conflicts = []
        for action in plan_merge(split.files, head.files, given.files):
            if action.case is MergeCase.TAKE_GIVEN:
                content = self.objects.get(action.given_hash)
            elif action.case is MergeCase.CONFLICT:
                content = conflict_content(
                    self._read_blob(action.head_hash),
                    self._read_blob(action.given_hash),
                )
                conflicts.append(action.path)
            elif action.case is MergeCase.REMOVE:
                self.rm(action.path)
                continue
            else:
                continue

            self.worktree.write(action.path, content)
            self._stage_content(action.path, content)

        new_id = self.commit(f"Merged {name} into {current}.", second_parent=given.id)
        if conflicts:
            logger.info("Merge of %s left conflicts in: %s", name, ", ".join(conflicts))
        return MergeResult(strategy="merged", commit=new_id, conflicts=tuple(conflicts))

    def _read_blob(self, hash_: str | None) -> bytes | None:
        if hash_ is None:
            return None
        return self.objects.get(hash_)
