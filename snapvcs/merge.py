"""Three-way merge planning over commit file tables."""

import enum
from dataclasses import dataclass
from typing import Mapping

CONFLICT_HEAD_MARKER = b"<<<<<<< HEAD\n"
CONFLICT_SEPARATOR = b"=======\n"
CONFLICT_END_MARKER = b">>>>>>>\n"


class MergeCase(enum.Enum):
    """What a merge does to one path."""

    KEEP_HEAD = "keep_head"  # working copy and stage untouched
    REMOVE = "remove"  # delete and stage removal
    TAKE_GIVEN = "take_given"  # write the given version and stage it
    CONFLICT = "conflict"  # write conflict-marked content and stage it


@dataclass(frozen=True)
class FileAction:
    path: str
    case: MergeCase
    head_hash: str | None
    given_hash: str | None


@dataclass(frozen=True)
class MergeResult:
    """Result of merging a branch into the current one."""

    strategy: str  # "ancestor", "fast_forward", "merged"
    commit: str | None
    conflicts: tuple[str, ...] = ()

    @property
    def has_conflicts(self) -> bool:
        return len(self.conflicts) > 0


def classify(split: str | None, head: str | None, given: str | None) -> MergeCase:
    """Decide the merge case of one path from its blob hash on each side.

    None means the path is absent on that side.
    """
    if split is not None:
        if head is None:
            return MergeCase.KEEP_HEAD
        if given is None:
            return MergeCase.REMOVE if head == split else MergeCase.CONFLICT
        if head == given or given == split:
            return MergeCase.KEEP_HEAD
        if head == split:
            return MergeCase.TAKE_GIVEN
        return MergeCase.CONFLICT

    if given is None or head == given:
        return MergeCase.KEEP_HEAD
    if head is None:
        return MergeCase.TAKE_GIVEN
    return MergeCase.CONFLICT


def plan_merge(
    split: Mapping[str, str],
    head: Mapping[str, str],
    given: Mapping[str, str],
) -> list[FileAction]:
    """Classify every path of the three file tables, sorted by path."""
    paths = set(split) | set(head) | set(given)
    actions = []
    for path in sorted(paths):
        head_hash = head.get(path)
        given_hash = given.get(path)
        case = classify(split.get(path), head_hash, given_hash)
        actions.append(FileAction(path, case, head_hash, given_hash))
    return actions


def conflict_content(head: bytes | None, given: bytes | None) -> bytes:
    """Wrap both competing versions in conflict markers."""
    return b"".join(
        [
            CONFLICT_HEAD_MARKER,
            head or b"",
            CONFLICT_SEPARATOR,
            given or b"",
            CONFLICT_END_MARKER,
        ]
    )
