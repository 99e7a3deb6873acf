from .base import Blob, BranchTable, Commit, CommitGraph, FileTable, ObjectStore, StagingArea
from .errors import (
    AlreadyExists,
    InvalidOperation,
    NoOpRequested,
    NotFound,
    NotInitialized,
    PreconditionFailed,
    UsageError,
    VCSError,
)
from .impl.memory import MemoryRepoData, create_memory_repository
from .impl.sql import create_sql_repository
from .merge import MergeCase, MergeResult
from .repository import Repository, StatusReport
from .storage import init_repository, open_repository

__all__ = [
    "Blob",
    "BranchTable",
    "Commit",
    "CommitGraph",
    "FileTable",
    "ObjectStore",
    "StagingArea",
    "AlreadyExists",
    "InvalidOperation",
    "NoOpRequested",
    "NotFound",
    "NotInitialized",
    "PreconditionFailed",
    "UsageError",
    "VCSError",
    "MemoryRepoData",
    "create_memory_repository",
    "create_sql_repository",
    "MergeCase",
    "MergeResult",
    "Repository",
    "StatusReport",
    "init_repository",
    "open_repository",
]
