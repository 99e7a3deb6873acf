import logging
from pathlib import Path
from typing import Iterable

from sqlalchemy import Float, ForeignKey, LargeBinary, String, Text, delete, select
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, relationship

from snapvcs.base import Blob, BranchTable, Commit, CommitGraph, ObjectStore, StagingArea
from snapvcs.errors import AlreadyExists, InvalidOperation, NotFound
from snapvcs.repository import Repository
from snapvcs.worktree import WorkingTree

logger = logging.getLogger(__name__)

CURRENT_BRANCH_KEY = "current_branch"


class Base(DeclarativeBase):
    pass


class BlobModel(Base):
    __tablename__ = "blobs"
    hash: Mapped[str] = mapped_column(String(40), primary_key=True)
    content: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)


class CommitModel(Base):
    __tablename__ = "commits"
    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[float] = mapped_column(Float, nullable=False)

    parents: Mapped[list["CommitParentModel"]] = relationship(
        foreign_keys="CommitParentModel.commit_id",
        order_by="CommitParentModel.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    files: Mapped[list["CommitFileModel"]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_commit(self) -> Commit:
        return Commit(
            id=self.id,
            message=self.message,
            timestamp=self.timestamp,
            parents=tuple(p.parent_id for p in self.parents),
            files={f.path: f.blob_hash for f in self.files},
        )


class CommitParentModel(Base):
    __tablename__ = "commit_parents"
    commit_id: Mapped[str] = mapped_column(ForeignKey("commits.id"), primary_key=True)
    position: Mapped[int] = mapped_column(primary_key=True)
    parent_id: Mapped[str] = mapped_column(ForeignKey("commits.id"), nullable=False)


class CommitFileModel(Base):
    __tablename__ = "commit_files"
    commit_id: Mapped[str] = mapped_column(ForeignKey("commits.id"), primary_key=True)
    path: Mapped[str] = mapped_column(primary_key=True)
    blob_hash: Mapped[str] = mapped_column(ForeignKey("blobs.hash"), nullable=False)


class BranchModel(Base):
    __tablename__ = "branches"
    name: Mapped[str] = mapped_column(primary_key=True)
    commit_id: Mapped[str] = mapped_column(ForeignKey("commits.id"))


class RepoStateModel(Base):
    __tablename__ = "repo_state"
    key: Mapped[str] = mapped_column(primary_key=True)
    value: Mapped[str] = mapped_column(nullable=False)


class StagedFileModel(Base):
    __tablename__ = "staged_files"
    path: Mapped[str] = mapped_column(primary_key=True)
    # NULL marks a path staged for removal
    blob_hash: Mapped[str | None] = mapped_column(
        ForeignKey("blobs.hash"), nullable=True
    )


class SqlObjectStore(ObjectStore):
    def __init__(self, session: Session) -> None:
        self.session = session

    def put(self, hash_: str, data: Blob) -> None:
        if self.session.get(BlobModel, hash_) is None:
            self.session.add(BlobModel(hash=hash_, content=data))
            self.session.flush()

    def get(self, hash_: str) -> Blob:
        blob = self.session.get(BlobModel, hash_)
        if blob is None:
            raise NotFound(f"No blob with hash {hash_} exists.")
        return blob.content

    def has(self, hash_: str) -> bool:
        return self.session.get(BlobModel, hash_) is not None

    def remove(self, hash_: str) -> None:
        blob = self.session.get(BlobModel, hash_)
        if blob is not None:
            self.session.delete(blob)
            self.session.flush()
            logger.debug("Removed blob %s", hash_[:8])


class SqlCommitGraph(CommitGraph):
    def __init__(self, session: Session) -> None:
        self.session = session

    def _insert(self, commit: Commit) -> None:
        model = CommitModel(
            id=commit.id,
            message=commit.message,
            timestamp=commit.timestamp,
            parents=[
                CommitParentModel(position=i, parent_id=parent)
                for i, parent in enumerate(commit.parents)
            ],
            files=[
                CommitFileModel(path=path, blob_hash=blob_hash)
                for path, blob_hash in commit.files.items()
            ],
        )
        self.session.add(model)
        self.session.flush()

    def get(self, commit_id: str) -> Commit:
        model = self.session.get(CommitModel, commit_id)
        if model is None:
            raise NotFound("No commit with that id exists.")
        return model.to_commit()

    def has(self, commit_id: str) -> bool:
        return self.session.get(CommitModel, commit_id) is not None

    def find_by_message(self, message: str) -> set[str]:
        stmt = select(CommitModel.id).where(CommitModel.message == message)
        return set(self.session.execute(stmt).scalars().all())

    def all_commits(self) -> Iterable[Commit]:
        stmt = select(CommitModel).order_by(CommitModel.timestamp)
        return [m.to_commit() for m in self.session.execute(stmt).scalars().all()]

    def ids_with_prefix(self, prefix: str) -> list[str]:
        stmt = (
            select(CommitModel.id)
            .where(CommitModel.id.startswith(prefix, autoescape=True))
            .order_by(CommitModel.id)
        )
        return list(self.session.execute(stmt).scalars().all())

    def references_blob(self, hash_: str) -> bool:
        stmt = select(CommitFileModel.commit_id).where(
            CommitFileModel.blob_hash == hash_
        )
        return self.session.execute(stmt.limit(1)).first() is not None


class SqlStagingArea(StagingArea):
    def __init__(self, session: Session) -> None:
        self.session = session

    def _set(self, path: str, hash_: str | None) -> None:
        item = self.session.get(StagedFileModel, path)
        if item is None:
            self.session.add(StagedFileModel(path=path, blob_hash=hash_))
        else:
            item.blob_hash = hash_
        self.session.flush()

    def stage_add(self, path: str, hash_: str) -> None:
        self._set(path, hash_)

    def stage_remove(self, path: str) -> None:
        self._set(path, None)

    def unstage(self, path: str) -> None:
        item = self.session.get(StagedFileModel, path)
        if item is not None:
            self.session.delete(item)
            self.session.flush()

    def clear(self) -> None:
        self.session.execute(delete(StagedFileModel))

    def additions(self) -> dict[str, str]:
        stmt = select(StagedFileModel).where(StagedFileModel.blob_hash.is_not(None))
        return {
            item.path: item.blob_hash
            for item in self.session.execute(stmt).scalars().all()
            if item.blob_hash is not None
        }

    def removals(self) -> set[str]:
        stmt = select(StagedFileModel.path).where(StagedFileModel.blob_hash.is_(None))
        return set(self.session.execute(stmt).scalars().all())

    def is_empty(self) -> bool:
        return self.session.execute(select(StagedFileModel.path).limit(1)).first() is None


class SqlBranchTable(BranchTable):
    def __init__(self, session: Session) -> None:
        self.session = session

    @property
    def current(self) -> str:
        state = self.session.get(RepoStateModel, CURRENT_BRANCH_KEY)
        if state is None:
            raise NotFound("No current branch.")
        return state.value

    def _set_current(self, name: str) -> None:
        state = self.session.get(RepoStateModel, CURRENT_BRANCH_KEY)
        if state is None:
            self.session.add(RepoStateModel(key=CURRENT_BRANCH_KEY, value=name))
        else:
            state.value = name
        self.session.flush()

    def get(self, name: str) -> str:
        branch = self.session.get(BranchModel, name)
        if branch is None:
            raise NotFound("A branch with that name does not exist.")
        return branch.commit_id

    def has(self, name: str) -> bool:
        return self.session.get(BranchModel, name) is not None

    def names(self) -> list[str]:
        stmt = select(BranchModel.name).order_by(BranchModel.name)
        return list(self.session.execute(stmt).scalars().all())

    def create(self, name: str, commit_id: str) -> None:
        if self.has(name):
            raise AlreadyExists("A branch with that name already exists.")
        self.session.add(BranchModel(name=name, commit_id=commit_id))
        self.session.flush()
        if self.session.get(RepoStateModel, CURRENT_BRANCH_KEY) is None:
            self._set_current(name)

    def remove(self, name: str) -> None:
        branch = self.session.get(BranchModel, name)
        if branch is None:
            raise NotFound("A branch with that name does not exist.")
        if name == self.current:
            raise InvalidOperation("Cannot remove the current branch.")
        self.session.delete(branch)
        self.session.flush()

    def set_head(self, commit_id: str) -> None:
        branch = self.session.get(BranchModel, self.current)
        if branch is None:
            raise NotFound("No current branch.")
        branch.commit_id = commit_id
        self.session.flush()

    def switch_to(self, name: str) -> None:
        if not self.has(name):
            raise NotFound("No such branch exists.")
        self._set_current(name)


def create_sql_repository(session: Session, work_path: str | Path) -> Repository:
    return Repository(
        objects=SqlObjectStore(session),
        commits=SqlCommitGraph(session),
        staging=SqlStagingArea(session),
        branches=SqlBranchTable(session),
        worktree=WorkingTree(work_path),
    )
