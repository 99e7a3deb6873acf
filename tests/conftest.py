from dataclasses import dataclass

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from snapvcs.base import BranchTable, CommitGraph, ObjectStore, StagingArea
from snapvcs.impl.memory import (
    MemoryBranchTable,
    MemoryCommitGraph,
    MemoryObjectStore,
    MemoryRepoData,
    MemoryStagingArea,
)
from snapvcs.impl.sql import (
    Base,
    SqlBranchTable,
    SqlCommitGraph,
    SqlObjectStore,
    SqlStagingArea,
)


@dataclass
class Components:
    objects: ObjectStore
    commits: CommitGraph
    staging: StagingArea
    branches: BranchTable


@pytest.fixture
def sql_session():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def components(request) -> Components:
    """The four storage components of one backend."""
    if request.param == "memory":
        data = MemoryRepoData()
        return Components(
            objects=MemoryObjectStore(data),
            commits=MemoryCommitGraph(data),
            staging=MemoryStagingArea(data),
            branches=MemoryBranchTable(data),
        )

    session = request.getfixturevalue("sql_session")
    return Components(
        objects=SqlObjectStore(session),
        commits=SqlCommitGraph(session),
        staging=SqlStagingArea(session),
        branches=SqlBranchTable(session),
    )
