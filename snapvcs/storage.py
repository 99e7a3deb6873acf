"""On-disk repositories: the marker directory and its SQLite database."""

import logging
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from .errors import AlreadyExists, NotFound, NotInitialized
from .impl.sql import Base, create_sql_repository
from .repository import DEFAULT_BRANCH, Repository

logger = logging.getLogger(__name__)

REPO_DIR_NAME = ".snapvcs"
DB_FILENAME = "repo.db"


def repo_dir(work_path: str | Path) -> Path:
    return Path(work_path).absolute() / REPO_DIR_NAME


def database_url(work_path: str | Path) -> str:
    return f"sqlite:///{repo_dir(work_path) / DB_FILENAME}"


def is_initialized(work_path: str | Path) -> bool:
    return repo_dir(work_path).is_dir()


def init_repository(
    work_path: str | Path = ".", *, default_branch: str = DEFAULT_BRANCH
) -> str:
    """Create a repository in work_path and return the initial commit id.

    Never touches an existing repository.
    """
    if not Path(work_path).is_dir():
        raise NotFound(f"Directory {work_path} does not exist.")
    marker = repo_dir(work_path)
    if marker.exists():
        raise AlreadyExists(
            "A version-control system already exists in the current directory."
        )
    marker.mkdir()
    logger.debug("Created %s", marker)

    try:
        with open_repository(work_path) as repo:
            return repo.initialize(default_branch)
    except Exception:
        # No marker without an initial commit
        shutil.rmtree(marker, ignore_errors=True)
        raise


@contextmanager
def open_repository(work_path: str | Path = ".") -> Iterator[Repository]:
    """Open the repository in work_path for one invocation.

    The whole invocation runs in one transaction: it is committed when
    the block exits normally and rolled back if it raises.
    """
    if not is_initialized(work_path):
        raise NotInitialized("Not in an initialized snapvcs directory.")

    engine = create_engine(database_url(work_path))
    Base.metadata.create_all(engine)
    try:
        with Session(engine) as session, session.begin():
            yield create_sql_repository(session, work_path)
    finally:
        engine.dispose()
