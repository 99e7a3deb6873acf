import logging
from pathlib import Path

from .errors import NotFound

logger = logging.getLogger(__name__)


class WorkingTree:
    """
    Plain files at the root of the user's working directory.

    Subdirectories (the repository marker directory included) are not
    part of the tree.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).absolute()

    def __repr__(self) -> str:
        return f"WorkingTree(root={str(self.root)!r})"

    @staticmethod
    def is_tracked_name(name: str) -> bool:
        """Only a single path component names a file in the tree."""
        return name not in ("", ".", "..") and Path(name).name == name

    def _path(self, name: str) -> Path:
        if not self.is_tracked_name(name):
            raise NotFound("File does not exist.")
        return self.root / name

    def exists(self, name: str) -> bool:
        return self.is_tracked_name(name) and self._path(name).is_file()

    def read(self, name: str) -> bytes:
        return self._path(name).read_bytes()

    def write(self, name: str, content: bytes) -> None:
        self._path(name).write_bytes(content)
        logger.debug("Wrote %s (%d bytes)", name, len(content))

    def delete(self, name: str) -> None:
        file_path = self._path(name)
        if file_path.is_file():
            file_path.unlink()
            logger.debug("Deleted %s", name)

    def files(self) -> list[str]:
        """Names of all plain files in the tree, sorted."""
        return sorted(p.name for p in self.root.iterdir() if p.is_file())
