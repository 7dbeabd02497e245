"""
Project layout reconstruction for whole-homework downloads
"""
import os
from typing import List, Sequence, Tuple

from ...core.exceptions import LayoutConflict
from ...core.interfaces import FileSystem
from ...core.logging import get_logger
from .models import RemoteEntry

logger = get_logger(__name__)


class LayoutReconstructor:
    """
    Maps each file of a homework to its place in a project tree:
    sources under src/, tests under test/, resources under Resources/,
    config files at the top. Log files are never placed.
    """

    def __init__(self, fs: FileSystem):
        self.fs = fs

    def target_path(self, destination: str, entry: RemoteEntry) -> str:
        """
        Local path for entry inside destination.

        Raises:
            ValueError: For file types that have no place in the layout
        """
        subdir = entry.file_type.layout_dir()
        if subdir is None:
            raise ValueError(f"{entry.file_type.value} files are not part of the layout")
        if subdir:
            return os.path.join(destination, subdir, entry.name)
        return os.path.join(destination, entry.name)

    def plan(
        self,
        destination: str,
        entries: Sequence[RemoteEntry],
    ) -> Tuple[List[Tuple[RemoteEntry, str]], List[str]]:
        """
        Place entries and collect the directories they need.

        Args:
            destination: Project root (may not exist yet)
            entries: Homework listing

        Returns:
            ([(entry, local_path)], directories) with directories ordered
            parents first

        Raises:
            LayoutConflict: If a needed directory, or an ancestor of the
                destination, is a regular file, or a file would land where
                a layout directory goes
        """
        destination = os.path.normpath(destination)
        placed = []
        directories = [destination]

        for entry in entries:
            if entry.file_type.layout_dir() is None:
                logger.debug(f"Leaving out {entry} ({entry.file_type.value})")
                continue
            path = self.target_path(destination, entry)
            parent = os.path.dirname(path)
            if parent not in directories:
                directories.append(parent)
            placed.append((entry, path))

        for ancestor in self._ancestors(destination):
            if self.fs.exists(ancestor) and not self.fs.is_directory(ancestor):
                raise LayoutConflict(ancestor)

        for directory in directories:
            if self.fs.exists(directory) and not self.fs.is_directory(directory):
                raise LayoutConflict(directory)

        for _, path in placed:
            if path in directories:
                raise LayoutConflict(path)

        return placed, directories

    @staticmethod
    def _ancestors(path: str) -> List[str]:
        """Proper ancestors of a normalized path, outermost first"""
        ancestors = []
        parent = os.path.dirname(path)
        while parent and parent not in ancestors and parent != os.path.dirname(parent):
            ancestors.append(parent)
            parent = os.path.dirname(parent)
        return list(reversed(ancestors))

    def create_directories(self, directories: Sequence[str]) -> None:
        """
        Create layout directories; existing ones are left alone.

        Raises:
            LayoutConflict: If a directory cannot be created
        """
        for directory in directories:
            try:
                self.fs.create_directory(directory)
            except OSError as e:
                logger.debug(f"Cannot create {directory}: {e}")
                raise LayoutConflict(directory) from e
