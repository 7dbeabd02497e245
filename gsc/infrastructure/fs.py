"""
Local filesystem implementation
"""
from pathlib import Path

from ..core.interfaces import FileSystem


class LocalFileSystem(FileSystem):
    """FileSystem backed by the real disk"""

    def exists(self, path: str) -> bool:
        return Path(path).expanduser().exists()

    def is_directory(self, path: str) -> bool:
        return Path(path).expanduser().is_dir()

    def create_directory(self, path: str) -> None:
        Path(path).expanduser().mkdir(parents=True, exist_ok=True)
