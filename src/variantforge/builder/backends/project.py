"""Discovers the files of first-party source groups so each can be watched."""

from collections.abc import Iterable
import fnmatch
import os
from pathlib import Path

from attrs import define

from ..exceptions import ProjectCrawlError

DEFAULT_IGNORE_PATTERNS = (".*", "target", "__pycache__")


@define(frozen=True, slots=True)
class ProjectInfo:
    files: tuple[Path, ...]


class ProjectCrawler:
    """Walks source group directories, pruning entries whose name matches a pattern."""

    def __init__(self, ignore_patterns: Iterable[str] = DEFAULT_IGNORE_PATTERNS) -> None:
        self.ignore_patterns = tuple(ignore_patterns)

    def crawl(self, directories: Iterable[Path]) -> ProjectInfo:
        files: list[Path] = []
        for directory in directories:
            if not directory.is_dir():
                raise ProjectCrawlError(f"Source group directory not found: {directory}")
            files.extend(self._crawl_one(directory))
        return ProjectInfo(files=tuple(files))

    def is_ignored(self, name: str) -> bool:
        return any(fnmatch.fnmatch(name, p) for p in self.ignore_patterns)

    def _crawl_one(self, directory: Path) -> list[Path]:
        def on_error(e: OSError) -> None:
            raise ProjectCrawlError(f"Failed to list files in {e.filename}: {e}") from e

        found = []
        for dir_path, dir_names, file_names in os.walk(directory, onerror=on_error):
            dir_names[:] = sorted(d for d in dir_names if not self.is_ignored(d))
            found.extend(
                Path(dir_path) / f
                for f in sorted(file_names)
                if not self.is_ignored(f)
            )
        return found
