"""File providers, path filtering and run cancellation.

The engine consumes any iterable of SourceFile objects or ``(path, content)``
tuples. FileSystemProvider is the provider used by the CLI; hosts that fetch
files from elsewhere (a VCS API, an archive) supply their own iterable.
"""

import fnmatch
import logging
import os
import threading
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

# Paths excluded when no explicit exclusions are configured
DEFAULT_EXCLUDE_PATHS: tuple[str, ...] = ("node_modules", ".git", "dist", "build")

_GLOB_CHARS = frozenset("*?[")


class ProviderFailure(Exception):
    """Raised when a file's content cannot be retrieved."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"Cannot read {path}: {message}")


@dataclass(frozen=True)
class SourceFile:
    """A file offered by a provider, with lazily loaded content.

    Attributes:
        path: Repository-relative path using forward slashes
        loader: Callable returning the file content
    """

    path: str
    loader: Callable[[], str] = field(repr=False, compare=False)

    def read(self) -> str:
        """Return the file content.

        Raises:
            ProviderFailure: If the content cannot be loaded
        """
        try:
            return self.loader()
        except ProviderFailure:
            raise
        except Exception as e:
            raise ProviderFailure(self.path, str(e) or type(e).__name__) from e


FileEntry = SourceFile | tuple[str, str]
FileProvider = Iterable[FileEntry]


def as_source_file(entry: FileEntry) -> SourceFile:
    """Normalize a provider entry to a SourceFile."""
    if isinstance(entry, SourceFile):
        return entry
    path, content = entry
    return SourceFile(path=path, loader=lambda: content)


def _is_glob(pattern: str) -> bool:
    return any(c in _GLOB_CHARS for c in pattern)


def path_matches(path: str, pattern: str) -> bool:
    """Check a repository-relative path against one filter pattern.

    Glob patterns (containing ``*``, ``?`` or ``[``) are matched against the
    whole path. Plain patterns match a path segment (``node_modules``) or a
    leading path prefix (``src/generated``).

    Args:
        path: Path with forward slashes
        pattern: Filter pattern

    Returns:
        True if the pattern selects the path
    """
    path = path.replace("\\", "/")
    if path.startswith("./"):
        path = path[2:]
    pattern = pattern.strip().rstrip("/")
    if not pattern:
        return False

    if _is_glob(pattern):
        return fnmatch.fnmatch(path, pattern) or PurePosixPath(path).match(pattern)

    if "/" in pattern:
        return path == pattern or path.startswith(pattern + "/")
    return pattern in PurePosixPath(path).parts


@dataclass
class AnalysisOptions:
    """Path filtering for a repository run.

    Attributes:
        exclude_paths: Patterns whose matches are never analyzed
        include_paths: When non-empty, only matching paths are analyzed
    """

    exclude_paths: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATHS))
    include_paths: list[str] = field(default_factory=list)

    def accepts(self, path: str) -> bool:
        """Return True if the path passes the include and exclude filters."""
        if any(path_matches(path, p) for p in self.exclude_paths):
            return False
        if self.include_paths:
            return any(path_matches(path, p) for p in self.include_paths)
        return True

    def prunes_directory(self, rel_dir: str) -> bool:
        """Return True if a whole directory can be skipped while walking.

        Only plain exclusion patterns prune; glob patterns are applied per file.
        """
        return any(
            not _is_glob(p) and path_matches(rel_dir, p) for p in self.exclude_paths
        )


class CancellationToken:
    """Cooperative cancellation flag shared between a host and a run.

    Usage:
        token = CancellationToken()
        threading.Thread(target=engine.analyze_repository, args=(files, None, token)).start()
        token.cancel()
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation; the run stops before its next file."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Return True once cancellation has been requested."""
        return self._event.is_set()


class FileSystemProvider:
    """Provides source files from a local directory.

    Every file is listed, source or not, so unsupported files still count
    toward a run's total. Content is only read for files that are analyzed.
    Paths are relative to the root, with forward slashes, in sorted order so
    repeated runs see files in the same order.
    """

    def __init__(
        self,
        root: Path,
        options: AnalysisOptions | None = None,
        encoding: str = "utf-8",
    ) -> None:
        """Initialize the provider.

        Args:
            root: Directory to scan
            options: Used to prune excluded directories during the walk
            encoding: Text encoding of source files
        """
        self.root = root
        self.options = options
        self.encoding = encoding

    def __iter__(self) -> Iterator[SourceFile]:
        for rel_path in self.list_paths():
            yield SourceFile(path=rel_path, loader=self._loader(rel_path))

    def list_paths(self) -> list[str]:
        """List repository-relative paths of every file not in a pruned directory."""
        paths: list[str] = []

        for dirpath, dirnames, filenames in os.walk(self.root):
            rel_dir = Path(dirpath).relative_to(self.root).as_posix()
            if self.options is not None:
                dirnames[:] = [
                    d for d in dirnames
                    if not self.options.prunes_directory(_join(rel_dir, d))
                ]
            dirnames.sort()

            paths.extend(_join(rel_dir, filename) for filename in filenames)

        paths.sort()
        logger.debug("Found %d files under %s", len(paths), self.root)
        return paths

    def _loader(self, rel_path: str) -> Callable[[], str]:
        full_path = self.root / rel_path

        def load() -> str:
            return full_path.read_text(encoding=self.encoding)

        return load


def _join(rel_dir: str, name: str) -> str:
    return name if rel_dir in ("", ".") else f"{rel_dir}/{name}"
