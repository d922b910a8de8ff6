import os
import re
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Pattern

from gitignore_parser import parse_gitignore

# Version-control metadata is never counted, hidden or not.
DEFAULT_IGNORES = {".git", ".hg", ".svn", ".bzr"}

__all__ = ["PathFilter", "collect_files", "DEFAULT_IGNORES"]


def _compile(pattern: Optional[str]) -> Optional[Pattern]:
    return re.compile(pattern) if pattern else None


class PathFilter:
    """Regex filters on file names and their parent directories.

    Patterns use :func:`re.search` semantics.  Invalid patterns raise
    :class:`re.error` at construction, before any file is looked at.
    """

    def __init__(
        self,
        match: Optional[str] = None,
        not_match: Optional[str] = None,
        match_dir: Optional[str] = None,
        not_match_dir: Optional[str] = None,
    ):
        self.match = _compile(match)
        self.not_match = _compile(not_match)
        self.match_dir = _compile(match_dir)
        self.not_match_dir = _compile(not_match_dir)

    def accepts(self, path: Path) -> bool:
        name = path.name
        if self.not_match is not None and self.not_match.search(name):
            return False
        if self.match is not None and not self.match.search(name):
            return False

        directory = str(path.parent)
        if self.not_match_dir is not None and self.not_match_dir.search(directory):
            return False
        if self.match_dir is not None and not self.match_dir.search(directory):
            return False
        return True


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _compile_ignore(root: Path) -> Callable[[str], bool]:
    """Return a callable that determines whether an absolute path is ignored."""

    gitignore = root / ".gitignore"
    if gitignore.is_file():
        try:
            return parse_gitignore(str(gitignore))
        except OSError:
            pass
    return lambda _p: False


def _walk_directory(
    root: Path,
    *,
    include_hidden: bool,
    respect_gitignore: bool,
) -> Iterable[Path]:
    """Yield the files below *root*, pruning ignored directories in place."""

    abs_root = Path(os.path.abspath(root))
    is_ignored = _compile_ignore(abs_root) if respect_gitignore else (lambda _p: False)

    for dirpath_str, dirnames, filenames in os.walk(root, topdown=True):
        current_dir = Path(dirpath_str)
        abs_dir = Path(os.path.abspath(current_dir))

        dirnames[:] = sorted(
            d for d in dirnames
            if d not in DEFAULT_IGNORES
            and (include_hidden or not d.startswith("."))
            and not is_ignored(str(abs_dir / d))
        )

        for f_name in sorted(filenames):
            if not include_hidden and f_name.startswith("."):
                continue
            if is_ignored(str(abs_dir / f_name)):
                continue
            file_path = current_dir / f_name
            # Symlinks are never followed.
            if file_path.is_symlink():
                continue
            yield file_path


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def collect_files(
    paths: Iterable[os.PathLike],
    *,
    include_hidden: bool = False,
    respect_gitignore: bool = True,
    path_filter: Optional[PathFilter] = None,
) -> List[Path]:
    """Expand *paths* into the list of files to analyse.

    Directories are walked recursively; files named explicitly are taken
    as-is, hidden or not.  The result is de-duplicated and keeps discovery
    order.  Missing paths raise :class:`FileNotFoundError`.
    """

    seen = set()
    files: List[Path] = []

    def _add(candidate: Path) -> None:
        key = os.path.abspath(candidate)
        if key in seen:
            return
        if path_filter is not None and not path_filter.accepts(candidate):
            return
        seen.add(key)
        files.append(candidate)

    for raw in paths:
        path = Path(raw)
        if not path.exists():
            raise FileNotFoundError(path)
        if path.is_dir():
            for file_path in _walk_directory(
                path,
                include_hidden=include_hidden,
                respect_gitignore=respect_gitignore,
            ):
                _add(file_path)
        else:
            _add(path)

    return files
