"""Repository walker and the persisted repository index."""

import os
import stat
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

import pathspec

from .errors import IndexWriteError, WalkReadError
from .models import INDEX_FILENAME, VECTOR_INDEX_FILENAME, IndexEntry, RepositoryIndex

logger = logging.getLogger(__name__)


# File extensions indexed by default
DEFAULT_CODE_EXTENSIONS = (
    '.ts', '.tsx', '.js', '.jsx', '.mjs', '.cjs', '.json',
    '.py', '.go', '.rs', '.java', '.cs', '.php', '.rb',
    '.c', '.h', '.cpp', '.hpp', '.swift', '.kt', '.kts',
)

# Directories never descended into
DEFAULT_IGNORE_DIRS = frozenset({
    'node_modules', '.git', '.idea', '.vscode',
    'dist', 'build', 'out', '.next', '.turbo',
    '.venv', 'venv', '.tox', '__pycache__',
})

# Files written by repomind itself
OWN_FILES = frozenset({INDEX_FILENAME, VECTOR_INDEX_FILENAME})


@dataclass
class FileRead:
    """Outcome of reading one file: either its content or why it was skipped."""
    path: str
    content: Optional[str] = None
    skip_reason: Optional[WalkReadError] = None

    @property
    def ok(self) -> bool:
        return self.skip_reason is None


def read_file(file_path: Union[str, Path]) -> FileRead:
    """Read a file as UTF-8 text without ever raising.

    Undecodable bytes are replaced and line endings are kept as they are on
    disk, so character offsets stay comparable between reads.
    """
    try:
        with open(file_path, 'r', encoding='utf-8', errors='replace', newline='') as f:
            return FileRead(path=str(file_path), content=f.read())
    except OSError as e:
        logger.debug(f"Skipping unreadable file {file_path}: {e}")
        return FileRead(path=str(file_path), skip_reason=WalkReadError(str(file_path), e))


def normalize_extensions(extensions: Iterable[str]) -> List[str]:
    """Lower-case extensions, add a missing leading dot and drop duplicates."""
    normalized = []
    seen = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        if not ext.startswith('.'):
            ext = '.' + ext
        if ext not in seen:
            seen.add(ext)
            normalized.append(ext)
    return normalized


def _read_gitignore(root: Path) -> Optional[pathspec.PathSpec]:
    """Read the root .gitignore file, if there is one."""
    gitignore_path = root / '.gitignore'
    if not gitignore_path.is_file():
        return None
    try:
        with open(gitignore_path, 'r', encoding='utf-8') as f:
            return pathspec.GitIgnoreSpec.from_lines(f)
    except OSError as e:
        logger.warning(f"Could not read {gitignore_path}: {e}")
        return None


def walk_repository(root: Union[str, Path], extensions: Iterable[str],
                    respect_gitignore: bool = False) -> List[IndexEntry]:
    """Enumerate indexable files under ``root``.

    Args:
        root: Directory to walk
        extensions: Extension allowlist, compared case-insensitively
        respect_gitignore: Also skip paths matched by the root .gitignore

    Returns:
        IndexEntry list in walk order (directories and files visited by name)
    """
    root = Path(root)
    allowed = set(normalize_extensions(extensions))
    gitignore_spec = _read_gitignore(root) if respect_gitignore else None
    entries = []

    def on_error(error: OSError):
        logger.debug(f"Skipping unreadable directory: {WalkReadError(str(error.filename), error)}")

    for current, dirs, files in os.walk(root, onerror=on_error):
        rel_dir = Path(current).relative_to(root)

        kept_dirs = []
        for d in sorted(dirs):
            if d in DEFAULT_IGNORE_DIRS:
                continue
            if gitignore_spec and gitignore_spec.match_file((rel_dir / d).as_posix() + '/'):
                continue
            kept_dirs.append(d)
        dirs[:] = kept_dirs

        for name in sorted(files):
            if name in OWN_FILES:
                continue
            ext = os.path.splitext(name)[1].lower()
            if ext not in allowed:
                continue

            relative_path = (rel_dir / name).as_posix()
            if gitignore_spec and gitignore_spec.match_file(relative_path):
                continue

            try:
                st = os.lstat(os.path.join(current, name))
            except OSError as e:
                logger.debug(f"Skipping {relative_path}: {WalkReadError(relative_path, e)}")
                continue
            if not stat.S_ISREG(st.st_mode):
                continue

            entries.append(IndexEntry(path=relative_path, size=st.st_size, ext=ext))

    return entries


def build_index(root_dir: Union[str, Path], extra_extensions: Optional[Iterable[str]] = None,
                output_path: Optional[Union[str, Path]] = None,
                respect_gitignore: bool = False) -> RepositoryIndex:
    """Walk a repository and persist the resulting index as JSON.

    Args:
        root_dir: Repository root; resolved to an absolute path before walking
        extra_extensions: Extensions indexed on top of DEFAULT_CODE_EXTENSIONS
        output_path: Index file location (defaults to <root>/.repomind-index.json)
        respect_gitignore: Also skip paths matched by the root .gitignore

    Returns:
        The RepositoryIndex that was written

    Raises:
        IndexWriteError: If the index file could not be written; the built
            index is attached to the error
    """
    root = Path(root_dir).resolve()
    if not root.is_dir():
        raise ValueError(f"Repository path does not exist: {root}")

    extensions = normalize_extensions(list(extra_extensions or []) + list(DEFAULT_CODE_EXTENSIONS))
    logger.info(f"Indexing {root} ({len(extensions)} extensions)")

    entries = walk_repository(root, extensions, respect_gitignore=respect_gitignore)
    index = RepositoryIndex(root=str(root), entries=entries)

    target = Path(output_path) if output_path else root / INDEX_FILENAME
    try:
        target.write_text(index.to_json(), encoding='utf-8')
    except OSError as e:
        raise IndexWriteError(str(target), index, e) from e

    logger.info(f"Indexed {len(entries)} files into {target}")
    return index


def load_index(index_path: Union[str, Path]) -> RepositoryIndex:
    """Load a persisted index.

    Raises:
        OSError: If the file cannot be read
        pydantic.ValidationError: If the content is not a valid index
    """
    return RepositoryIndex.from_json(Path(index_path).read_text(encoding='utf-8'))


def find_index_file(start_dir: Union[str, Path]) -> Optional[Path]:
    """Search ``start_dir`` and its ancestors for an index file.

    Stops at the filesystem root and returns None when nothing is found.
    """
    current = Path(start_dir).resolve()
    while True:
        candidate = current / INDEX_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent
