"""
VaultMCP Document Store
-----------------------
Filesystem-backed vault: a directory tree of notes addressed by
vault-relative POSIX paths.

Lookups return a tagged node (FileNode | DirectoryNode | NotFound) so callers
branch on the node kind instead of probing the filesystem twice. Reads go
through an mtime-keyed cache; writes invalidate the cached entry.
"""

import os
import shutil
import logging
import threading
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Tuple, Union

from vaultmcp.errors import CollaboratorError

logger = logging.getLogger("VaultMCP.store")

MARKDOWN_EXTENSION = "md"
_HIDDEN_PREFIX = "."


@dataclass(frozen=True)
class FileStat:
    ctime: float
    mtime: float
    size: int


@dataclass(frozen=True)
class FileNode:
    path: str
    stat: FileStat

    @property
    def name(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def basename(self) -> str:
        return PurePosixPath(self.path).stem

    @property
    def extension(self) -> str:
        return PurePosixPath(self.path).suffix.lstrip(".")


@dataclass(frozen=True)
class DirectoryNode:
    path: str


@dataclass(frozen=True)
class NotFound:
    path: str


StoreNode = Union[FileNode, DirectoryNode, NotFound]


class VaultStore:
    """Read/write access to a vault rooted at `root`."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).expanduser().resolve()
        self._cache: Dict[str, Tuple[float, int, str]] = {}
        self._cache_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Path handling
    # ------------------------------------------------------------------

    def _resolve(self, rel_path: str) -> Path:
        cleaned = (rel_path or "").replace("\\", "/").strip("/")
        candidate = (self.root / cleaned).resolve()
        if candidate != self.root and self.root not in candidate.parents:
            raise CollaboratorError(f"Path escapes the vault: {rel_path}", path=rel_path)
        return candidate

    def _relative(self, absolute: Path) -> str:
        return absolute.relative_to(self.root).as_posix()

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    def _walk(self):
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith(_HIDDEN_PREFIX))
            base = Path(dirpath)
            if base != self.root:
                yield DirectoryNode(self._relative(base))
            for filename in sorted(filenames):
                if filename.startswith(_HIDDEN_PREFIX):
                    continue
                node = self.stat_node(self._relative(base / filename))
                if isinstance(node, FileNode):
                    yield node

    def list_all(self) -> List[Union[FileNode, DirectoryNode]]:
        """Every file and folder below the root, hidden entries excluded."""
        return list(self._walk())

    def list_markdown_files(self) -> List[FileNode]:
        return [
            node for node in self._walk()
            if isinstance(node, FileNode) and node.extension == MARKDOWN_EXTENSION
        ]

    def list_children(self, rel_path: str) -> List[Union[FileNode, DirectoryNode]]:
        directory = self._resolve(rel_path)
        children: List[Union[FileNode, DirectoryNode]] = []
        for entry in sorted(directory.iterdir(), key=lambda p: p.name):
            if entry.name.startswith(_HIDDEN_PREFIX):
                continue
            node = self.stat_node(self._relative(entry))
            if not isinstance(node, NotFound):
                children.append(node)
        return children

    # ------------------------------------------------------------------
    # Node lookup
    # ------------------------------------------------------------------

    def stat_node(self, rel_path: str) -> StoreNode:
        target = self._resolve(rel_path)
        rel = self._relative(target) if target != self.root else ""
        try:
            st = target.stat()
        except FileNotFoundError:
            return NotFound(rel_path)
        except OSError as exc:
            raise CollaboratorError(f"Cannot stat {rel_path}: {exc}", path=rel_path) from exc
        if target.is_dir():
            return DirectoryNode(rel)
        return FileNode(rel, FileStat(ctime=st.st_ctime, mtime=st.st_mtime, size=st.st_size))

    def stat(self, rel_path: str) -> Optional[FileStat]:
        node = self.stat_node(rel_path)
        if isinstance(node, FileNode):
            return node.stat
        return None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read(self, rel_path: str) -> str:
        target = self._resolve(rel_path)
        try:
            return target.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise CollaboratorError(f"File not found: {rel_path}", path=rel_path) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise CollaboratorError(f"Cannot read {rel_path}: {exc}", path=rel_path) from exc

    def cached_read(self, rel_path: str) -> str:
        """Read a file, reusing the cached text while mtime and size are unchanged."""
        target = self._resolve(rel_path)
        try:
            st = target.stat()
        except OSError as exc:
            raise CollaboratorError(f"File not found: {rel_path}", path=rel_path) from exc
        key = self._relative(target)
        with self._cache_lock:
            cached = self._cache.get(key)
        if cached is not None and cached[0] == st.st_mtime and cached[1] == st.st_size:
            return cached[2]
        text = self.read(rel_path)
        with self._cache_lock:
            self._cache[key] = (st.st_mtime, st.st_size, text)
        return text

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _invalidate(self, rel_path: str) -> None:
        with self._cache_lock:
            self._cache.pop(rel_path.strip("/"), None)

    def create(self, rel_path: str, content: str) -> None:
        target = self._resolve(rel_path)
        if target.exists():
            raise CollaboratorError(f"File already exists: {rel_path}", path=rel_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise CollaboratorError(f"Cannot create {rel_path}: {exc}", path=rel_path) from exc
        self._invalidate(self._relative(target))
        logger.info("Created %s", rel_path)

    def modify(self, rel_path: str, content: str) -> None:
        node = self.stat_node(rel_path)
        if not isinstance(node, FileNode):
            raise CollaboratorError(f"File not found: {rel_path}", path=rel_path)
        try:
            self._resolve(rel_path).write_text(content, encoding="utf-8")
        except OSError as exc:
            raise CollaboratorError(f"Cannot write {rel_path}: {exc}", path=rel_path) from exc
        self._invalidate(node.path)

    def delete(self, rel_path: str) -> None:
        node = self.stat_node(rel_path)
        target = self._resolve(rel_path)
        if target == self.root:
            raise CollaboratorError("Refusing to delete the vault root", path=rel_path)
        try:
            if isinstance(node, FileNode):
                target.unlink()
                self._invalidate(node.path)
            elif isinstance(node, DirectoryNode):
                shutil.rmtree(target)
                with self._cache_lock:
                    prefix = node.path + "/"
                    for key in [k for k in self._cache if k.startswith(prefix)]:
                        del self._cache[key]
            else:
                raise CollaboratorError(f"File or directory not found: {rel_path}", path=rel_path)
        except OSError as exc:
            raise CollaboratorError(f"Cannot delete {rel_path}: {exc}", path=rel_path) from exc
        logger.info("Deleted %s", rel_path)
