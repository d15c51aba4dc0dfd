from vaultmcp.store.vault import (
    DirectoryNode,
    FileNode,
    FileStat,
    NotFound,
    StoreNode,
    VaultStore,
)
from vaultmcp.store.metadata import NoteMetadata, extract_metadata

__all__ = [
    "VaultStore",
    "StoreNode",
    "FileNode",
    "DirectoryNode",
    "NotFound",
    "FileStat",
    "NoteMetadata",
    "extract_metadata",
]
