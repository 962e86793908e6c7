"""Resolve template sources (local paths or git repositories) into local directories."""

__version__ = "0.3.0"

from sourcecache.errors import (  # noqa: E402
    ApplicationPathNotFoundError,
    CreateFolderError,
    FilesystemError,
    InvalidCachePathError,
    LocalPathNotFoundError,
    MergeConflictError,
    RemoveFolderError,
    RetrievalError,
    SourceCacheError,
    ToolNotConfiguredError,
)
from sourcecache.locate import download  # noqa: E402
from sourcecache.model import RemoteReference, SourceLocation, parse_source_uri  # noqa: E402

__all__ = [
    "ApplicationPathNotFoundError",
    "CreateFolderError",
    "FilesystemError",
    "InvalidCachePathError",
    "LocalPathNotFoundError",
    "MergeConflictError",
    "RemoteReference",
    "RemoveFolderError",
    "RetrievalError",
    "SourceCacheError",
    "SourceLocation",
    "ToolNotConfiguredError",
    "download",
    "parse_source_uri",
]
