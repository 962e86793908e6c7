"""
Exception classes for source retrieval and caching.
"""

from pathlib import Path
from typing import Optional


class SourceCacheError(Exception):
    """Base exception for all source retrieval errors."""

    pass


class RetrievalError(SourceCacheError):
    """Raised when cloning, fetching, merging or checking out a source fails."""

    def __init__(
        self,
        destination: Path,
        url: str,
        revision: str,
        cause: Optional[BaseException] = None,
        message: str = "",
    ):
        self.destination = Path(destination)
        self.url = url
        self.revision = revision
        self.cause = cause
        text = f"Failed to retrieve {url} (rev: {revision}) into {destination}"
        if message:
            text = f"{text}: {message}"
        elif cause is not None:
            text = f"{text}: {cause}"
        super().__init__(text)


class MergeConflictError(RetrievalError):
    """Raised when fetched history cannot be merged into the cached working copy."""

    def __init__(
        self,
        destination: Path,
        url: str,
        revision: str,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(
            destination,
            url,
            revision,
            cause,
            message="merge of the fetched revision conflicts with the cached copy",
        )


class CreateFolderError(RetrievalError):
    """Raised when a directory needed for retrieval cannot be created."""

    def __init__(
        self,
        path: Path,
        url: str,
        revision: str,
        cause: Optional[BaseException] = None,
    ):
        self.path = Path(path)
        super().__init__(
            path, url, revision, cause, message=f"could not create folder {path}"
        )


class RemoveFolderError(SourceCacheError):
    """Raised when a cached folder cannot be removed."""

    def __init__(self, path: Path, cause: Optional[BaseException] = None):
        self.path = Path(path)
        self.cause = cause
        message = f"Could not remove folder {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ApplicationPathNotFoundError(SourceCacheError):
    """Raised when the per-application cache directory cannot be determined."""

    def __init__(self, message: str = ""):
        super().__init__(
            message or "Could not determine the application cache directory"
        )


class LocalPathNotFoundError(SourceCacheError):
    """Raised when the resolved source path does not exist on disk."""

    def __init__(self, path: Path, uri: str, subfolder: Optional[Path] = None):
        self.path = Path(path)
        self.uri = uri
        self.subfolder = subfolder
        message = f"Path {path} not found for source {uri}"
        if subfolder is not None:
            message = f"{message} (subfolder: {subfolder})"
        super().__init__(message)


class FilesystemError(SourceCacheError):
    """Raised on generic filesystem failures, e.g. canonicalizing a local path."""

    def __init__(self, path: Path, cause: Optional[BaseException] = None):
        self.path = Path(path)
        self.cause = cause
        message = f"Filesystem error on {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ToolNotConfiguredError(SourceCacheError):
    """Raised when no merge or diff tool command is configured in git."""

    def __init__(self, kind: str, message: str = ""):
        self.kind = kind
        if message:
            super().__init__(f"No {kind} tool configured: {message}")
        else:
            super().__init__(f"No {kind} tool configured")


class InvalidCachePathError(SourceCacheError, ValueError):
    """Raised when a cache key would map outside of the cache root."""

    def __init__(self, value: str, reason: str):
        self.value = value
        super().__init__(f"Invalid cache key component {value!r}: {reason}")
