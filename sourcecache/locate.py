"""Resolve a source location into a ready-to-read local directory."""

import logging
import shutil
from pathlib import Path
from typing import Optional

from sourcecache.errors import LocalPathNotFoundError, RemoveFolderError, RetrievalError
from sourcecache.git.cache import as_local_path, cache_dir_for
from sourcecache.git.retrieve import retrieve
from sourcecache.model import SourceLocation

logger = logging.getLogger(__name__)


def download(
    location: SourceLocation,
    offline: bool = False,
    cache_root: Optional[Path] = None,
) -> Path:
    """
    Make the content of a source location available locally.

    Remote sources are cloned or updated in the cache unless offline; local
    sources never touch the network. A cache directory whose retrieval failed
    is removed, before the retrieval lock is released, so that it is never
    reused half-populated.

    Args:
        location: The source to resolve
        offline: Skip network access and use the cache as is
        cache_root: Cache root (defaults to the application cache)

    Returns:
        The resolved directory, subfolder included

    Raises:
        RetrievalError: if cloning or updating the cache failed
        RemoveFolderError: if the cache directory of a failed retrieval could
            not be removed
        LocalPathNotFoundError: if the resolved directory does not exist
        FilesystemError: if a local source path cannot be canonicalized
        InvalidCachePathError: if the cache directory would lie outside of the
            cache root
    """
    if not offline and location.uri.is_remote:
        remote_path = cache_dir_for(location.uri, location.rev, cache_root)

        def discard(error: RetrievalError) -> None:
            logger.warning(
                f"Failed to download {location} into {remote_path}: {error}",
                extra={"src": str(location), "path": str(remote_path), "error": error},
            )
            if remote_path.exists():
                try:
                    shutil.rmtree(remote_path)
                except OSError as rm_error:
                    raise RemoveFolderError(remote_path, rm_error) from error

        retrieve(
            remote_path,
            location.uri.raw,
            location.rev,
            credentials=location.credentials,
            verify_tls=not location.insecure_certificate,
            use_proxy=not location.disable_proxy,
            on_failure=discard,
        )

    path = as_local_path(location, cache_root)
    if not path.exists():
        raise LocalPathNotFoundError(path, location.uri.raw, location.subfolder)
    return path
