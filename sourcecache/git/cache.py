"""
Git source caching with a host/path/revision directory structure.

Cache Structure Example:
    ~/.cache/sourcecache/git/
    ├── github.com/
    │   └── org/
    │       └── template/
    │           ├── master/        # working copy at branch master
    │           │   ├── .git/
    │           │   └── ...
    │           └── v1.0.0/        # working copy at tag v1.0.0
    └── no_host/
        └── ...

One working copy exists per (host, path, revision). The subfolder of a source
location is not part of the key: several subfolders of the same revision share
a working copy, the subfolder is only appended to the resolved path.

Each working copy is a regular git checkout and can be used independently.

Configuration:
    The cache root is configurable via the sourcecache config file:
        [dirs]
        cache_root = ~/custom/cache

    Or via the XDG_CACHE_HOME environment variable on Linux.
"""

import functools
import logging
import shutil
from pathlib import Path
from typing import List, Optional

from dulwich import porcelain

from sourcecache.config import get_cache_base
from sourcecache.errors import (
    FilesystemError,
    InvalidCachePathError,
    RemoveFolderError,
)
from sourcecache.model import RemoteReference, SourceLocation

logger = logging.getLogger(__name__)

NO_HOST = "no_host"


@functools.lru_cache(maxsize=None)
def find_cache_root() -> Path:
    """
    Get the root of the git source cache (resolved once per process).

    Raises:
        ApplicationPathNotFoundError: if the application cache directory
            cannot be determined
    """
    return get_cache_base() / "git"


def _cache_key_part(value, what: str, allow_absolute: bool = False) -> Path:
    path = Path(value)
    if path.is_absolute() or path.anchor:
        if not allow_absolute:
            raise InvalidCachePathError(str(value), f"{what} must be relative")
        path = path.relative_to(path.anchor)
    if not path.parts:
        raise InvalidCachePathError(str(value), f"{what} is empty")
    if ".." in path.parts:
        raise InvalidCachePathError(str(value), f"{what} must not contain '..'")
    return path


def cache_dir_for(
    uri: RemoteReference, rev: str, cache_root: Optional[Path] = None
) -> Path:
    """
    Compute the cache directory of a remote reference at a revision.

    No I/O is performed besides resolving the default cache root and checking
    that the result stays inside it.

    Examples:
        (github.com, org/tpl, master) -> <cache_root>/github.com/org/tpl/master
        (None, org/tpl, v1)           -> <cache_root>/no_host/org/tpl/v1
        (None, /srv/tpl, v1)          -> <cache_root>/no_host/srv/tpl/v1

    Raises:
        InvalidCachePathError: if a component is empty, contains '..', or the
            directory would end up outside of cache_root
    """
    if cache_root is None:
        cache_root = find_cache_root()

    host = uri.host or NO_HOST
    if len(Path(host).parts) != 1 or host in (".", ".."):
        raise InvalidCachePathError(host, "host must be a single path component")
    path = (
        cache_root
        / host
        / _cache_key_part(uri.path, "repository path", allow_absolute=True)
        / _cache_key_part(rev, "revision")
    )

    # symlinks inside the cache must not lead the working copy elsewhere
    if not path.resolve().is_relative_to(cache_root.resolve()):
        raise InvalidCachePathError(str(path), f"outside of cache root {cache_root}")
    return path


def as_local_path(location: SourceLocation, cache_root: Optional[Path] = None) -> Path:
    """
    Local directory holding the content of a source location.

    Local sources are canonicalized, remote ones map to their cache directory.
    The subfolder, if any, is appended in both cases.

    Raises:
        FilesystemError: if a local source path cannot be canonicalized
    """
    if location.uri.is_remote:
        path = cache_dir_for(location.uri, location.rev, cache_root)
    else:
        try:
            path = location.uri.path.resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise FilesystemError(location.uri.path, e) from e

    if location.subfolder is not None:
        path = path / location.subfolder
    return path


def _read_branch(repo) -> str:
    head = repo.refs.read_ref(b"HEAD")
    if head and head.startswith(b"ref: refs/heads/"):
        return head[len(b"ref: refs/heads/") :].decode("utf-8")
    return "detached"


def describe_cache(cache_root: Optional[Path] = None) -> List[dict]:
    """
    Describe the cached working copies.

    Args:
        cache_root: Cache root (defaults to find_cache_root())

    Returns:
        List of dictionaries with working copy information:
        - repo_path: Relative path in cache (e.g., "github.com/org/tpl/master")
        - url: origin URL
        - head: Current HEAD commit hash
        - branch: Current branch name (or "detached")
    """
    if cache_root is None:
        cache_root = find_cache_root()

    if not cache_root.exists():
        return []

    results = []
    for git_dir in sorted(cache_root.rglob(".git")):
        if not git_dir.is_dir():
            continue

        repo_path = git_dir.parent
        if repo_path.name.endswith(".part"):
            continue

        repo_info = {
            "repo_path": repo_path.relative_to(cache_root).as_posix(),
            "url": "unknown",
            "head": "unknown",
            "branch": "unknown",
        }
        try:
            with porcelain.open_repo_closing(str(repo_path)) as repo:
                try:
                    remote_url = repo.get_config().get((b"remote", b"origin"), b"url")
                    repo_info["url"] = remote_url.decode("utf-8")
                except KeyError:
                    pass
                repo_info["head"] = repo.head().decode("ascii")
                repo_info["branch"] = _read_branch(repo)
        except Exception as e:
            logger.debug(f"Failed to read repo at {repo_path}: {e}")

        results.append(repo_info)

    return results


def clean_cache(cache_root: Optional[Path] = None) -> bool:
    """
    Remove every cached working copy.

    Returns:
        True if a cache directory was removed

    Raises:
        RemoveFolderError: if the cache cannot be removed
    """
    if cache_root is None:
        cache_root = find_cache_root()

    if not cache_root.exists():
        return False

    logger.info(f"Removing cache at {cache_root}")
    try:
        shutil.rmtree(cache_root)
    except OSError as e:
        raise RemoveFolderError(cache_root, e) from e
    return True
