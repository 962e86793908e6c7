"""
Retrieval of git sources into cached working copies.

A destination directory is either absent, in which case the source is cloned,
or an existing working copy, which is force-checked-out at the requested
revision and then updated from origin (fetch + merge of FETCH_HEAD). A commit
hash revision never moves: origin is fetched and the commit checked out again.

    retrieve(Path("~/.cache/sourcecache/git/github.com/org/tpl/master"),
             "https://github.com/org/tpl.git", "master")

Fresh clones are made in a sibling "<destination>.part" directory and renamed
into place once complete. Retrievals of the same destination are serialized
with a "<destination>.lock" file lock.
"""

import logging
import re
import shutil
from pathlib import Path
from typing import Callable, Optional, Tuple

from filelock import FileLock
from git import Git, Repo
from git.exc import GitCommandError, GitError

from sourcecache.errors import (
    CreateFolderError,
    MergeConflictError,
    RetrievalError,
    ToolNotConfiguredError,
)
from sourcecache.git.auth import TransportOptions, credential_strategy

logger = logging.getLogger(__name__)


def is_commit_hash(ref: str) -> bool:
    """
    Check if a reference looks like a commit hash.

    Args:
        ref: Git reference (could be branch, tag, or commit hash)

    Returns:
        True if ref appears to be a commit hash, False otherwise
    """
    # Commit hashes are typically 7-40 hex characters
    return bool(re.match(r"^[a-f0-9]{7,40}$", ref, re.IGNORECASE))


def _sibling(destination: Path, suffix: str) -> Path:
    # not with_suffix(): revisions like "v1.2" contain dots
    return destination.parent / f"{destination.name}{suffix}"


def retrieve(
    destination: Path,
    url: str,
    revision: str,
    credentials: Optional[Tuple[str, str]] = None,
    verify_tls: bool = True,
    use_proxy: bool = True,
    on_failure: Optional[Callable[[RetrievalError], None]] = None,
) -> None:
    """
    Clone or update a git repository at a revision into destination.

    Args:
        destination: Working copy directory (cloned when absent, updated otherwise)
        url: Git repository URL or path
        revision: Branch, tag or commit-ish to check out
        credentials: Optional (username, password); the git credential helpers
            are used when omitted
        verify_tls: Verify TLS certificates
        use_proxy: Use proxy settings detected from the environment
        on_failure: Called with the error of a failed clone or update while the
            destination lock is still held, e.g. to discard the destination

    Raises:
        RetrievalError: if any step fails; MergeConflictError when the fetched
            revision cannot be merged, CreateFolderError when the cache folder
            cannot be created
    """
    destination = Path(destination)
    transport = TransportOptions(
        credentials=credential_strategy(credentials),
        verify_tls=verify_tls,
        use_proxy=use_proxy,
    )

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        error = CreateFolderError(destination.parent, url, revision, e)
        if on_failure is not None:
            on_failure(error)
        raise error from e

    with FileLock(str(_sibling(destination, ".lock"))):
        try:
            if destination.exists():
                _synchronize(destination, url, revision, transport)
            else:
                _clone(destination, url, revision, transport)
        except RetrievalError as e:
            if on_failure is not None:
                on_failure(e)
            raise


def _clone(
    destination: Path, url: str, revision: str, transport: TransportOptions
) -> None:
    partial = _sibling(destination, ".part")
    logger.info(f"Cloning {url} (rev: {revision}) into {destination}")
    env = transport.environment()
    try:
        if partial.exists():
            logger.debug(f"Removing leftover partial clone {partial}")
            shutil.rmtree(partial)

        if is_commit_hash(revision):
            with Repo.clone_from(
                url, partial.as_posix(), env=env, no_checkout=True
            ) as repo:
                _checkout(repo, revision)
        else:
            with Repo.clone_from(url, partial.as_posix(), env=env, branch=revision):
                pass
        partial.rename(destination)
    except (GitError, OSError) as e:
        shutil.rmtree(partial, ignore_errors=True)
        raise RetrievalError(destination, url, revision, e) from e


def _synchronize(
    destination: Path, url: str, revision: str, transport: TransportOptions
) -> None:
    logger.info(f"Updating {destination} from {url} (rev: {revision})")
    try:
        with Repo(destination.as_posix()) as repo:
            with repo.git.custom_environment(**transport.environment()):
                if is_commit_hash(revision):
                    # a commit cannot be fetched by an abbreviated hash
                    repo.git.fetch("--force", "--tags", "origin")
                    _checkout(repo, revision)
                else:
                    _checkout(repo, revision)
                    _pull(repo, destination, url, revision)
    except RetrievalError:
        raise
    except (GitError, OSError) as e:
        raise RetrievalError(destination, url, revision, e) from e


def _checkout(repo: Repo, revision: str) -> None:
    """Force checkout revision, dropping local changes, untracked and ignored files."""
    repo.git.checkout("--force", revision)
    repo.git.clean("-ffdx")


def _pull(repo: Repo, destination: Path, url: str, revision: str) -> None:
    repo.git.fetch("--force", "--tags", "origin", revision)

    try:
        repo.git.merge("--no-edit", "FETCH_HEAD")
    except GitCommandError as e:
        conflicted = bool(repo.git.diff("--name-only", "--diff-filter=U").strip())
        _cleanup_state(repo)
        if conflicted:
            raise MergeConflictError(destination, url, revision, e) from e
        raise

    _cleanup_state(repo)


def _cleanup_state(repo: Repo) -> None:
    """Drop in-progress merge or rebase state left in the working copy."""
    git_dir = Path(repo.git_dir)
    if (git_dir / "MERGE_HEAD").exists():
        repo.git.merge("--abort")
    if (git_dir / "rebase-merge").exists() or (git_dir / "rebase-apply").exists():
        repo.git.rebase("--abort")


def find_cmd_tool(kind: str) -> str:
    """
    Find the command of the merge or diff tool configured in git.

    Args:
        kind: "merge" or "diff"

    Returns:
        The `<kind>tool.<tool>.cmd` value for the configured `<kind>.tool`

    Raises:
        ToolNotConfiguredError: if either setting is missing
    """
    g = Git()
    try:
        tool = g.config("--get", f"{kind}.tool").strip()
        return g.config("--get", f"{kind}tool.{tool}.cmd").strip()
    except GitCommandError as e:
        raise ToolNotConfiguredError(kind, str(e).strip()) from e
