"""Parsed form of a source string: local path or remote git repository."""

import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import urlparse

_REMOTE_SCHEMES = ("http", "https", "ssh", "git", "git+ssh", "ssh+git")
_SCP_LIKE_RE = re.compile(r"^(?:[^@/]+@)?([^:/]+):(?!//)(.+)$")


@dataclass(frozen=True)
class RemoteReference:
    """A source reference.

    Attributes:
        raw: The source string as given by the user, used as the git url.
        host: Remote host, or None for a local filesystem source.
        path: Repository path on the host, or the local filesystem path.
    """

    raw: str
    host: Optional[str]
    path: Path

    @property
    def is_remote(self) -> bool:
        return self.host is not None

    def __str__(self) -> str:
        return self.raw


def _repository_path(path: str) -> Path:
    path = path.strip("/")
    if path.endswith(".git"):
        path = path[:-4]
    parts = PurePosixPath(path).parts
    if not parts:
        raise ValueError("remote source has no repository path")
    if ".." in parts:
        raise ValueError(f"repository path must not contain '..': {path}")
    return Path(*parts)


def parse_source_uri(raw: str) -> RemoteReference:
    """
    Parse a source string into a RemoteReference.

    Examples:
        https://github.com/user/repo.git -> host github.com, path user/repo
        git@github.com:user/repo.git     -> host github.com, path user/repo
        ./templates/foo                  -> local, path ./templates/foo
        file:///srv/templates            -> local, path /srv/templates

    Raises:
        ValueError: if raw is empty, or a remote source has no repository path
            or one containing '..'
    """
    if raw is None or not raw.strip():
        raise ValueError("source must be a non-empty string")
    raw = raw.strip()

    if raw.startswith("file://"):
        return RemoteReference(raw=raw, host=None, path=Path(raw[len("file://") :]))

    parsed = urlparse(raw)
    if parsed.scheme in _REMOTE_SCHEMES and parsed.hostname:
        # netloc without userinfo, keeping an explicit port
        host = parsed.netloc.rsplit("@", 1)[-1]
        return RemoteReference(raw=raw, host=host, path=_repository_path(parsed.path))

    # scp-like syntax (git@host:path), but not a Windows drive letter
    scp_match = _SCP_LIKE_RE.match(raw)
    if scp_match and len(scp_match.group(1)) > 1:
        host, path = scp_match.groups()
        return RemoteReference(raw=raw, host=host, path=_repository_path(path))

    return RemoteReference(raw=raw, host=None, path=Path(raw).expanduser())
