"""
Git operations for sourcecache.

This module clones and updates git sources in a cache laid out as
{cache_root}/{host}/{path}/{revision}/, one working copy per revision.
"""

from .auth import (
    CredentialHelperChain,
    CredentialStrategy,
    ExplicitCredentials,
    TransportOptions,
    credential_strategy,
)
from .cache import (
    as_local_path,
    cache_dir_for,
    clean_cache,
    describe_cache,
    find_cache_root,
)
from .retrieve import find_cmd_tool, is_commit_hash, retrieve

__all__ = [
    "CredentialHelperChain",
    "CredentialStrategy",
    "ExplicitCredentials",
    "TransportOptions",
    "as_local_path",
    "cache_dir_for",
    "clean_cache",
    "credential_strategy",
    "describe_cache",
    "find_cache_root",
    "find_cmd_tool",
    "is_commit_hash",
    "retrieve",
]
