from .source import DEFAULT_REVISION, SourceLocation, SourceLocationSpec
from .uri import RemoteReference, parse_source_uri

__all__ = [
    "DEFAULT_REVISION",
    "RemoteReference",
    "SourceLocation",
    "SourceLocationSpec",
    "parse_source_uri",
]
