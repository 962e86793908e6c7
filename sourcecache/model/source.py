"""Source location: where template content comes from and how to fetch it."""

from dataclasses import dataclass, replace
from pathlib import Path, PurePath
from typing import Any, Callable, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

from .uri import RemoteReference, parse_source_uri

DEFAULT_REVISION = "master"


def check_revision(rev: str) -> str:
    """Reject revisions that cannot name a directory of the cache."""
    if not rev or not rev.strip():
        raise ValueError("revision must be a non-empty string")
    path = PurePath(rev)
    if path.anchor:
        raise ValueError(f"revision must not be an absolute path: {rev}")
    if not path.parts or ".." in path.parts:
        raise ValueError(f"revision must not contain '..' or be '.': {rev}")
    return rev


class SourceLocationSpec(BaseModel):
    """Validation model for source locations loaded from YAML or mappings."""

    model_config = ConfigDict(extra="forbid")

    uri: str
    rev: str = DEFAULT_REVISION
    username: Optional[str] = None
    password: Optional[str] = None
    subfolder: Optional[str] = None
    insecure_certificate: bool = False
    disable_proxy: bool = False

    @field_validator("uri", "rev")
    @classmethod
    def validate_non_empty_string(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must be a non-empty string")
        return v

    @field_validator("rev")
    @classmethod
    def validate_revision(cls, v: str) -> str:
        return check_revision(v)


@dataclass(frozen=True)
class SourceLocation:
    """
    Full description of a template source.

    Instances are immutable: transforms_values() returns a new instance.
    The subfolder is never part of the cache key, it is only appended to the
    resolved path.
    """

    uri: RemoteReference
    rev: str = DEFAULT_REVISION
    username: Optional[str] = None
    password: Optional[str] = None
    subfolder: Optional[Path] = None
    insecure_certificate: bool = False
    disable_proxy: bool = False

    def __post_init__(self):
        check_revision(self.rev)

    @property
    def credentials(self) -> Optional[Tuple[str, str]]:
        """(username, password) when both are set, None otherwise."""
        if self.username is not None and self.password is not None:
            return (self.username, self.password)
        return None

    def transforms_values(self, render: Callable[[str], str]) -> "SourceLocation":
        """Apply render to the revision and the subfolder."""
        subfolder = None
        if self.subfolder is not None:
            subfolder = Path(render(str(self.subfolder)))
        return replace(self, rev=render(self.rev), subfolder=subfolder)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "SourceLocation":
        """Build a SourceLocation from a mapping, rejecting unknown keys."""
        spec = SourceLocationSpec(**data)
        return cls(
            uri=parse_source_uri(spec.uri),
            rev=spec.rev,
            username=spec.username,
            password=spec.password,
            subfolder=Path(spec.subfolder) if spec.subfolder else None,
            insecure_certificate=spec.insecure_certificate,
            disable_proxy=spec.disable_proxy,
        )

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "SourceLocation":
        """Alternative constructor that loads from YAML string"""
        data = yaml.safe_load(yaml_str)
        if not isinstance(data, dict):
            raise ValueError("source location YAML must be a mapping")
        return cls.from_mapping(data)

    def __str__(self) -> str:
        text = f"{self.uri.raw} (rev: {self.rev}"
        if self.subfolder is not None:
            text += f", subfolder: {self.subfolder}"
        return text + ")"
