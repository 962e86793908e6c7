"""Tests for the SourceLocation value object."""

from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest
from pydantic import ValidationError

from sourcecache.model import SourceLocation, parse_source_uri


@pytest.fixture
def location():
    return SourceLocation(
        uri=parse_source_uri("https://github.com/org/tpl.git"),
        rev="{{ version }}",
        subfolder=Path("{{ flavor }}/template"),
    )


@pytest.mark.short
class TestSourceLocation:
    def test_defaults(self):
        loc = SourceLocation(uri=parse_source_uri("/srv/tpl"))
        assert loc.rev == "master"
        assert loc.subfolder is None
        assert loc.credentials is None
        assert loc.insecure_certificate is False
        assert loc.disable_proxy is False

    def test_credentials_require_both(self):
        uri = parse_source_uri("https://github.com/org/tpl.git")
        assert SourceLocation(uri=uri, username="alice").credentials is None
        assert SourceLocation(uri=uri, password="pw").credentials is None
        assert SourceLocation(uri=uri, username="alice", password="pw").credentials == (
            "alice",
            "pw",
        )

    def test_immutable(self, location):
        with pytest.raises(FrozenInstanceError):
            location.rev = "develop"

    def test_transforms_values(self, location):
        values = {"{{ version }}": "v1.2.0", "{{ flavor }}/template": "rust/template"}
        rendered = location.transforms_values(lambda s: values.get(s, s))

        assert rendered.rev == "v1.2.0"
        assert rendered.subfolder == Path("rust/template")
        assert rendered.uri == location.uri
        # original untouched
        assert location.rev == "{{ version }}"

    def test_transforms_values_without_subfolder(self):
        loc = SourceLocation(uri=parse_source_uri("/srv/tpl"), rev="main")
        rendered = loc.transforms_values(str.upper)
        assert rendered.rev == "MAIN"
        assert rendered.subfolder is None

    @pytest.mark.parametrize("rev", ["..", "../master", "v1/../..", "/tmp", ".", ""])
    def test_unusable_revision_rejected(self, rev):
        with pytest.raises(ValueError):
            SourceLocation(uri=parse_source_uri("https://github.com/org/tpl.git"), rev=rev)

    def test_rendered_revision_is_checked(self, location):
        with pytest.raises(ValueError):
            location.transforms_values(lambda s: "..")

    def test_str(self, location):
        loc = SourceLocation(uri=parse_source_uri("/srv/tpl"), rev="v1")
        assert str(loc) == "/srv/tpl (rev: v1)"
        assert str(location) == (
            "https://github.com/org/tpl.git (rev: {{ version }}, "
            "subfolder: {{ flavor }}/template)"
        )


@pytest.mark.short
class TestSourceLocationLoading:
    def test_from_yaml(self):
        loc = SourceLocation.from_yaml(
            """
uri: git@github.com:org/tpl.git
rev: v2
subfolder: templates/basic
disable_proxy: true
"""
        )
        assert loc.uri.host == "github.com"
        assert loc.rev == "v2"
        assert loc.subfolder == Path("templates/basic")
        assert loc.disable_proxy is True
        assert loc.insecure_certificate is False

    def test_from_mapping_defaults(self):
        loc = SourceLocation.from_mapping({"uri": "/srv/tpl"})
        assert loc.rev == "master"
        assert loc.uri.host is None

    def test_unknown_keys_rejected(self):
        with pytest.raises(ValidationError):
            SourceLocation.from_mapping({"uri": "/srv/tpl", "branch": "main"})

    def test_empty_rev_rejected(self):
        with pytest.raises(ValidationError):
            SourceLocation.from_mapping({"uri": "/srv/tpl", "rev": " "})

    def test_yaml_must_be_mapping(self):
        with pytest.raises(ValueError):
            SourceLocation.from_yaml("- just\n- a list\n")

    def test_parent_revision_rejected_in_mapping(self):
        with pytest.raises(ValidationError):
            SourceLocation.from_mapping({"uri": "https://github.com/org/tpl", "rev": ".."})
