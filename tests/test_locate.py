"""Tests for resolving source locations into local directories."""

from pathlib import Path
from unittest.mock import ANY, patch

import pytest

from sourcecache.errors import (
    InvalidCachePathError,
    LocalPathNotFoundError,
    RemoveFolderError,
    RetrievalError,
)
from sourcecache.locate import download
from sourcecache.model import RemoteReference, SourceLocation, parse_source_uri


def _remote_location(url, rev="master", subfolder=None, **kwargs):
    """A remote location whose git url is a local repository path."""
    uri = RemoteReference(raw=url, host="example.com", path=Path("org/tpl"))
    return SourceLocation(uri=uri, rev=rev, subfolder=subfolder, **kwargs)


@pytest.mark.short
class TestDownloadWithoutNetwork:
    def test_local_source_bypasses_retrieval(self, tmp_path):
        (tmp_path / "tpl" / "sub").mkdir(parents=True)
        location = SourceLocation(
            uri=parse_source_uri(str(tmp_path / "tpl")), subfolder=Path("sub")
        )

        with patch("sourcecache.locate.retrieve") as retrieve:
            path = download(location, offline=False, cache_root=tmp_path / "cache")

        retrieve.assert_not_called()
        assert path == (tmp_path / "tpl").resolve() / "sub"

    def test_offline_skips_retrieval(self, tmp_path):
        cache_root = tmp_path / "cache"
        cached = cache_root / "example.com" / "org" / "tpl" / "master"
        cached.mkdir(parents=True)

        with patch("sourcecache.locate.retrieve") as retrieve:
            path = download(
                _remote_location("https://example.com/org/tpl.git"),
                offline=True,
                cache_root=cache_root,
            )

        retrieve.assert_not_called()
        assert path == cached

    def test_missing_subfolder(self, tmp_path):
        (tmp_path / "tpl").mkdir()
        location = SourceLocation(
            uri=parse_source_uri(str(tmp_path / "tpl")), subfolder=Path("nope")
        )

        with pytest.raises(LocalPathNotFoundError) as excinfo:
            download(location)

        assert excinfo.value.uri == str(tmp_path / "tpl")
        assert excinfo.value.subfolder == Path("nope")
        assert excinfo.value.path == (tmp_path / "tpl").resolve() / "nope"

    def test_offline_without_cache(self, tmp_path):
        location = _remote_location("https://example.com/org/tpl.git")

        with pytest.raises(LocalPathNotFoundError) as excinfo:
            download(location, offline=True, cache_root=tmp_path)

        assert excinfo.value.uri == "https://example.com/org/tpl.git"
        assert excinfo.value.subfolder is None

    def test_retrieval_arguments(self, tmp_path):
        location = _remote_location(
            "https://example.com/org/tpl.git",
            rev="v1",
            username="alice",
            password="pw",
            insecure_certificate=True,
            disable_proxy=True,
        )
        expected = tmp_path / "example.com" / "org" / "tpl" / "v1"

        def fake_retrieve(destination, *args, **kwargs):
            destination.mkdir(parents=True)

        with patch("sourcecache.locate.retrieve", side_effect=fake_retrieve) as retrieve:
            path = download(location, cache_root=tmp_path)

        assert path == expected
        retrieve.assert_called_once_with(
            expected,
            "https://example.com/org/tpl.git",
            "v1",
            credentials=("alice", "pw"),
            verify_tls=False,
            use_proxy=False,
            on_failure=ANY,
        )

    def test_failed_retrieval_removes_cache_dir(self, tmp_path, capture_logs):
        location = _remote_location("https://example.com/org/tpl.git")
        cached = tmp_path / "example.com" / "org" / "tpl" / "master"

        def failing_retrieve(destination, url, revision, on_failure, **kwargs):
            destination.mkdir(parents=True)
            (destination / "partial.txt").write_text("half")
            error = RetrievalError(destination, url, revision, OSError("network down"))
            on_failure(error)
            raise error

        with patch("sourcecache.locate.retrieve", side_effect=failing_retrieve):
            with pytest.raises(RetrievalError) as excinfo:
                download(location, cache_root=tmp_path)

        assert not cached.exists()
        assert excinfo.value.destination == cached
        logs = capture_logs.getvalue()
        assert "Failed to download" in logs
        assert str(cached) in logs

    def test_cleanup_failure_supersedes_retrieval_error(self, tmp_path):
        location = _remote_location("https://example.com/org/tpl.git")

        def failing_retrieve(destination, url, revision, on_failure, **kwargs):
            destination.mkdir(parents=True)
            error = RetrievalError(destination, url, revision)
            on_failure(error)
            raise error

        with patch("sourcecache.locate.retrieve", side_effect=failing_retrieve):
            with patch(
                "sourcecache.locate.shutil.rmtree", side_effect=OSError("busy")
            ):
                with pytest.raises(RemoveFolderError) as excinfo:
                    download(location, cache_root=tmp_path)

        assert isinstance(excinfo.value.__cause__, RetrievalError)
        assert excinfo.value.path == tmp_path / "example.com/org/tpl/master"

    def test_cache_dir_outside_root_is_never_touched(self, tmp_path):
        cache_root = tmp_path / "cache"
        victim = tmp_path / "victim" / "master"
        victim.mkdir(parents=True)
        (victim / "keep.txt").write_text("precious\n")
        uri = RemoteReference(
            raw="https://example.com/../../victim",
            host="example.com",
            path=Path("../../victim"),
        )

        with patch("sourcecache.locate.retrieve") as retrieve:
            with pytest.raises(InvalidCachePathError):
                download(SourceLocation(uri=uri), cache_root=cache_root)

        retrieve.assert_not_called()
        assert (victim / "keep.txt").read_text() == "precious\n"


@pytest.mark.integration
class TestDownload:
    def test_clone_then_update(self, template_repo, tmp_path):
        cache_root = tmp_path / "cache"
        location = _remote_location(template_repo.url)

        path = download(location, cache_root=cache_root)
        assert path == cache_root / "example.com" / "org" / "tpl" / "master"
        assert (path / "foo.txt").read_text() == "v1: Lorem ipsum\n"

        template_repo.commit_file("foo.txt", "v2: Hello\n")
        assert (download(location, cache_root=cache_root) / "foo.txt").read_text() == (
            "v2: Hello\n"
        )

    def test_subfolders_share_working_copy(self, template_repo, tmp_path):
        template_repo.commit_file("a/tpl.txt", "a\n")
        template_repo.commit_file("b/tpl.txt", "b\n")
        cache_root = tmp_path / "cache"

        path_a = download(
            _remote_location(template_repo.url, subfolder=Path("a")),
            cache_root=cache_root,
        )
        path_b = download(
            _remote_location(template_repo.url, subfolder=Path("b")),
            cache_root=cache_root,
        )

        assert path_a.parent == path_b.parent
        assert (path_a / "tpl.txt").read_text() == "a\n"
        assert (path_b / "tpl.txt").read_text() == "b\n"

    def test_invalid_revision_leaves_no_cache(self, template_repo, tmp_path):
        cache_root = tmp_path / "cache"

        with pytest.raises(RetrievalError):
            download(_remote_location(template_repo.url, rev="nope"), cache_root=cache_root)

        assert not (cache_root / "example.com" / "org" / "tpl" / "nope").exists()

    def test_corrupt_cache_is_removed_then_recloned(self, template_repo, tmp_path):
        cache_root = tmp_path / "cache"
        cached = cache_root / "example.com" / "org" / "tpl" / "master"
        cached.mkdir(parents=True)
        (cached / "leftover.txt").write_text("crashed run\n")
        location = _remote_location(template_repo.url)

        with pytest.raises(RetrievalError):
            download(location, cache_root=cache_root)
        assert not cached.exists()

        path = download(location, cache_root=cache_root)
        assert (path / "foo.txt").read_text() == "v1: Lorem ipsum\n"

    def test_missing_subfolder_after_download(self, template_repo, tmp_path):
        location = _remote_location(template_repo.url, subfolder=Path("missing"))

        with pytest.raises(LocalPathNotFoundError) as excinfo:
            download(location, cache_root=tmp_path / "cache")

        assert excinfo.value.uri == template_repo.url
        assert excinfo.value.subfolder == Path("missing")

    def test_short_commit_hash_is_updated_repeatedly(self, template_repo, tmp_path):
        first = template_repo.head()
        template_repo.commit_file("foo.txt", "v2: Hello\n")
        cache_root = tmp_path / "cache"
        location = _remote_location(template_repo.url, rev=first[:7])

        for _ in range(3):
            path = download(location, cache_root=cache_root)
            assert (path / "foo.txt").read_text() == "v1: Lorem ipsum\n"
