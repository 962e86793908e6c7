import io
import logging
import shutil

import pytest

from sourcecache.git.cache import find_cache_root

from .git_helpers import TemplateRepo


@pytest.fixture
def capture_logs():
    """Fixture to capture log output during tests."""
    log_stream = io.StringIO()
    handler = logging.StreamHandler(log_stream)
    logger = logging.getLogger("sourcecache")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield log_stream

    logger.removeHandler(handler)
    log_stream.close()


@pytest.fixture(autouse=True)
def _reset_cache_root():
    """The cache root is memoized per process; tests must not leak it."""
    find_cache_root.cache_clear()
    yield
    find_cache_root.cache_clear()


# git fixtures


@pytest.fixture
def requires_git():
    if shutil.which("git") is None:
        pytest.skip("skip the test because `git` is not installed")


@pytest.fixture
def template_repo(tmp_path, requires_git) -> TemplateRepo:
    """A local repository with a first commit of foo.txt on master."""
    repo = TemplateRepo(tmp_path / "src")
    repo.commit_file("foo.txt", "v1: Lorem ipsum\n")
    return repo
