"""CLI commands for source cache management"""

import sys

import click

from sourcecache.cli.utils.logging import logger
from sourcecache.errors import SourceCacheError
from sourcecache.git.cache import clean_cache, describe_cache, find_cache_root


def _cache_root():
    try:
        return find_cache_root()
    except SourceCacheError as e:
        logger.error(str(e))
        sys.exit(1)


@click.group(name="cache")
def cache():
    """Manage the git source cache."""
    pass


@cache.command("path")
def path():
    """Print the cache directory."""
    click.echo(str(_cache_root()))


@cache.command("list")
def list_cache():
    """List cached working copies.

    Example:

      sourcecache cache list
    """
    entries = describe_cache(_cache_root())
    if not entries:
        logger.info("Cache is empty")
        return

    width = max(len(entry["repo_path"]) for entry in entries)
    for entry in entries:
        head = entry["head"][:7] if entry["head"] != "unknown" else entry["head"]
        repo_path = entry["repo_path"]
        click.echo(f"{repo_path:<{width}}  {head:<7}  {entry['branch']}  {entry['url']}")


@cache.command("clean")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
def clean(yes: bool):
    """Remove every cached working copy."""
    cache_root = _cache_root()
    if not yes:
        click.confirm(f"Remove {cache_root}?", abort=True)

    try:
        removed = clean_cache(cache_root)
    except SourceCacheError as e:
        logger.error(str(e))
        sys.exit(1)

    if removed:
        logger.info(f"Removed {cache_root}")
    else:
        logger.info("Cache is already empty")
