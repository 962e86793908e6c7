"""sourcecache CLI"""

import click

from sourcecache import __version__
from sourcecache.cli.cache import cache
from sourcecache.cli.fetch import fetch

from .debug import add_debug_option


@click.group()
@click.version_option(__version__, prog_name="sourcecache")
@click.pass_context
def cli(ctx):
    """
    Resolve template sources into local directories.
    """
    ctx.ensure_object(dict)


cli.add_command(add_debug_option(fetch))
cli.add_command(add_debug_option(cache))

add_debug_option(cli)

if __name__ == "__main__":
    cli(obj={})
