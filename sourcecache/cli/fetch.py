"""CLI command resolving a source location into a local directory"""

import sys
from pathlib import Path
from typing import Dict

import click
from jinja2 import Environment, StrictUndefined
from jinja2.exceptions import TemplateError

from sourcecache.cli.utils.args import parse_vars
from sourcecache.cli.utils.logging import logger
from sourcecache.errors import SourceCacheError
from sourcecache.locate import download
from sourcecache.model import DEFAULT_REVISION, SourceLocation, parse_source_uri


def make_renderer(variables: Dict[str, str]):
    """Build a renderer substituting ``{{ name }}`` placeholders from variables."""
    env = Environment(undefined=StrictUndefined, keep_trailing_newline=True)

    def render(value: str) -> str:
        if "{{" not in value and "{%" not in value:
            return value
        return env.from_string(value).render(**variables)

    return render


@click.command("fetch")
@click.option(
    "-s",
    "--source",
    required=True,
    help="Uri or path of the template source.",
)
@click.option(
    "--rev",
    default=DEFAULT_REVISION,
    show_default=True,
    help="Git revision (branch, tag or commit) of the template.",
)
@click.option("-u", "--user", "username", help="Git user.")
@click.option("-p", "--password", help="Git password.")
@click.option(
    "--source-subfolder",
    "subfolder",
    type=click.Path(path_type=Path),
    help="Folder under the source to use as template.",
)
@click.option(
    "-k",
    "--insecure-certificate",
    is_flag=True,
    help="Accept self-signed certificates.",
)
@click.option(
    "--disable-proxy",
    is_flag=True,
    help="Do not use proxy settings from the environment.",
)
@click.option(
    "--offline",
    is_flag=True,
    help="Do not access the network, use the cache as is.",
)
@click.option(
    "--var",
    "variables",
    multiple=True,
    metavar="KEY=VALUE",
    help="Variable substituted into --rev and --source-subfolder (repeatable).",
)
def fetch(
    source: str,
    rev: str,
    username,
    password,
    subfolder,
    insecure_certificate: bool,
    disable_proxy: bool,
    offline: bool,
    variables,
):
    """Resolve a template source into a local directory and print its path.

    Remote git sources are cloned into (or updated in) the cache.

    Example:

      sourcecache fetch -s https://github.com/org/templates.git --rev v1.0.0
    """
    try:
        uri = parse_source_uri(source)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--source")

    try:
        location = SourceLocation(
            uri=uri,
            rev=rev,
            username=username,
            password=password,
            subfolder=subfolder,
            insecure_certificate=insecure_certificate,
            disable_proxy=disable_proxy,
        )
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--rev")

    if variables:
        try:
            location = location.transforms_values(
                make_renderer(parse_vars(variables))
            )
        except (TemplateError, ValueError) as e:
            logger.error(f"Failed to render {location}: {e}")
            sys.exit(1)

    logger.debug(f"Resolving {location}")
    try:
        path = download(location, offline=offline)
    except SourceCacheError as e:
        logger.error(str(e))
        sys.exit(1)

    click.echo(str(path))
