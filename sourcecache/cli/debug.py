import click

from .utils.logging import configure_logging


def _set_debug(ctx, param, value: bool):
    """Store the debug flag on the root context and reconfigure logging.

    A nested command may turn debug on, only the root command may turn it off.
    """
    root_ctx = ctx.find_root()
    root_ctx.ensure_object(dict)

    current = root_ctx.obj.get("DEBUG", False)
    if value or ctx is root_ctx:
        current = value
    root_ctx.obj["DEBUG"] = current

    configure_logging(current)
    return current


def add_debug_option(cmd: click.Command) -> click.Command:
    """Add a --debug/--no-debug option to a command or group"""
    if not any(param.name == "debug" for param in cmd.params):
        cmd.params.insert(
            0,
            click.Option(
                ["--debug/--no-debug"],
                is_eager=True,
                expose_value=False,
                callback=_set_debug,
                help="Enable debug mode",
            ),
        )
    return cmd
