from typing import Dict, Iterable

import click


def parse_vars(values: Iterable[str]) -> Dict[str, str]:
    """
    Parse repeated ``--var KEY=VALUE`` options into a dictionary.

    Example:
        sourcecache fetch -s ... --rev "{{ version }}" --var version=v1.2.0

        gives {"version": "v1.2.0"}

    Later occurrences of a key override earlier ones. The value may contain
    "=" characters; the key may not be empty.
    """
    variables = {}
    for item in values:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise click.BadParameter(
                f"'{item}' is not of the form KEY=VALUE", param_hint="--var"
            )
        variables[key] = value
    return variables
