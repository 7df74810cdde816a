"""Shell command safety utilities."""

import shlex


def quote_arg(arg: str) -> str:
    """Safely quote a shell argument.

    Args:
        arg: Argument to quote

    Returns:
        Shell-safe quoted argument
    """
    return shlex.quote(arg)


def join_args(args: list[str]) -> str:
    """Build a command line from an argument list, quoting every element."""
    return shlex.join(args)
