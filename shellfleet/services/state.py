"""Process-wide dependency container access for the tool layer."""

from shellfleet.dependencies import Dependencies

_deps: Dependencies | None = None


def get_deps() -> Dependencies:
    """Get the dependencies installed by the server lifespan.

    Created from the environment on first access when nothing was installed.
    """
    global _deps
    if _deps is None:
        _deps = Dependencies.create()
    return _deps


def set_deps(deps: Dependencies) -> None:
    """Install the dependencies container.

    Args:
        deps: Dependencies instance to use globally.
    """
    global _deps
    _deps = deps


def reset_state() -> None:
    """Reset global state for testing.

    Should only be used in test fixtures.
    """
    global _deps
    _deps = None
