import asyncio
from collections.abc import Callable


def proper_loop_factory() -> Callable[[], asyncio.AbstractEventLoop] | None:
    """
    Get the factory of the proper event loop for the operator's runner.

    If ``uvloop`` is installed, it is used.
    Otherwise, the default asyncio event loop is created as usual.

    This loop selection is usually used in CLI only, not deeper than that;
    i.e. not even in ``kassoc.run()``, since uvloop is only auto-managed for CLI.
    """
    try:
        import uvloop
    except ImportError:
        return None
    else:
        return uvloop.new_event_loop
