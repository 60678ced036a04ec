"""Invoke helpers: call sync or async callables uniformly.

Handlers and middleware can be ``def`` or ``async def``. Anything that
calls user code goes through :func:`invoke` so the check lives in one
place.

Usage::

    from perch._internal.invoke import invoke

    await invoke(middleware, ctx)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it is awaitable.

    Works with both plain and coroutine functions::

        def stamp(ctx):
            ctx.set_value("seen", True)

        async def load_user(ctx):
            ctx.set_value("user", await users.find(ctx.get_session("sid").value))
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
