import asyncio
from functools import partial, wraps


def async_wrap(func):
    """
    Decorator to turn a synchronous function into an awaitable asynchronous function.
    """
    @wraps(func)
    async def run(*args, loop=None, executor=None, **kwargs):
        if loop is None:
            loop = asyncio.get_running_loop()
        pfunc = partial(func, *args, **kwargs)
        return await loop.run_in_executor(executor, pfunc)
    return run
