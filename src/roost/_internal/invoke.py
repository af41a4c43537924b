"""Call sync or async hooks uniformly.

Admin actions and user stores can be ``def`` or ``async def``. Any code
that calls a user-provided hook goes through ``invoke`` so the sync/async
check lives in exactly one place.
"""

import inspect
from typing import Any


async def invoke(hook: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *hook* and await the result if it is awaitable."""
    result = hook(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
