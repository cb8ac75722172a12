"""
Decorator that memoizes a function through a Cache.
Why: call sites keep their signature; key derivation lives in one place.
"""

import functools
import inspect
from typing import Any, Callable, Optional, TypeVar

from .cache import Cache
from .cache_key import make_key

F = TypeVar("F", bound=Callable[..., Any])


def cached(
    cache: Cache,
    key: Optional[Callable[..., str]] = None,
    ttl_seconds: Optional[float] = None,
    namespace: Optional[str] = None,
) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        prefix = namespace or func.__qualname__

        def derive(*args: Any, **kwargs: Any) -> str:
            if key is not None:
                return key(*args, **kwargs)
            return make_key(prefix, *args, **kwargs)

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                return await cache.aget_or_set(
                    derive(*args, **kwargs), lambda: func(*args, **kwargs), ttl_seconds
                )

            wrapper: Any = async_wrapper
        else:

            @functools.wraps(func)
            def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
                return cache.get_or_set(
                    derive(*args, **kwargs), lambda: func(*args, **kwargs), ttl_seconds
                )

            wrapper = sync_wrapper

        def invalidate(*args: Any, **kwargs: Any) -> None:
            cache.delete(derive(*args, **kwargs))

        wrapper.invalidate = invalidate
        wrapper.cache_key = derive
        return wrapper

    return decorator
