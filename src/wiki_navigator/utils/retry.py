# ABOUTME: Caller-side retry policy for wiki overload signals using tenacity
# ABOUTME: The MediaWiki client never retries; callers opt in by decorating their coroutines

import functools
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from wiki_navigator.utils.logging import get_logger
from wiki_navigator.wiki.errors import WikiAPIError

P = ParamSpec("P")
T = TypeVar("T")

logger = get_logger(__name__)


def is_overload_error(error: BaseException) -> bool:
    """True for the API error a wiki returns when ``maxlag`` is exceeded."""
    return isinstance(error, WikiAPIError) and error.is_overloaded


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Wiki overloaded, retrying",
        attempt=retry_state.attempt_number,
        sleep_seconds=round(retry_state.next_action.sleep, 2) if retry_state.next_action else None,
        error=str(error),
    )


def overload_retry(
    max_attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 10.0,
    multiplier: float = 2.0,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Retry an async callable while the wiki reports overload, with exponential backoff.

    Any other error propagates immediately. After ``max_attempts`` the last overload
    error is re-raised unchanged.
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(max_attempts),
                wait=wait_exponential(multiplier=multiplier, min=min_wait, max=max_wait),
                retry=retry_if_exception(is_overload_error),
                before_sleep=_log_retry,
                reraise=True,
            ):
                with attempt:
                    return await func(*args, **kwargs)
            raise AssertionError("unreachable")  # pragma: no cover

        return wrapper

    return decorator
