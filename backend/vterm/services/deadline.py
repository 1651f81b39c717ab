# Overview: Wall-clock ceiling for blocking calls to the payment processor.

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout


# Shared pool; a call that overruns keeps its worker until the HTTP client's
# own timeout fires, so the pool is never joined per request.
_executor = ThreadPoolExecutor(max_workers=8, thread_name_prefix="processor-call")


class DeadlineExceeded(TimeoutError):
    """The wrapped call did not finish before the deadline."""


def run_with_deadline(func, seconds: float, *args, **kwargs):
    """
    Run func(*args, **kwargs) and return its result, or raise DeadlineExceeded
    once `seconds` have passed.

    Exceptions raised by func propagate unchanged. The call itself is not
    interrupted mid-flight; its result is discarded.
    """
    future = _executor.submit(func, *args, **kwargs)
    try:
        return future.result(timeout=seconds)
    except FutureTimeout:
        raise DeadlineExceeded(f"call did not complete within {seconds} seconds")
    finally:
        future.cancel()
