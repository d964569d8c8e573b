# backend/barbershop/routes/v1/common.py
"""
Helpers shared by the v1 routers.

Services are synchronous; handlers run them in a worker thread under the
backend timeout so a stalled database call surfaces as a 503 instead of a
request that never returns.
"""

import asyncio
import logging
from typing import Any, Callable, NoReturn, TypeVar

from fastapi import HTTPException, status

from ...core.config import settings
from ...core.exceptions import BackendUnavailableException, DomainException

logger = logging.getLogger(__name__)

T = TypeVar("T")


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


async def run_in_backend(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """
    Run a blocking service call off the event loop, bounded by the backend timeout.

    A worker thread cannot be interrupted, so on timeout the call is still
    awaited to completion before the 503 goes out. The request Session is
    therefore never torn down while the worker is using it; the engine's
    pool and statement timeouts bound how long that drain can take.

    Raises:
        BackendUnavailableException: the call did not finish in time
    """
    timeout = settings.backend_timeout_seconds
    worker = asyncio.ensure_future(asyncio.to_thread(func, *args, **kwargs))
    try:
        return await asyncio.wait_for(asyncio.shield(worker), timeout=timeout)
    except asyncio.TimeoutError:
        name = getattr(func, "__name__", "operation")
        logger.error(f"Backend call {name} exceeded {timeout:.1f}s")
        try:
            await worker
        except Exception as e:
            logger.warning(f"Backend call {name} failed after the deadline: {e}")
        else:
            logger.warning(f"Backend call {name} completed after the deadline")
        raise BackendUnavailableException(
            "Booking backend did not respond in time. Please retry.",
            details={"operation": name, "timeout_seconds": timeout},
        )
