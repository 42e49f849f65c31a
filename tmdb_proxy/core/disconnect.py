"""
Client disconnect handling.

Races the forwarding coroutine against the ASGI http.disconnect message so
that upstream calls and pending retries are cancelled once nobody is
waiting for the answer.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger("tmdb_proxy.disconnect")

Receive = Callable[[], Awaitable[Dict[str, Any]]]


class ClientDisconnected(Exception):
    """The client went away before the response was ready."""

    pass


async def wait_for_disconnect(receive: Receive) -> None:
    """Return once the ASGI server reports http.disconnect."""
    while True:
        message = await receive()
        if message.get("type") == "http.disconnect":
            return


async def run_until_disconnected(
    work: Awaitable[Any], receive: Optional[Receive]
) -> Any:
    """
    Await ``work`` unless the client disconnects first.

    Must be called after the request body has been consumed.

    Raises:
        ClientDisconnected: the client left; ``work`` has been cancelled
    """
    work_task = asyncio.ensure_future(work)
    if receive is None:
        return await work_task

    watcher = asyncio.ensure_future(wait_for_disconnect(receive))
    try:
        done, _ = await asyncio.wait(
            {work_task, watcher}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        work_task.cancel()
        watcher.cancel()
        raise

    if work_task in done:
        watcher.cancel()
        return work_task.result()

    if watcher.exception() is not None:
        logger.warning(f"Disconnect watcher failed: {watcher.exception()!r}")
        return await work_task

    work_task.cancel()
    try:
        await work_task
    except asyncio.CancelledError:
        pass
    logger.info("Client disconnected, upstream work cancelled")
    raise ClientDisconnected()
