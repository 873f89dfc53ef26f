"""
Execution-discipline drivers.

Protocol logic in this SDK (authentication, cursor batches, facade calls) is
written once as plain generators called *flows*. A flow yields each
``RequestEnvelope`` it needs sent and receives the matching
``ResponseEnvelope`` back; its return value is the operation's result::

    def version_flow(conn) -> Flow[dict]:
        response = yield conn.build_request("GET", "_api/version")
        return parse_envelope(response)

Flows compose with ``yield from``. They never touch the network: a driver does.
``run_sync`` blocks the calling thread at each yield, ``run_async`` awaits at
each yield. The flow's source is identical for both.
"""

from collections.abc import Awaitable, Callable, Generator
from typing import TypeVar

from .envelope import RequestEnvelope, ResponseEnvelope

T = TypeVar("T")

Flow = Generator[RequestEnvelope, ResponseEnvelope, T]
"""A resumable protocol operation producing ``T``."""

SyncSender = Callable[[RequestEnvelope], ResponseEnvelope]
AsyncSender = Callable[[RequestEnvelope], Awaitable[ResponseEnvelope]]


def run_sync(flow: Flow[T], send: SyncSender) -> T:
    """
    Drive a flow to completion, blocking on every request.

    Args:
        flow: The flow to run
        send: Blocking transport call

    Returns:
        The flow's return value

    Exceptions raised by ``send`` or by the flow itself propagate unchanged.
    """
    try:
        request = next(flow)
        while True:
            response = send(request)
            request = flow.send(response)
    except StopIteration as stop:
        return stop.value
    finally:
        flow.close()


async def run_async(flow: Flow[T], send: AsyncSender) -> T:
    """
    Drive a flow to completion, suspending on every request.

    Args:
        flow: The flow to run
        send: Awaitable transport call

    Returns:
        The flow's return value
    """
    try:
        request = next(flow)
        while True:
            response = await send(request)
            request = flow.send(response)
    except StopIteration as stop:
        return stop.value
    finally:
        flow.close()

