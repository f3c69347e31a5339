"""
Module to run paginated operations.

A paginated operation runs in one of three modes, selected by its parsed arguments:

  • streaming: items are delivered through a resource stream (see `run_as_stream`)
  • aggregating: all items from all pages are delivered at once (see `run`)
  • manual: a single page is fetched; the caller requests subsequent pages itself

In aggregating and manual modes, the result is delivered to the callback in the parsed
arguments; if there is no callback, a future is returned, which resolves to the result.
"""

import asyncio
import functools
import logging

from collections.abc import Callable
from paginator.arguments import Arguments
from paginator.stream import ResourceStream
from typing import Any


_logger = logging.getLogger(__name__)


# aggregating tasks whose result is delivered to a callback; referenced until complete
_tasks = set()


def run_as_stream(arguments: Arguments, fetch: Callable[..., Any]) -> ResourceStream:
    """
    Return a stream of all items of a paginated operation.

    Parameters:
    • arguments: parsed arguments of the operation
    • fetch: function to fetch a page of items
    """
    return ResourceStream(arguments, fetch)


async def collect(stream: ResourceStream) -> tuple:
    """
    Read all items from a resource stream. Returns a tuple containing the list of items,
    followed by the extra values passed to the handler of the last successful fetch.
    """
    items = [item async for item in stream]
    return (items, *stream.other_args)


def run_manually(arguments: Arguments, fetch: Callable[..., Any]) -> asyncio.Future | None:
    """
    Fetch a single page of a paginated operation.

    Parameters:
    • arguments: parsed arguments of the operation
    • fetch: function to fetch a page of items

    If the arguments contain a callback, the handler passes its arguments through to the
    callback, and None is returned. Otherwise, a future is returned that resolves to a tuple
    of the values passed to the handler following the error: items, next query and extra
    values. A synchronous raise from the fetch function is delivered as an error, unless the
    handler was already called, in which case it propagates to the caller.
    """
    future = None
    callback = arguments.callback

    if callback is None:
        future = asyncio.get_running_loop().create_future()

        def callback(error, *results):
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(results)

    called = False

    def handler(*args):
        nonlocal called
        called = True
        callback(*args)

    try:
        fetch(arguments.query, handler)
    except Exception as e:
        if called:  # raised by the callback itself, or after the page was delivered
            raise
        handler(e)

    return future


def _complete(callback: Callable[..., Any], task: asyncio.Task) -> None:
    _tasks.discard(task)
    if task.cancelled():
        callback(asyncio.CancelledError())
    elif (error := task.exception()) is not None:
        callback(error)
    else:
        callback(None, *task.result())


def run(arguments: Arguments, fetch: Callable[..., Any]) -> asyncio.Future | None:
    """
    Run a paginated operation, delivering all of its items at once.

    Parameters:
    • arguments: parsed arguments of the operation
    • fetch: function to fetch a page of items

    If auto-pagination is disabled, only a single page is fetched (see `run_manually`).

    Otherwise, all items are read from a resource stream. If the arguments contain a
    callback, it is called with None, the list of items and the extra values from the last
    successful fetch; if a fetch fails, it is called with the error only. Otherwise, a future
    is returned that resolves to a tuple of the list of items and extra values, or raises the
    error.
    """
    if not arguments.auto_paginate:
        _logger.debug("manual pagination")
        return run_manually(arguments, fetch)
    task = asyncio.create_task(collect(run_as_stream(arguments, fetch)))
    if arguments.callback is None:
        return task
    _tasks.add(task)
    task.add_done_callback(functools.partial(_complete, arguments.callback))
    return None
