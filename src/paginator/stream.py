"""
Module to stream the items of a paginated operation.

A paginated operation is exposed through a fetch function with the following signature:

    fetch(query, handler)

The fetch function requests one page of items and invokes the handler exactly once:

    handler(error, items, next_query, *extra)

  • error: the exception that prevented the page from being fetched, or None
  • items: ordered sequence of items in the page
  • next_query: query to fetch the next page; if empty or None, there are no more pages
  • extra: values to be passed through to the consumer unchanged (e.g. raw response)

The fetch function can invoke the handler before it returns, or later from the event loop;
it can also raise an exception instead of invoking the handler.

A resource stream wraps the fetch function in an asynchronous iterator. Pages are fetched
lazily, one at a time, no faster than the consumer reads items from the stream.
"""

import asyncio
import logging
import math

from collections import deque
from collections.abc import AsyncIterator, Callable
from paginator.arguments import UNBOUNDED, Arguments
from typing import Any, TypeVar


_logger = logging.getLogger(__name__)


DEFAULT_HIGH_WATER_MARK = 16

Item = TypeVar("Item")


def _limit(value: int) -> int | float:
    return math.inf if value <= UNBOUNDED else value


class ResourceStream(AsyncIterator[Item]):
    """
    Asynchronous stream of items from a paginated operation.

    Parameters:
    • arguments: parsed arguments of the paginated operation
    • fetch: function to fetch a page of items

    Attributes:
    • next_query: query to pass to the next fetch
    • ended: no more items will be added to the stream
    • reading: a fetch is in flight
    • requests_made: number of fetches completed
    • results_to_send: number of items remaining to deliver, or inf if unbounded
    • max_api_calls: maximum number of fetches, or inf if unbounded
    • high_water_mark: number of buffered items at which `push` reports the stream full
    • other_args: extra values passed to the handler of the last successful fetch

    The stream ends when the fetched page has no next query, the maximum number of items or
    fetches is reached, or the consumer ends the stream. When a fetch fails, the error is
    raised once to the consumer and the stream ends.

    A stream is returned in an "open" state. A consumer that stops reading early should end
    the stream, either by calling its `end` or `close` method, or by using `async with`.
    """

    def __init__(self, arguments: Arguments, fetch: Callable[..., Any]):
        self.fetch = fetch
        self.next_query = arguments.query
        self.ended = False
        self.reading = False
        self.requests_made = 0
        self.results_to_send = _limit(arguments.max_results)
        self.max_api_calls = _limit(arguments.max_api_calls)
        self.high_water_mark = arguments.stream_options.get(
            "high_water_mark", DEFAULT_HIGH_WATER_MARK
        )
        self.other_args = ()
        self._buffer = deque()
        self._error = None
        self._destroyed = False
        self._waiter = None
        self._read_scheduled = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    def __aiter__(self):
        return self

    async def __anext__(self) -> Item:
        while not self._buffer:
            if self._error is not None:
                error, self._error = self._error, None
                raise error
            if self.ended:
                raise StopAsyncIteration
            self._read()
            if self._buffer or self.ended:
                continue
            self._waiter = asyncio.get_running_loop().create_future()
            try:
                await self._waiter
            finally:
                self._waiter = None
        return self._buffer.popleft()

    @property
    def buffered(self) -> int:
        """Number of fetched items not yet delivered to the consumer."""
        return len(self._buffer)

    def push(self, item: Item) -> bool:
        """
        Add an item to the stream. Returns True if the stream can accept more items without
        exceeding its high water mark.
        """
        self._buffer.append(item)
        self._wake()
        return len(self._buffer) < self.high_water_mark

    def end(self) -> None:
        """
        End the stream. Items not yet delivered are discarded, no further fetch is issued,
        and the results of a fetch in flight are discarded. Iteration then stops. This
        method is idempotent.
        """
        if not self.ended:
            _logger.debug("stream ended by consumer after %d request(s)", self.requests_made)
        self.ended = True
        self._buffer.clear()
        self._wake()

    async def close(self) -> None:
        """Close the stream. Equivalent to calling `end`."""
        self.end()

    def destroy(self, error: BaseException | None = None) -> None:
        """
        Destroy the stream. Items not yet delivered are discarded. If an error is provided,
        it is raised once to the consumer; iteration then stops.
        """
        if self._destroyed:
            return
        if error is not None:
            _logger.debug("stream failed: %s", type(error).__name__)
        self._destroyed = True
        self.ended = True
        self._buffer.clear()
        self._error = error
        self._wake()

    def _wake(self) -> None:
        if self._waiter is not None and not self._waiter.done():
            self._waiter.set_result(None)

    def _finish(self, reason: str) -> None:
        if not self.ended:
            _logger.debug("stream finished (%s) after %d request(s)", reason, self.requests_made)
        self.ended = True
        self._wake()

    def _schedule_read(self) -> None:
        if self._read_scheduled or self.ended:
            return
        self._read_scheduled = True
        asyncio.get_running_loop().call_soon(self._tick)

    def _tick(self) -> None:
        self._read_scheduled = False
        if not self._buffer:
            self._read()

    def _read(self) -> None:
        if self.reading or self.ended:
            return
        self.reading = True
        _logger.debug("request %d: %r", self.requests_made + 1, self.next_query)
        try:
            self.fetch(self.next_query, self._handle)
        except Exception as e:
            self.destroy(e)
            self.reading = False

    def _handle(self, error, items=None, next_query=None, *extra) -> None:
        if error is not None:
            if self.ended:  # consumer ended stream while fetch was in flight
                _logger.debug("discarding error from fetch after stream ended")
            else:
                self.destroy(error)
            self.reading = False
            return

        self.next_query = next_query
        self.other_args = extra
        items = list(items or ())

        if self.results_to_send != math.inf:
            items = items[: self.results_to_send]
            self.results_to_send -= len(items)

        more = True
        for item in items:
            if self.ended:
                break
            more = self.push(item)

        self.requests_made += 1

        if not self.next_query:
            self._finish("no next query")
        elif self.results_to_send < 1:
            self._finish("max results reached")
        elif self.requests_made >= self.max_api_calls:
            self._finish("max api calls reached")

        # next page waits until the consumer has taken every item of this one
        if more and not self.ended and not self._buffer:
            self._schedule_read()

        self.reading = False
