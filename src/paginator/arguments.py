"""
Module to parse the arguments of a paginated operation.

A paginated operation can be called in several shapes:

  • operation(callback)
  • operation(query)
  • operation(query, callback)
  • operation(query, **options)

The query is usually a mapping of request parameters; some operations take a primitive key
instead. A mapping query can carry paging options, which are removed from the query before it
is passed to the remote call:

  • max_api_calls: maximum number of remote calls to make  [unbounded]
  • max_results: maximum number of items to deliver  [unbounded]
  • page_size: alternative to max_results, consulted only if max_results is absent
  • auto_paginate: request all pages as a single sequence  [True]
  • high_water_mark: number of buffered items at which the stream reports itself full

Each option is also recognized in its camel case form (e.g. "maxResults"), as used by many
remote APIs.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any


UNBOUNDED = -1


@dataclass
class Arguments:
    """
    Normalized arguments of a paginated operation call.

    Attributes:
    • query: query to pass to the first remote call
    • auto_paginate: request all pages as a single sequence
    • max_api_calls: maximum number of remote calls, or -1 if unbounded
    • max_results: maximum number of items to deliver, or -1 if unbounded
    • callback: function to receive the result; if None, a future is returned instead
    • stream_options: options that tune the result stream
    """

    query: Any = field(default_factory=dict)
    auto_paginate: bool = True
    max_api_calls: int = UNBOUNDED
    max_results: int = UNBOUNDED
    callback: Callable[..., Any] | None = None
    stream_options: dict[str, Any] = field(default_factory=dict)


_MAX_API_CALLS = ("max_api_calls", "maxApiCalls")
_MAX_RESULTS = ("max_results", "maxResults", "page_size", "pageSize")
_AUTO_PAGINATE = ("auto_paginate", "autoPaginate")
_STREAM_OPTIONS = {"high_water_mark": "high_water_mark", "highWaterMark": "high_water_mark"}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _pop_first(query: dict, keys: Sequence[str], accept: Callable[[Any], bool]) -> Any:
    """Remove and return the first acceptable value found under keys, or None."""
    for key in keys:
        if key in query and accept(query[key]):
            return query.pop(key)
    return None


def parse_arguments(args: Sequence[Any], kwargs: Mapping[str, Any] | None = None) -> Arguments:
    """
    Parse the arguments of a paginated operation call.

    Parameters:
    • args: positional arguments the operation was called with
    • kwargs: keyword arguments the operation was called with

    Keyword arguments are merged over a mapping query; a "callback" keyword argument supplies
    the callback. This function never raises; any argument shape degrades to defaults.
    """
    args = list(args)
    kwargs = dict(kwargs or {})
    result = Arguments()

    first = args[0] if args else None
    last = args[-1] if args else None

    if callable(first):
        result.callback = first
    elif first is not None:
        result.query = first

    if callable(last) and last is not first:
        result.callback = last

    if callable(kwargs.get("callback")):
        result.callback = kwargs.pop("callback")

    if isinstance(result.query, Mapping):
        result.query = {**result.query, **kwargs}  # copy; caller's query is never mutated
    else:  # primitive query takes no options
        return result

    query = result.query

    if (max_api_calls := _pop_first(query, _MAX_API_CALLS, _is_int)) is not None:
        result.max_api_calls = max_api_calls

    if (max_results := _pop_first(query, _MAX_RESULTS, _is_int)) is not None:
        result.max_results = max_results

    auto_paginate = _pop_first(query, _AUTO_PAGINATE, lambda v: isinstance(v, bool))
    if auto_paginate is not None:
        result.auto_paginate = auto_paginate
    elif result.max_results != UNBOUNDED:
        result.auto_paginate = False

    for key, option in _STREAM_OPTIONS.items():
        if _is_int(query.get(key)):
            result.stream_options[option] = query.pop(key)

    return result
