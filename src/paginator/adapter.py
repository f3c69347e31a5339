"""
Module to adapt paginated methods of client classes.

A paginated method accepts a query and a handler, and fetches a single page of items (see
`paginator.stream` for the handler signature). This module adapts such methods to deliver all
items across all pages, either at once or through a resource stream.

Adapting an existing class:

    class Client:
        def list_items(self, query, handler):
            ...

        list_items_stream = streamify("list_items")

    extend(Client, "list_items")

Adapting at class definition:

    class Client:
        @paginated
        def list_items(self, query, handler):
            ...

        @streamified
        def list_items_stream(self, query, handler):
            ...

An adapted method accepts the call shapes described in `paginator.arguments`.
"""

import inspect
import paginator.arguments as arguments
import paginator.runner as runner
import wrapt

from collections.abc import Callable, Iterable
from typing import Any


def _paginate(wrapped, instance, args, kwargs):
    return runner.run(arguments.parse_arguments(args, kwargs), wrapped)


def _stream(wrapped, instance, args, kwargs):
    return runner.run_as_stream(arguments.parse_arguments(args, kwargs), wrapped)


def paginated(wrapped: Callable[..., Any]) -> Callable[..., Any]:
    """Decorate a paginated method to deliver all of its items at once."""
    return wrapt.FunctionWrapper(wrapped, _paginate)


def streamified(wrapped: Callable[..., Any]) -> Callable[..., Any]:
    """Decorate a paginated method to return a resource stream of all of its items."""
    return wrapt.FunctionWrapper(wrapped, _stream)


def extend(cls: type, method_names: str | Iterable[str]) -> None:
    """
    Replace paginated methods of a class with methods that deliver all items at once.

    Parameters:
    • cls: class containing the methods to replace
    • method_names: name of method, or iterable of method names

    The original method is retained in the class under the same name, suffixed with an
    underscore (e.g. "list_items_").
    """
    if isinstance(method_names, str):
        method_names = [method_names]
    for name in method_names:
        setattr(cls, f"{name}_", inspect.getattr_static(cls, name))
        wrapt.wrap_function_wrapper(cls, name, _paginate)


def streamify(method_name: str) -> Callable[..., Any]:
    """
    Return a method that streams all items of a paginated method.

    Parameters:
    • method_name: name of the paginated method

    The returned method calls the original method retained by `extend` if it exists,
    otherwise the named method; it always returns a resource stream.
    """

    def method(self, *args, **kwargs):
        fetch = getattr(self, f"{method_name}_", None) or getattr(self, method_name)
        return runner.run_as_stream(arguments.parse_arguments(args, kwargs), fetch)

    method.__name__ = f"{method_name}_stream"
    method.__doc__ = f"Return a stream of all items of the {method_name} method."
    return method
