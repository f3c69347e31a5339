import asyncio
import paginator.arguments as arguments
import paginator.runner as runner
import pytest

from paginator.adapter import extend, paginated, streamified, streamify
from paginator.stream import ResourceStream


pytestmark = pytest.mark.asyncio


def fetch_values(self, query, handler):
    """Fetch a page of self.values, starting at query["start"]."""
    self.calls += 1
    start = query.get("start", 0)
    stop = min(start + self.limit, len(self.values))
    next_query = {**query, "start": stop} if stop < len(self.values) else None
    handler(None, self.values[start:stop], next_query, {"calls": self.calls})


def make_client_class():
    class Client:
        def __init__(self, values, limit=2):
            self.values = values
            self.limit = limit
            self.calls = 0

        def list_items(self, query, handler):
            fetch_values(self, query, handler)

        def list_others(self, query, handler):
            fetch_values(self, query, handler)

        list_items_stream = streamify("list_items")

    return Client


class DecoratedClient:
    def __init__(self, values, limit=2):
        self.values = values
        self.limit = limit
        self.calls = 0

    list_items = paginated(fetch_values)
    list_items_stream = streamified(fetch_values)


async def test_extend_replaces_method():
    Client = make_client_class()
    original = Client.list_items
    extend(Client, "list_items")
    assert Client.list_items is not original
    assert Client.list_items_ is original


async def test_extend_multiple_methods():
    Client = make_client_class()
    items, others = Client.list_items, Client.list_others
    extend(Client, ["list_items", "list_others"])
    assert Client.list_items is not items
    assert Client.list_others is not others
    assert Client.list_items_ is items
    assert Client.list_others_ is others


async def test_extend_aggregates_all_pages():
    Client = make_client_class()
    extend(Client, "list_items")
    client = Client(list(range(7)))
    items, meta = await client.list_items()
    assert items == list(range(7))
    assert meta == {"calls": 4}
    assert client.calls == 4


async def test_extend_callback():
    Client = make_client_class()
    extend(Client, "list_items")
    client = Client(["a", "b", "c"])
    future = asyncio.get_running_loop().create_future()
    assert client.list_items({}, lambda *args: future.set_result(args)) is None
    assert await future == (None, ["a", "b", "c"], {"calls": 2})


async def test_extend_max_results():
    Client = make_client_class()
    extend(Client, "list_items")
    client = Client(list(range(10)))
    items, _ = await client.list_items(max_results=3, auto_paginate=True)
    assert items == [0, 1, 2]
    assert client.calls == 2


async def test_extend_manual_pagination():
    Client = make_client_class()
    extend(Client, "list_items")
    client = Client(list(range(5)))
    items, next_query, _ = await client.list_items({"autoPaginate": False})
    assert items == [0, 1]
    assert next_query == {"start": 2}
    items, next_query, _ = await client.list_items({**next_query, "autoPaginate": False})
    assert items == [2, 3]
    assert next_query == {"start": 4}


async def test_extend_parses_arguments(monkeypatch):
    Client = make_client_class()
    extend(Client, "list_items")
    seen = []

    def parse_arguments(args, kwargs):
        seen.append((args, kwargs))
        return arguments.Arguments()

    monkeypatch.setattr(arguments, "parse_arguments", parse_arguments)
    monkeypatch.setattr(runner, "run", lambda args, fetch: None)
    Client([]).list_items(1, 2, 3, a=4)
    assert seen == [((1, 2, 3), {"a": 4})]


async def test_extend_passes_bound_original(monkeypatch):
    Client = make_client_class()
    extend(Client, "list_items")
    client = Client(["x"])
    parsed = arguments.Arguments()
    monkeypatch.setattr(arguments, "parse_arguments", lambda args, kwargs: parsed)
    calls = []

    def run(args, fetch):
        calls.append(args)
        fetch({}, lambda *result: calls.append(result))
        return "result"

    monkeypatch.setattr(runner, "run", run)
    assert client.list_items() == "result"
    assert calls == [parsed, (None, ["x"], None, {"calls": 1})]
    assert client.calls == 1


async def test_streamify_returns_stream():
    Client = make_client_class()
    client = Client(list(range(5)))
    stream = client.list_items_stream()
    assert isinstance(stream, ResourceStream)
    assert [item async for item in stream] == list(range(5))


async def test_streamify_ignores_callback():
    Client = make_client_class()
    client = Client(list(range(3)))
    called = []
    stream = client.list_items_stream({}, lambda *args: called.append(args))
    assert isinstance(stream, ResourceStream)
    assert [item async for item in stream] == [0, 1, 2]
    assert called == []


async def test_streamify_uses_original_of_extended_method():
    Client = make_client_class()
    extend(Client, "list_items")
    client = Client(list(range(5)))
    assert [item async for item in client.list_items_stream()] == list(range(5))


async def test_streamify_checks_private_member():
    class Client:
        def list_items(self, query, handler):
            raise AssertionError("not the private member")

        def list_items_(self, query, handler):
            handler(None, [self], None)

        list_items_stream = streamify("list_items")

    client = Client()
    assert [item async for item in client.list_items_stream()] == [client]


async def test_streamify_stops_early():
    Client = make_client_class()
    client = Client(list(range(100)), limit=5)
    stream = client.list_items_stream()
    seen = []
    async for item in stream:
        seen.append(item)
        if item == 2:
            stream.end()
    await asyncio.sleep(0)
    assert seen == [0, 1, 2]
    assert client.calls == 1


async def test_streamify_options():
    Client = make_client_class()
    client = Client(list(range(100)), limit=5)
    stream = client.list_items_stream({"max_api_calls": 3, "highWaterMark": 4})
    assert stream.high_water_mark == 4
    assert [item async for item in stream] == list(range(15))
    assert client.calls == 3


async def test_paginated_decorator():
    client = DecoratedClient(list(range(5)))
    items, meta = await client.list_items()
    assert items == list(range(5))
    assert meta == {"calls": 3}


async def test_streamified_decorator():
    client = DecoratedClient(list(range(5)))
    stream = client.list_items_stream({"maxResults": 3})
    assert isinstance(stream, ResourceStream)
    assert [item async for item in stream] == [0, 1, 2]
    assert client.calls == 2
