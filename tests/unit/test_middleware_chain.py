"""Unit tests for middleware composition and the send variants."""

import httpx
import pytest

from courier.client import Client
from courier.exceptions import HTTPError, TransportConnectionError
from courier.middleware.base import Middleware, MiddlewareChain
from courier.models.request import Request
from courier.models.response import Response
from courier.transport import TransportResult

URL = "https://api.example.com/items"


class Recorder(Middleware):
    def __init__(self, name, events):
        self.name = name
        self.events = events

    async def handle(self, request, call_next):
        self.events.append(f"before {self.name}")
        response = await call_next(request)
        self.events.append(f"after {self.name}")
        return response


@pytest.mark.asyncio
class TestOnionOrder:
    async def test_registration_order_in_reverse_on_the_way_out(self, scripted_transport):
        events = []
        client = Client(transport=scripted_transport())
        client.add_middleware(Recorder("1", events)).add_middleware(Recorder("2", events))

        await client.send(Request.get(URL))

        assert events == ["before 1", "before 2", "after 2", "after 1"]

    async def test_plain_async_callables_are_accepted(self, scripted_transport):
        transport = scripted_transport()

        async def tag(request, call_next):
            return await call_next(request.with_header("X-Tag", "yes"))

        client = Client(transport=transport).add_middleware(tag)
        await client.send(Request.get(URL))

        assert ("X-Tag", "yes") in transport.calls[0].headers

    async def test_middleware_can_short_circuit(self, scripted_transport):
        transport = scripted_transport()

        async def cached(request, call_next):
            return Response(status_code=200, body="cached")

        client = Client(transport=transport).add_middleware(cached)
        response = await client.send(Request.get(URL))

        assert response.body == "cached"
        assert transport.calls == []

    async def test_middleware_can_replace_response(self, scripted_transport):
        async def rewrite(request, call_next):
            response = await call_next(request)
            return Response(status_code=response.status_code, body="rewritten")

        client = Client(transport=scripted_transport()).add_middleware(rewrite)
        assert (await client.send(Request.get(URL))).body == "rewritten"

    async def test_wrap_snapshots_the_chain(self):
        events = []
        chain = MiddlewareChain([Recorder("1", events)])

        async def endpoint(request):
            return Response(status_code=200)

        handler = chain.wrap(endpoint)
        chain.add(Recorder("late", events))
        await handler(Request.get(URL))

        assert events == ["before 1", "after 1"]


class TestRegistration:
    def test_add_middleware_returns_client(self):
        client = Client()
        assert client.add_middleware(Recorder("a", [])) is client

    def test_middleware_snapshot_is_immutable(self):
        first = Recorder("a", [])
        client = Client().add_middleware(first)
        snapshot = client.middleware
        assert snapshot == (first,)
        client.add_middleware(Recorder("b", []))
        assert snapshot == (first,)
        assert len(client.middleware) == 2

    def test_rejects_non_callables(self):
        with pytest.raises(TypeError):
            Client().add_middleware("not a middleware")


@pytest.mark.asyncio
class TestTrySend:
    async def test_success_outcome(self, scripted_transport):
        client = Client(transport=scripted_transport(TransportResult(status_code=200)))
        outcome = await client.try_send(Request.get(URL))
        assert outcome.ok
        assert outcome.attempts == 1
        assert outcome.unwrap().status_code == 200

    async def test_transport_error_is_captured(self, scripted_transport, recorded_sleeps):
        error = httpx.ConnectError("refused", request=httpx.Request("GET", URL))
        client = Client(transport=scripted_transport(error))

        outcome = await client.try_send(Request.get(URL).with_retry(2, 0))

        assert not outcome.ok
        assert isinstance(outcome.error, TransportConnectionError)
        assert outcome.attempts == 2
        assert outcome.as_response().is_connection_error()
        with pytest.raises(TransportConnectionError):
            outcome.unwrap()

    async def test_http_error_is_captured_with_response(self, scripted_transport):
        client = Client(transport=scripted_transport(TransportResult(status_code=404)))
        outcome = await client.try_send(Request.get(URL).with_throw_on_error())
        assert isinstance(outcome.error, HTTPError)
        assert outcome.as_response().status_code == 404

    async def test_try_send_runs_middleware(self, scripted_transport):
        events = []
        client = Client(transport=scripted_transport()).add_middleware(
            Recorder("m", events)
        )
        await client.try_send(Request.get(URL))
        assert events == ["before m", "after m"]
