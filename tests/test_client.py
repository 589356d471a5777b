"""Tests for client.py -- bet history fetch over a pluggable transport."""

import sys, os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
sys.path.insert(0, os.path.dirname(__file__))

import httpx
import pytest

from client import BetHistoryClient, HTTPTransport, Transport
from errors import DataUnavailable
from conftest import build_session, bet_json


class FakeTransport(Transport):
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def get(self, path, params=None):
        self.calls.append(path)
        if self.error:
            raise self.error
        return self.response


@pytest.fixture
def records():
    _, records = build_session()
    return records


class TestBetHistoryClient:
    @pytest.mark.asyncio
    async def test_fetch_bets(self, records):
        transport = FakeTransport({"bets": [bet_json(r) for r in records]})
        fetched = await BetHistoryClient(transport).fetch_bets(700)
        assert transport.calls == ["/bets/gameId/700"]
        assert fetched == records

    @pytest.mark.asyncio
    async def test_delivery_order_kept(self, records):
        transport = FakeTransport({"bets": [bet_json(r) for r in records]})
        fetched = await BetHistoryClient(transport).fetch_bets(700)
        assert [r.round_id for r in fetched] == [5, 4, 3, 2, 1]

    @pytest.mark.asyncio
    async def test_empty_history(self):
        assert await BetHistoryClient(FakeTransport({"bets": []})).fetch_bets(700) == []

    @pytest.mark.asyncio
    async def test_network_error(self):
        transport = FakeTransport(error=httpx.ConnectError("connection refused"))
        with pytest.raises(DataUnavailable, match="Could not load bets"):
            await BetHistoryClient(transport).fetch_bets(700)

    @pytest.mark.asyncio
    async def test_bad_status(self):
        request = httpx.Request("GET", "https://api.example/bets/gameId/700")
        response = httpx.Response(500, request=request)
        error = httpx.HTTPStatusError("server error", request=request, response=response)
        with pytest.raises(DataUnavailable):
            await BetHistoryClient(FakeTransport(error=error)).fetch_bets(700)

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        with pytest.raises(DataUnavailable):
            await BetHistoryClient(FakeTransport(error=ValueError("Expecting value"))).fetch_bets(700)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [None, [], {"data": []}, {"bets": {"roundId": 1}}])
    async def test_malformed_response(self, payload):
        with pytest.raises(DataUnavailable, match="Malformed bet response"):
            await BetHistoryClient(FakeTransport(payload)).fetch_bets(700)

    @pytest.mark.asyncio
    async def test_invalid_record(self, records):
        bets = [bet_json(r) for r in records]
        bets[2]["serverHash"] = "0xnothex"
        with pytest.raises(DataUnavailable, match="Invalid bet record"):
            await BetHistoryClient(FakeTransport({"bets": bets})).fetch_bets(700)


class TestHTTPTransport:
    def test_base_url_trailing_slash(self):
        assert HTTPTransport("https://api.example/api/").base_url == "https://api.example/api"

    def test_default_transport(self):
        client = BetHistoryClient(base_url="https://api.example/api")
        assert isinstance(client.transport, HTTPTransport)
        assert client.transport.base_url == "https://api.example/api"
