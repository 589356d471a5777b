"""Backend API client for signed bet history.

Thin HTTP client with a pluggable transport interface.
Default transport: plain HTTPS GET against the operator's API.

Anything that goes wrong here (network, status, JSON shape, invalid
records) is DataUnavailable: the audit could not start, which says
nothing about whether the session is valid.
"""

import logging
from abc import ABC, abstractmethod

import httpx
from pydantic import ValidationError

from errors import DataUnavailable
from models import BetRecord
from protocol import DEFAULT_API_URL

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Override this to read bets from a mirror, a file dump, whatever."""

    @abstractmethod
    async def get(self, path: str, params: dict | None = None) -> dict:
        ...


class HTTPTransport(Transport):
    """Default. Talks to the operator's backend over HTTP."""

    def __init__(self, base_url: str = DEFAULT_API_URL, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def get(self, path: str, params: dict | None = None) -> dict:
        async with httpx.AsyncClient() as client:
            resp = await client.get(
                f"{self.base_url}{path}",
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json()


class BetHistoryClient:
    """Fetches the bets of one game session, newest first, as delivered."""

    def __init__(self, transport: Transport | None = None, base_url: str = DEFAULT_API_URL):
        self.transport = transport or HTTPTransport(base_url)

    async def fetch_bets(self, session_id: int) -> list[BetRecord]:
        path = f"/bets/gameId/{session_id}"
        try:
            data = await self.transport.get(path)
        except (httpx.HTTPError, ValueError) as e:
            raise DataUnavailable(f"Could not load bets for game session {session_id}: {e}") from e

        bets = data.get("bets") if isinstance(data, dict) else None
        if not isinstance(bets, list):
            raise DataUnavailable(f"Malformed bet response for game session {session_id}")

        try:
            records = [BetRecord.model_validate(bet) for bet in bets]
        except ValidationError as e:
            raise DataUnavailable(f"Invalid bet record for game session {session_id}: {e}") from e

        logger.debug("fetched %d bets for game session %d", len(records), session_id)
        return records
