# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2026 Karan Sharma
"""HTTP API for game session audits (FastAPI).

Read-only: every request fetches the session from the ledger and the
backend, verifies it, and returns the verdict. Nothing is stored.

Status codes:
- 200: a verdict (valid or invalid session)
- 422: the session id predates verification support
- 503: ledger or backend could not supply the session
"""

import sys
import os
# Ensure parent directory is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
from typing import Awaitable, Callable

from fastapi import FastAPI, HTTPException

from audit import fetch_session
from client import BetHistoryClient
from eras import Era, EraResolver
from errors import DataUnavailable, UnsupportedSession
from ledger import LedgerReader
from models import BetRecord, SessionEndpoints, Verdict
from protocol import CHAIN_ID, DEFAULT_API_URL, DEFAULT_RPC_URL
from verifier import SessionVerifier, verify_session

logger = logging.getLogger(__name__)

Fetcher = Callable[[int, Era], Awaitable[tuple[SessionEndpoints, list[BetRecord]]]]


def default_fetcher(api_url: str = DEFAULT_API_URL, rpc_url: str = DEFAULT_RPC_URL) -> Fetcher:
    ledger = LedgerReader(rpc_url)
    bets = BetHistoryClient(base_url=api_url)

    async def fetch(session_id: int, era: Era):
        return await fetch_session(session_id, era, ledger, bets, CHAIN_ID)

    return fetch


def create_app(
    fetch: Fetcher | None = None,
    resolver: EraResolver | None = None,
    verifier: SessionVerifier | None = None,
) -> FastAPI:
    """Create FastAPI app with injected dependencies.

    If fetch is not provided, sessions are read from AUDIT_RPC_URL and
    AUDIT_API_URL.
    """

    app = FastAPI(title="Game Session Audit", version="1.0")

    _resolver = resolver or EraResolver.default()
    _verifier = verifier or SessionVerifier(resolver=_resolver)
    _fetch = fetch or default_fetcher()

    @app.get("/health")
    async def health():
        return {"status": "ok", "chain_id": _verifier.chain_id}

    @app.get("/eras")
    async def eras():
        return {"eras": [era.to_dict() for era in _resolver.eras]}

    @app.get("/sessions/{session_id}/verify", response_model=Verdict)
    async def verify(session_id: int):
        try:
            era = _resolver.resolve(session_id)
        except UnsupportedSession as e:
            raise HTTPException(422, str(e))

        try:
            endpoints, records = await _fetch(session_id, era)
        except DataUnavailable as e:
            logger.warning("game session %d unavailable: %s", session_id, e)
            raise HTTPException(503, str(e))

        return verify_session(session_id, endpoints, records, _verifier)

    return app
