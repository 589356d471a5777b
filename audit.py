#!/usr/bin/env python3
"""audit -- independently verify a finished Dicether game session.

Usage:
    audit <game_id>                     Verify every bet of the game session

Options:
    audit --api URL <game_id>           Backend API serving the bets
    audit --rpc URL <game_id>           Ethereum JSON-RPC node to read the contract events
    audit --json <game_id>              Print the verdict as JSON on stdout
    audit -v <game_id>                  Log every check

Config:
    AUDIT_API_URL                       Default backend API
    AUDIT_RPC_URL                       Default JSON-RPC node
    AUDIT_CHAIN_ID                      Chain the sessions were played on (default 1)

Exit status: 0 all bets valid, 1 session invalid, 2 could not verify.
"""

import asyncio
import logging
import sys

from client import BetHistoryClient
from eras import EraResolver
from errors import DataUnavailable, UnsupportedSession
from ledger import LedgerReader
from models import Verdict
from protocol import CHAIN_ID, DEFAULT_API_URL, DEFAULT_RPC_URL
from verifier import SessionVerifier, verify_session

EXIT_VALID = 0
EXIT_INVALID = 1
EXIT_UNAVAILABLE = 2

# --- Colors ---
C_RESET = "\033[0m"
C_RED = "\033[31m"
C_GREEN = "\033[32m"
C_DIM = "\033[2m"
C_BOLD = "\033[1m"

if not sys.stderr.isatty():
    C_RESET = C_RED = C_GREEN = C_DIM = C_BOLD = ""


def status(icon, msg):
    print(f"  {icon}  {msg}", file=sys.stderr)


async def fetch_session(session_id: int, era, ledger: LedgerReader, bets: BetHistoryClient,
                        chain_id: int = CHAIN_ID):
    """Fetch endpoints and bets concurrently. Returns (endpoints, records)."""
    async def read_ledger():
        await asyncio.to_thread(ledger.check_chain_id, chain_id)
        return await asyncio.to_thread(ledger.read_endpoints, session_id, era)

    return await asyncio.gather(read_ledger(), bets.fetch_bets(session_id))


def audit_session(session_id: int, api_url: str = DEFAULT_API_URL, rpc_url: str = DEFAULT_RPC_URL,
                  resolver: EraResolver | None = None) -> Verdict:
    """Fetch and verify one game session. Raises DataUnavailable if inputs can't be loaded."""
    resolver = resolver or EraResolver.default()
    try:
        era = resolver.resolve(session_id)
    except UnsupportedSession as e:
        return Verdict(session_id=session_id, ok=False, check=e.check.value, message=str(e))

    endpoints, records = asyncio.run(fetch_session(
        session_id, era, LedgerReader(rpc_url), BetHistoryClient(base_url=api_url),
    ))
    return verify_session(session_id, endpoints, records, SessionVerifier(resolver=resolver))


def parse_args(args: list[str]) -> dict:
    opts = {"api": DEFAULT_API_URL, "rpc": DEFAULT_RPC_URL, "json": False, "verbose": False, "game_id": None}
    i = 0
    while i < len(args):
        a = args[i]
        if a == "--json":
            opts["json"] = True
        elif a in ("-v", "--verbose"):
            opts["verbose"] = True
        elif a.startswith("--api="):
            opts["api"] = a.split("=", 1)[1]
        elif a == "--api" and i + 1 < len(args):
            i += 1
            opts["api"] = args[i]
        elif a.startswith("--rpc="):
            opts["rpc"] = a.split("=", 1)[1]
        elif a == "--rpc" and i + 1 < len(args):
            i += 1
            opts["rpc"] = args[i]
        elif opts["game_id"] is None:
            opts["game_id"] = a
        else:
            raise ValueError(f"Unexpected argument: {a}")
        i += 1
    return opts


def main():
    if len(sys.argv) < 2 or sys.argv[1] in ("-h", "--help"):
        print(__doc__.strip())
        return

    try:
        opts = parse_args(sys.argv[1:])
        if opts["game_id"] is None:
            raise ValueError("Missing game id")
        session_id = int(opts["game_id"])
    except ValueError as e:
        status(f"{C_RED}!{C_RESET}", f"Could not parse arguments: {e}")
        sys.exit(EXIT_UNAVAILABLE)

    logging.basicConfig(
        level=logging.DEBUG if opts["verbose"] else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    status(f"{C_DIM}▸{C_RESET}", f"Verifying game session {C_BOLD}{session_id}{C_RESET}")
    try:
        verdict = audit_session(session_id, api_url=opts["api"], rpc_url=opts["rpc"])
    except DataUnavailable as e:
        status(f"{C_RED}!{C_RESET}", f"Could not verify game session with id: {session_id}: {e}")
        sys.exit(EXIT_UNAVAILABLE)

    if opts["json"]:
        print(verdict.model_dump_json())
    if verdict.ok:
        status(f"{C_GREEN}✓{C_RESET}", verdict.message)
        sys.exit(EXIT_VALID)
    status(f"{C_RED}✗{C_RESET}", f"Bet validation failed: {verdict.message}")
    sys.exit(EXIT_INVALID)


if __name__ == "__main__":
    main()
