"""On-chain session endpoints, read over Ethereum JSON-RPC.

A game session leaves exactly two events on its game channel contract:
  LogGameCreated -- the server and user hash chain heads
  LogGameEnded   -- final round id, settled balance (wei) and end reason

Both are looked up by the indexed gameId topic. Anything other than
exactly one event of each kind is a data-integrity failure of the ledger
read, reported as DataUnavailable.
"""

import logging

import requests
from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import to_bytes

from crypto import keccak_hex
from errors import DataUnavailable
from models import SessionEndpoints, wei_to_gwei
from protocol import DEFAULT_RPC_URL, LOG_GAME_CREATED, LOG_GAME_ENDED, ReasonEnded

logger = logging.getLogger(__name__)

GAME_CREATED_TOPIC = keccak_hex(LOG_GAME_CREATED.encode("ascii"))
GAME_ENDED_TOPIC = keccak_hex(LOG_GAME_ENDED.encode("ascii"))


def _uint_topic(value: int) -> str:
    return "0x" + value.to_bytes(32, "big").hex()


class LedgerReader:
    """Reads session endpoints from an Ethereum node."""

    def __init__(self, rpc_url: str = DEFAULT_RPC_URL, timeout: float = 30.0):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._id = 0

    def _rpc(self, method: str, params: list):
        """Make an Ethereum JSON-RPC call."""
        self._id += 1
        try:
            resp = requests.post(
                self.rpc_url,
                json={"jsonrpc": "2.0", "id": self._id, "method": method, "params": params},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            result = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise DataUnavailable(f"RPC {method} failed: {e}") from e
        if "error" in result:
            raise DataUnavailable(f"RPC error: {result['error']}")
        return result.get("result")

    def chain_id(self) -> int:
        return int(self._rpc("eth_chainId", []), 16)

    def check_chain_id(self, expected: int) -> None:
        actual = self.chain_id()
        if actual != expected:
            raise DataUnavailable(f"Node is on chain {actual}, sessions were played on chain {expected}")

    def _single_event(self, contract_address: str, topic: str, session_id: int, name: str) -> dict:
        logs = self._rpc("eth_getLogs", [{
            "address": contract_address,
            "fromBlock": "0x0",
            "toBlock": "latest",
            "topics": [topic, None, _uint_topic(session_id)],
        }])
        if not isinstance(logs, list) or len(logs) != 1:
            count = len(logs) if isinstance(logs, list) else "no"
            raise DataUnavailable(f"Could not read game info ({name}): {count} events for game session {session_id}")
        event = logs[0]
        try:
            event_session = int(event["topics"][2], 16)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise DataUnavailable(f"Malformed {name} event: {e}") from e
        if event_session != session_id:
            raise DataUnavailable(f"Could not read game info ({name}): event for game session {event_session}")
        return event

    def read_endpoints(self, session_id: int, era) -> SessionEndpoints:
        """Endpoints of *session_id* from the contract of its *era*."""
        created = self._single_event(era.contract_address, GAME_CREATED_TOPIC, session_id, "LogGameCreated")
        ended = self._single_event(era.contract_address, GAME_ENDED_TOPIC, session_id, "LogGameEnded")

        try:
            server_head = created["topics"][3]
            _stake, user_head = decode(["uint128", "bytes32"], to_bytes(hexstr=created["data"]))
            round_id, balance_wei, reason = decode(["uint32", "int256", "uint8"], to_bytes(hexstr=ended["data"]))
            endpoints = SessionEndpoints(
                session_id=session_id,
                final_round_count=round_id,
                settled_balance=wei_to_gwei(balance_wei),
                server_chain_head=server_head.lower(),
                user_chain_head="0x" + user_head.hex(),
                ended_normally=reason == ReasonEnded.REGULAR_ENDED,
            )
        except (KeyError, IndexError, TypeError, ValueError, DecodingError) as e:
            raise DataUnavailable(f"Malformed events for game session {session_id}: {e}") from e

        logger.debug(
            "game session %d: %d rounds, settled %d gwei, %s",
            session_id, endpoints.final_round_count, endpoints.settled_balance,
            "regular end" if endpoints.ended_normally else f"forced end (reason {reason})",
        )
        return endpoints
