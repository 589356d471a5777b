import sys
import os

# Ensure the repo root is on the path for all tests
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from eth_keys import keys
from eth_utils import keccak, to_checksum_address

from crypto import bet_digest
from eras import Era, EraResolver
from games import Game, GAMES, OutcomeEngine
from models import BetRecord, SessionEndpoints


# Throwaway secp256k1 identities for deterministic tests
SERVER_KEY = keys.PrivateKey(b"\x11" * 32)
USER_KEY = keys.PrivateKey(b"\x22" * 32)
OTHER_KEY = keys.PrivateKey(b"\x33" * 32)

SERVER_ADDRESS = SERVER_KEY.public_key.to_checksum_address()
USER_ADDRESS = USER_KEY.public_key.to_checksum_address()
OTHER_ADDRESS = OTHER_KEY.public_key.to_checksum_address()

CONTRACT_A = to_checksum_address("0x" + "a1" * 20)
CONTRACT_B = to_checksum_address("0x" + "b2" * 20)
CONTRACT_C = to_checksum_address("0x" + "c3" * 20)

TEST_CHAIN_ID = 1

# Same thresholds and encodings as production, test signer and contracts
TEST_ERAS = [
    Era(256, 572, CONTRACT_A, SERVER_ADDRESS, 1),
    Era(572, 638, CONTRACT_B, SERVER_ADDRESS, 2),
    Era(638, None, CONTRACT_C, SERVER_ADDRESS, 1),
]

LEGACY_SESSION = 300
EIP712_SESSION = 600
CURRENT_SESSION = 700

# A mix of every game type
MIXED_BETS = [
    (1, 50, 1000),
    (2, 30, 2000),
    (3, 0b000000111111, 1200),
    (4, 1, 500),
    (1, 95, 800),
]

FIXED_WIN = 250


class FixedWin(Game):
    """Test game: result is always 0 and every bet wins its stake."""
    game_type = FIXED_WIN
    range = 1

    def check_num(self, num):
        pass

    def won(self, num, result):
        return True

    def total_won(self, num, value):
        return 2 * value

    def profit(self, num, value, result):
        return value


def make_resolver() -> EraResolver:
    return EraResolver(TEST_ERAS)


def fixed_win_engine() -> OutcomeEngine:
    return OutcomeEngine({**GAMES, FIXED_WIN: FixedWin()})


def sign_digest(key, digest: bytes) -> str:
    """65-byte r||s||v signature with v in {27, 28}, as wallets produce it."""
    sig = key.sign_msg_hash(digest)
    return "0x" + sig.r.to_bytes(32, "big").hex() + sig.s.to_bytes(32, "big").hex() + bytes([sig.v + 27]).hex()


def seed_chain(end_seed: bytes, n: int) -> tuple[str, list[tuple[str, str]]]:
    """Build a hash chain last-to-first.

    Returns (head, [(seed, hash), ...]) with the first round first.
    Round i reveals a seed whose hash is its commitment; hashing that
    commitment again gives round i-1's commitment.
    """
    values = [end_seed]
    for _ in range(n):
        values.append(keccak(values[-1]))
    rounds = [("0x" + values[n - i].hex(), "0x" + values[n - i + 1].hex()) for i in range(1, n + 1)]
    return "0x" + values[n].hex(), rounds


def flip_hex_byte(value: str, index: int) -> str:
    """Flip the lowest bit of byte *index* of a 0x hex string."""
    raw = bytearray(bytes.fromhex(value[2:]))
    raw[index] ^= 0x01
    return "0x" + raw.hex()


def build_session(session_id=CURRENT_SESSION, bets=MIXED_BETS, ended_normally=True,
                  engine=None, resolver=None, chain_id=TEST_CHAIN_ID, user_key=USER_KEY):
    """Build a consistent, fully signed session.

    Returns (endpoints, records) with records newest first, the order the
    backend delivers them.
    """
    engine = engine or OutcomeEngine()
    era = (resolver or make_resolver()).resolve(session_id) if bets else None
    tag = session_id.to_bytes(8, "big")
    server_head, server_chain = seed_chain(keccak(b"server" + tag), len(bets))
    user_head, user_chain = seed_chain(keccak(b"user" + tag), len(bets))
    user_address = user_key.public_key.to_checksum_address()

    balance = 0
    records = []
    for i, (game_type, num, value) in enumerate(bets, start=1):
        server_seed, server_hash = server_chain[i - 1]
        user_seed, user_hash = user_chain[i - 1]
        content = {
            "roundId": i, "gameType": game_type, "num": num, "value": value,
            "balance": balance, "serverHash": server_hash, "userHash": user_hash,
            "gameId": session_id,
        }
        digest = bet_digest(content, chain_id, era.contract_address, era.signature_version)
        records.append(BetRecord(
            round_id=i, game_type=game_type, num=num, value=value, balance=balance,
            server_hash=server_hash, user_hash=user_hash,
            server_seed=server_seed, user_seed=user_seed,
            result_num=engine.result_number(game_type, server_seed, user_seed, num),
            server_sig=sign_digest(SERVER_KEY, digest),
            user_sig=sign_digest(user_key, digest),
            session_id=session_id, user_address=user_address,
        ))
        balance = engine.new_balance(game_type, num, value, server_seed, user_seed, balance)

    endpoints = SessionEndpoints(
        session_id=session_id,
        final_round_count=len(bets) + (1 if ended_normally else 0),
        settled_balance=balance,
        server_chain_head=server_head,
        user_chain_head=user_head,
        ended_normally=ended_normally,
    )
    return endpoints, list(reversed(records))


def bet_json(record: BetRecord) -> dict:
    """A record as the backend serves it: camelCase, user nested."""
    data = record.model_dump(by_alias=True, exclude={"user_address", "contract_address"})
    data["user"] = {"address": record.user_address}
    return data
