"""Shared constants for the game-session auditor.

All modules import from here to avoid circular dependencies.
"""

import os
from enum import Enum, IntEnum

# --- Network ---

# Sessions were played on mainnet
CHAIN_ID = int(os.environ.get("AUDIT_CHAIN_ID", "1"))

# Backend API serving the signed bet history
DEFAULT_API_URL = os.environ.get("AUDIT_API_URL", "https://api.dicether.com/api")

# Ethereum JSON-RPC endpoint used to read the game channel events
DEFAULT_RPC_URL = os.environ.get("AUDIT_RPC_URL", "http://localhost:8545")

# --- Units ---

# Bets and balances are kept in gwei; the contracts settle in wei
WEI_PER_GWEI = 10**9

# --- Signer / contracts ---

# House game session signer
SERVER_ADDRESS = "0xCef260a5Fed7A896BBE07b933B3A5c17aEC094D8"

CONTRACT_ADDRESS_2 = "0xbF8B9092e809DE87932B28ffaa00D520b04359aA"
CONTRACT_ADDRESS_3 = "0x3e07881993c7542a6Da9025550B54331474b21dd"
CONTRACT_ADDRESS_4 = "0xEB6F4eC38A347110941E86e691c2ca03e271dF3b"

# Sessions below this id predate the published verification data
MIN_SESSION_ID = 256
# First session signed with EIP-712 typed data
NEW_EIP_SESSION_ID = 572
# First session back on the legacy typed-data encoding
OLD_EIP_SESSION_ID = 638

SIGNATURE_VERSION_LEGACY = 1
SIGNATURE_VERSION_EIP712 = 2

# Era table: (min_session_id, max_session_id, contract, server, signature version).
# max_session_id is exclusive, None is open-ended.
ERAS = [
    (MIN_SESSION_ID, NEW_EIP_SESSION_ID, CONTRACT_ADDRESS_2, SERVER_ADDRESS, SIGNATURE_VERSION_LEGACY),
    (NEW_EIP_SESSION_ID, OLD_EIP_SESSION_ID, CONTRACT_ADDRESS_3, SERVER_ADDRESS, SIGNATURE_VERSION_EIP712),
    (OLD_EIP_SESSION_ID, None, CONTRACT_ADDRESS_4, SERVER_ADDRESS, SIGNATURE_VERSION_LEGACY),
]

# EIP-712 domain used by the version 2 encoding
EIP712_DOMAIN_NAME = "Dicether"
EIP712_DOMAIN_VERSION = "2"

# --- Games ---

# Payouts keep 1.5% of the total won
HOUSE_EDGE = 150
HOUSE_EDGE_DIVISOR = 10000

DICE_RANGE = 100
CHOOSE_FROM_12_RANGE = 12
FLIP_A_COIN_RANGE = 2


class GameType(IntEnum):
    NO_GAME = 0
    DICE_LOWER = 1
    DICE_HIGHER = 2
    CHOOSE_FROM_12 = 3
    FLIP_A_COIN = 4


class ReasonEnded(IntEnum):
    """Why a session was closed on chain. Only REGULAR_ENDED includes the closing round."""
    REGULAR_ENDED = 0
    SERVER_FORCED_END = 1
    USER_FORCED_END = 2
    CONFLICT_ENDED = 3


# --- Ledger events ---

LOG_GAME_CREATED = "LogGameCreated(address,uint256,uint128,bytes32,bytes32)"
LOG_GAME_ENDED = "LogGameEnded(address,uint256,uint32,int256,uint8)"


# --- Verdict checks ---

class Check(Enum):
    UNSUPPORTED_SESSION = "unsupported_session"
    COUNT = "count"
    FOREIGN_RECORD = "foreign_record"
    CONTRACT = "contract"
    HASH_CHAIN = "hash_chain"
    SIGNATURE = "signature"
    OUTCOME = "outcome"
    BALANCE = "balance"
    FINAL_BALANCE = "final_balance"
