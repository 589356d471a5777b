"""Value types for audit inputs and verdicts.

Bets arrive from the backend as loosely typed JSON (camelCase, numbers as
strings, the user nested under "user"). They are validated into strict,
immutable models here so malformed input never reaches a check.
"""

import re

from eth_utils import is_address, to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from crypto import SIGNED_FIELDS
from protocol import WEI_PER_GWEI

_HASH_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")
_HEX_RE = re.compile(r"^0x[0-9a-fA-F]*$")

UINT8_MAX = 2**8 - 1
UINT16_MAX = 2**16 - 1
UINT32_MAX = 2**32 - 1
INT256_MIN = -(2**255)
INT256_MAX = 2**255 - 1
UINT256_MAX = 2**256 - 1

# Bet amounts are gwei but signed as wei, so they must still fit after scaling
MAX_VALUE_GWEI = UINT256_MAX // WEI_PER_GWEI
MIN_BALANCE_GWEI = -(-INT256_MIN // WEI_PER_GWEI)
MAX_BALANCE_GWEI = INT256_MAX // WEI_PER_GWEI


def _hash32(value: str) -> str:
    if not isinstance(value, str) or not _HASH_RE.match(value):
        raise ValueError("expected 0x-prefixed 32-byte hex")
    return value.lower()


def _address(value: str) -> str:
    if not isinstance(value, str) or not is_address(value):
        raise ValueError(f"invalid address: {value!r}")
    return to_checksum_address(value)


def wei_to_gwei(wei: int) -> int:
    """Exact wei -> gwei conversion. Settlements are whole gwei."""
    gwei, rest = divmod(wei, WEI_PER_GWEI)
    if rest:
        raise ValueError(f"{wei} wei is not a whole number of gwei")
    return gwei


class SessionEndpoints(BaseModel):
    """Ledger facts for one session: chain heads from creation, settlement from ending."""
    model_config = ConfigDict(frozen=True, strict=True)

    session_id: int = Field(ge=0)
    final_round_count: int = Field(ge=0, le=UINT32_MAX)
    settled_balance: int = Field(ge=INT256_MIN, le=INT256_MAX)
    server_chain_head: str
    user_chain_head: str
    ended_normally: bool

    @field_validator("server_chain_head", "user_chain_head")
    @classmethod
    def _heads(cls, value: str) -> str:
        return _hash32(value)

    @model_validator(mode="after")
    def _closing_round(self):
        if self.ended_normally and self.final_round_count == 0:
            raise ValueError("a regularly ended session has at least its closing round")
        return self

    @property
    def expected_bets(self) -> int:
        # a regular ending spends one extra closing round that is not a bet
        return self.final_round_count - (1 if self.ended_normally else 0)


class BetRecord(BaseModel):
    """One signed round as delivered by the backend."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    round_id: int = Field(alias="roundId", ge=0, le=UINT32_MAX)
    game_type: int = Field(alias="gameType", ge=0, le=UINT8_MAX)
    num: int = Field(ge=0, le=UINT16_MAX)
    value: int = Field(ge=0, le=MAX_VALUE_GWEI)
    balance: int = Field(ge=MIN_BALANCE_GWEI, le=MAX_BALANCE_GWEI)
    server_hash: str = Field(alias="serverHash")
    user_hash: str = Field(alias="userHash")
    server_seed: str = Field(alias="serverSeed")
    user_seed: str = Field(alias="userSeed")
    result_num: int = Field(alias="resultNum", ge=0)
    server_sig: str = Field(alias="serverSig")
    user_sig: str = Field(alias="userSig")
    session_id: int = Field(alias="gameId", ge=0)
    user_address: str = Field(alias="userAddress")
    contract_address: str | None = Field(default=None, alias="contractAddress")

    @model_validator(mode="before")
    @classmethod
    def _flatten_user(cls, data):
        # backend nests the player: {"user": {"address": "0x.."}}
        if isinstance(data, dict) and "userAddress" not in data and "user_address" not in data:
            user = data.get("user")
            if isinstance(user, dict) and "address" in user:
                data = {**data, "userAddress": user["address"]}
        return data

    @field_validator("server_hash", "user_hash", "server_seed", "user_seed")
    @classmethod
    def _hashes(cls, value: str) -> str:
        return _hash32(value)

    @field_validator("user_address")
    @classmethod
    def _user_address(cls, value: str) -> str:
        return _address(value)

    @field_validator("contract_address")
    @classmethod
    def _contract_address(cls, value):
        return None if value is None else _address(value)

    @field_validator("server_sig", "user_sig")
    @classmethod
    def _hex(cls, value: str) -> str:
        if not _HEX_RE.match(value):
            raise ValueError("expected 0x-prefixed hex signature")
        return value

    def signed_content(self) -> dict:
        """The exact payload covered by both signatures."""
        values = (
            self.round_id, self.game_type, self.num, self.value, self.balance,
            self.server_hash, self.user_hash, self.session_id,
        )
        return dict(zip(SIGNED_FIELDS, values))


class Verdict(BaseModel):
    session_id: int
    ok: bool
    verified_bets: int = 0
    check: str | None = None
    round_id: int | None = None
    message: str = ""
