"""Crypto primitives for the game-session auditor.

Provides:
- Keccak-256 commitments for the commit-reveal seed chains
- Signed bet digests in both historical encodings
  (v1: legacy eth_signTypedData, v2: EIP-712)
- secp256k1 signer recovery and bet signature verification

Dependencies: eth-utils, eth-abi, eth-account, eth-keys
"""

from eth_abi.packed import encode_packed
from eth_account.messages import encode_typed_data
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import keccak, to_bytes, to_checksum_address

from protocol import (
    EIP712_DOMAIN_NAME, EIP712_DOMAIN_VERSION, WEI_PER_GWEI,
    SIGNATURE_VERSION_LEGACY, SIGNATURE_VERSION_EIP712,
)

# Fields covered by both party signatures, nothing else
SIGNED_FIELDS = ("roundId", "gameType", "num", "value", "balance", "serverHash", "userHash", "gameId")


# ---------------------------------------------------------------------------
# Keccak-256 -- seed commitments
# ---------------------------------------------------------------------------

def keccak_hex(data: bytes) -> str:
    """Keccak-256 of raw bytes as lower-case 0x hex."""
    return "0x" + keccak(data).hex()


def seed_commitment(seed: str) -> str:
    """Commitment of a 0x hex seed: keccak of its bytes, not of the string."""
    return keccak_hex(to_bytes(hexstr=seed))


def combined_seed(server_seed: str, user_seed: str) -> bytes:
    """keccak(serverSeed || userSeed), the entropy every game result is drawn from."""
    return keccak(to_bytes(hexstr=server_seed) + to_bytes(hexstr=user_seed))


# ---------------------------------------------------------------------------
# Signed bet digests
# ---------------------------------------------------------------------------

# (declared type, label, content key); the declared type is hashed into the schema
_LEGACY_SCHEMA = [
    ("uint32", "Round Id", "roundId"),
    ("uint8", "Game Type", "gameType"),
    ("uint16", "Number", "num"),
    ("uint", "Value (Wei)", "value"),
    ("int", "Current Balance (Wei)", "balance"),
    ("bytes32", "Server Hash", "serverHash"),
    ("bytes32", "Player Hash", "userHash"),
    ("uint", "Game Id", "gameId"),
    ("address", "Contract Address", None),
]

_EIP712_TYPES = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ],
    "Bet": [
        {"name": "roundId", "type": "uint32"},
        {"name": "gameType", "type": "uint8"},
        {"name": "number", "type": "uint16"},
        {"name": "value", "type": "uint256"},
        {"name": "balance", "type": "int256"},
        {"name": "serverHash", "type": "bytes32"},
        {"name": "userHash", "type": "bytes32"},
        {"name": "gameId", "type": "uint256"},
    ],
}


def _abi_type(declared: str) -> str:
    return {"uint": "uint256", "int": "int256"}.get(declared, declared)


def _wei_values(content: dict) -> dict:
    """Bets are stored in gwei but were signed in wei."""
    return {
        **content,
        "value": content["value"] * WEI_PER_GWEI,
        "balance": content["balance"] * WEI_PER_GWEI,
        "serverHash": to_bytes(hexstr=content["serverHash"]),
        "userHash": to_bytes(hexstr=content["userHash"]),
    }


def legacy_typed_hash(content: dict, contract_address: str) -> bytes:
    """Version 1 digest: keccak(keccak(schema) || keccak(values)).

    Predates chain-id domain separation; the contract address is the last
    typed entry.
    """
    values = _wei_values(content)
    schema = [f"{declared} {label}" for declared, label, _ in _LEGACY_SCHEMA]
    types = [_abi_type(declared) for declared, _, _ in _LEGACY_SCHEMA]
    data = [values[key] if key else to_checksum_address(contract_address) for _, _, key in _LEGACY_SCHEMA]

    schema_hash = keccak(encode_packed(["string"] * len(schema), schema))
    values_hash = keccak(encode_packed(types, data))
    return keccak(schema_hash + values_hash)


def eip712_hash(content: dict, chain_id: int, contract_address: str) -> bytes:
    """Version 2 digest: EIP-712 typed data bound to chain id and contract."""
    values = _wei_values(content)
    typed = {
        "types": _EIP712_TYPES,
        "primaryType": "Bet",
        "domain": {
            "name": EIP712_DOMAIN_NAME,
            "version": EIP712_DOMAIN_VERSION,
            "chainId": chain_id,
            "verifyingContract": to_checksum_address(contract_address),
        },
        "message": {
            "roundId": values["roundId"],
            "gameType": values["gameType"],
            "number": values["num"],
            "value": values["value"],
            "balance": values["balance"],
            "serverHash": values["serverHash"],
            "userHash": values["userHash"],
            "gameId": values["gameId"],
        },
    }
    signable = encode_typed_data(full_message=typed)
    # EIP-191: 0x19 || version || domain separator || struct hash
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def bet_digest(content: dict, chain_id: int, contract_address: str, version: int) -> bytes:
    """The 32-byte digest both parties signed for a bet."""
    if version == SIGNATURE_VERSION_LEGACY:
        return legacy_typed_hash(content, contract_address)
    if version == SIGNATURE_VERSION_EIP712:
        return eip712_hash(content, chain_id, contract_address)
    raise ValueError(f"Unknown signature version: {version}")


# ---------------------------------------------------------------------------
# secp256k1 recovery
# ---------------------------------------------------------------------------

def recover_signer(digest: bytes, signature: str) -> str | None:
    """Recover the checksum address that signed *digest*.

    Returns None for anything that is not a recoverable 65-byte r||s||v
    signature.
    """
    try:
        sig = to_bytes(hexstr=signature)
    except (ValueError, TypeError):
        return None
    if len(sig) != 65:
        return None

    v = sig[64]
    if v >= 27:
        v -= 27
    if v not in (0, 1):
        return None

    r = int.from_bytes(sig[:32], "big")
    s = int.from_bytes(sig[32:64], "big")
    try:
        pubkey = keys.Signature(vrs=(v, r, s)).recover_public_key_from_msg_hash(digest)
    except (BadSignature, ValidationError, ValueError):
        return None
    return pubkey.to_checksum_address()


def verify_signature(
    content: dict,
    chain_id: int,
    contract_address: str,
    signer_address: str,
    signature: str,
    version: int,
) -> bool:
    """True if *signature* over the bet *content* recovers to *signer_address*."""
    digest = bet_digest(content, chain_id, contract_address, version)
    recovered = recover_signer(digest, signature)
    if recovered is None:
        return False
    return recovered.lower() == signer_address.lower()
