"""Commit-reveal hash chain validation.

Each party generated its seed chain last-to-first and published the final
link (the chain head) when the session was created. Round n reveals a seed
whose hash is round n's commitment, and hashing that commitment once more
gives round n-1's commitment. Walking forward from the head therefore
proves no seed was swapped or reordered after the fact.
"""

import logging

from crypto import seed_commitment
from errors import BrokenHashChain

logger = logging.getLogger(__name__)

SERVER = "server"
USER = "user"


def commitment_of(seed: str) -> str:
    return seed_commitment(seed)


def _sides(record):
    return (
        (SERVER, record.server_seed, record.server_hash),
        (USER, record.user_seed, record.user_hash),
    )


def check_commitments(record) -> None:
    """Both revealed seeds must hash to the commitments they were bet under."""
    for side, seed, declared in _sides(record):
        if commitment_of(seed) != declared:
            raise BrokenHashChain(record.round_id, side, "seed")


def link(records):
    """Yield (previous, record) for each consecutive pair."""
    for i in range(1, len(records)):
        yield records[i - 1], records[i]


class HashChainValidator:
    """Validates the server and user chains of an ascending bet sequence.

    Checks the anchors at the heads, then every revealed seed against its
    commitment, then the links between consecutive commitments.
    """

    def __init__(self, server_head: str, user_head: str):
        self.server_head = server_head.lower()
        self.user_head = user_head.lower()

    def validate(self, records) -> None:
        if not records:
            return

        first = records[0]
        if first.server_hash != self.server_head:
            raise BrokenHashChain(first.round_id, SERVER, "first bet hash")
        if first.user_hash != self.user_head:
            raise BrokenHashChain(first.round_id, USER, "first bet hash")

        for record in records:
            check_commitments(record)

        for prev, record in link(records):
            if commitment_of(record.server_hash) != prev.server_hash:
                raise BrokenHashChain(record.round_id, SERVER)
            if commitment_of(record.user_hash) != prev.user_hash:
                raise BrokenHashChain(record.round_id, USER)

        logger.debug("hash chains intact over %d bets", len(records))
