"""Protocol eras: which contract, signer and signature encoding a session used.

Each era covers a half-open range of session ids. The table is passed in
so the selection policy can be tested and swapped without touching the
verifier.
"""

from dataclasses import dataclass

from eth_utils import to_checksum_address

from errors import UnsupportedSession
from protocol import ERAS, SIGNATURE_VERSION_LEGACY, SIGNATURE_VERSION_EIP712


@dataclass(frozen=True)
class Era:
    min_session_id: int
    max_session_id: int | None  # exclusive, None = open-ended
    contract_address: str
    server_address: str
    signature_version: int

    def __post_init__(self):
        if self.max_session_id is not None and self.max_session_id <= self.min_session_id:
            raise ValueError(f"Empty era [{self.min_session_id}, {self.max_session_id})")
        if self.signature_version not in (SIGNATURE_VERSION_LEGACY, SIGNATURE_VERSION_EIP712):
            raise ValueError(f"Unknown signature version: {self.signature_version}")
        object.__setattr__(self, "contract_address", to_checksum_address(self.contract_address))
        object.__setattr__(self, "server_address", to_checksum_address(self.server_address))

    def contains(self, session_id: int) -> bool:
        if session_id < self.min_session_id:
            return False
        return self.max_session_id is None or session_id < self.max_session_id

    def to_dict(self) -> dict:
        return {
            "min_session_id": self.min_session_id,
            "max_session_id": self.max_session_id,
            "contract_address": self.contract_address,
            "server_address": self.server_address,
            "signature_version": self.signature_version,
        }


class EraResolver:
    """Maps a session id to the era active when the session was created."""

    def __init__(self, eras: list[Era]):
        if not eras:
            raise ValueError("At least one era is required")
        eras = sorted(eras, key=lambda e: e.min_session_id)
        for prev, era in zip(eras, eras[1:]):
            if prev.max_session_id is None:
                raise ValueError("Only the last era may be open-ended")
            if prev.max_session_id != era.min_session_id:
                raise ValueError(
                    f"Eras must be contiguous: [{prev.min_session_id}, {prev.max_session_id}) "
                    f"then [{era.min_session_id}, ...)"
                )
        self.eras = tuple(eras)

    @classmethod
    def default(cls) -> "EraResolver":
        return cls([Era(*row) for row in ERAS])

    def resolve(self, session_id: int) -> Era:
        for era in self.eras:
            if era.contains(session_id):
                return era
        raise UnsupportedSession(session_id)
