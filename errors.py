"""Error taxonomy for session audits.

DataUnavailable means the inputs could not be fetched and the audit may be
retried. Every VerificationError is a definitive verdict about the data:
the session history is invalid, and the error names the first check that
failed and the round it failed on.
"""

from protocol import Check


class AuditError(Exception):
    code = "audit_error"


class DataUnavailable(AuditError):
    """A collaborator could not supply endpoints or bets. Safe to retry."""
    code = "data_unavailable"


class VerificationError(AuditError):
    code = "verification_failed"
    check: Check | None = None

    def __init__(self, message: str, round_id: int | None = None):
        super().__init__(message)
        self.round_id = round_id


class UnsupportedSession(VerificationError):
    check = Check.UNSUPPORTED_SESSION

    def __init__(self, session_id: int):
        super().__init__(f"Verification not supported for game session {session_id}")
        self.session_id = session_id


class CountMismatch(VerificationError):
    check = Check.COUNT

    def __init__(self, expected: int, got: int):
        super().__init__(f"Invalid number of bets! Expected: {expected} Got: {got}")
        self.expected = expected
        self.got = got


class ForeignRecord(VerificationError):
    check = Check.FOREIGN_RECORD

    def __init__(self, round_id: int, session_id: int):
        super().__init__(f"Bet with roundId {round_id} belongs to game session {session_id}", round_id)
        self.session_id = session_id


class WrongContract(VerificationError):
    check = Check.CONTRACT

    def __init__(self, round_id: int, expected: str, got: str):
        super().__init__(f"Bet with roundId {round_id} was signed for contract {got} instead of {expected}", round_id)
        self.expected = expected
        self.got = got


class BrokenHashChain(VerificationError):
    check = Check.HASH_CHAIN

    def __init__(self, round_id: int, side: str, detail: str = "hash chain broken"):
        super().__init__(f"Invalid {side} {detail} for bet with roundId: {round_id}", round_id)
        self.side = side


class InvalidSignature(VerificationError):
    check = Check.SIGNATURE

    def __init__(self, round_id: int, party: str):
        super().__init__(f"Invalid {party} signature for bet with roundId: {round_id}", round_id)
        self.party = party


class BadOutcome(VerificationError):
    check = Check.OUTCOME

    def __init__(self, round_id: int, expected: int | None, got: int, detail: str = ""):
        msg = f"Invalid number {got} instead of {expected} for bet with roundId: {round_id}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg, round_id)
        self.expected = expected
        self.got = got


class BalanceMismatch(VerificationError):
    check = Check.BALANCE

    def __init__(self, round_id: int, expected: int, got: int):
        super().__init__(f"Invalid balance {got} instead of {expected} for bet with roundId: {round_id}", round_id)
        self.expected = expected
        self.got = got


class FinalBalanceMismatch(VerificationError):
    check = Check.FINAL_BALANCE

    def __init__(self, expected: int, got: int):
        super().__init__(f"Invalid game session balance {got} instead of {expected}")
        self.expected = expected
        self.got = got
