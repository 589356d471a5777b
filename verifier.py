"""Game session verification.

Replays a finished session bet by bet and checks, in order:
  1. the number of bets matches the on-chain round count
  2. both seed hash chains, revealed seeds included, are anchored at the
     published heads and unbroken
  3. per bet: server and user signatures, seed commitments, result number,
     pre-round balance
  4. the final balance matches the settlement (regular endings only)

The first failed check aborts with a VerificationError naming the check and
round. There is no partial verdict.
"""

import logging

from crypto import verify_signature
from eras import EraResolver
from errors import (
    VerificationError, CountMismatch, ForeignRecord, WrongContract, InvalidSignature,
    BadOutcome, BalanceMismatch, FinalBalanceMismatch,
)
from games import OutcomeEngine
from hashchain import HashChainValidator, check_commitments
from models import BetRecord, SessionEndpoints, Verdict
from protocol import CHAIN_ID

logger = logging.getLogger(__name__)


class SessionVerifier:
    """Stateless; one instance can audit any number of sessions concurrently."""

    def __init__(self, resolver: EraResolver | None = None, engine: OutcomeEngine | None = None,
                 chain_id: int = CHAIN_ID):
        self.resolver = resolver or EraResolver.default()
        self.engine = engine or OutcomeEngine()
        self.chain_id = chain_id

    def verify(self, session_id: int, endpoints: SessionEndpoints, records: list[BetRecord]) -> int:
        """Verify every bet of a session. Returns the number of verified bets.

        *records* may be in any order; the backend delivers them newest first.
        """
        expected = endpoints.expected_bets
        if len(records) != expected:
            raise CountMismatch(expected, len(records))
        if expected == 0:
            logger.info("game session %d has no bets", session_id)
            return 0

        era = self.resolver.resolve(session_id)
        bets = sorted(records, key=lambda r: r.round_id)

        for bet in bets:
            if bet.session_id != session_id:
                raise ForeignRecord(bet.round_id, bet.session_id)
            if bet.contract_address is not None and bet.contract_address != era.contract_address:
                raise WrongContract(bet.round_id, era.contract_address, bet.contract_address)

        HashChainValidator(endpoints.server_chain_head, endpoints.user_chain_head).validate(bets)

        balance = 0
        for bet in bets:
            self._check_signatures(bet, era)
            check_commitments(bet)
            self._check_outcome(bet)

            if bet.balance != balance:
                raise BalanceMismatch(bet.round_id, balance, bet.balance)
            balance = self.engine.new_balance(
                bet.game_type, bet.num, bet.value, bet.server_seed, bet.user_seed, balance,
            )
            logger.debug("round %d ok, balance %d", bet.round_id, balance)

        if endpoints.ended_normally:
            if balance != endpoints.settled_balance:
                raise FinalBalanceMismatch(endpoints.settled_balance, balance)
        else:
            logger.info(
                "game session %d was force ended; settlement %d not compared to last agreed balance %d",
                session_id, endpoints.settled_balance, balance,
            )

        return len(bets)

    def _check_signatures(self, bet: BetRecord, era) -> None:
        content = bet.signed_content()
        signers = (("server", era.server_address, bet.server_sig), ("user", bet.user_address, bet.user_sig))
        for party, address, sig in signers:
            if not verify_signature(content, self.chain_id, era.contract_address, address, sig,
                                    era.signature_version):
                raise InvalidSignature(bet.round_id, party)

    def _check_outcome(self, bet: BetRecord) -> None:
        try:
            result = self.engine.result_number(bet.game_type, bet.server_seed, bet.user_seed, bet.num)
        except ValueError as e:
            raise BadOutcome(bet.round_id, None, bet.result_num, str(e)) from e
        if result != bet.result_num:
            raise BadOutcome(bet.round_id, result, bet.result_num)


def verify_session(session_id: int, endpoints: SessionEndpoints, records: list[BetRecord],
                   verifier: SessionVerifier | None = None) -> Verdict:
    """Run a verification and fold the outcome into a Verdict.

    Only verification failures become verdicts; DataUnavailable and
    programming errors propagate.
    """
    verifier = verifier or SessionVerifier()
    try:
        count = verifier.verify(session_id, endpoints, records)
    except VerificationError as e:
        logger.warning("game session %d invalid: %s", session_id, e)
        return Verdict(
            session_id=session_id, ok=False,
            check=e.check.value if e.check else None,
            round_id=e.round_id, message=str(e),
        )
    logger.info("all %d bets for game session %d are valid", count, session_id)
    return Verdict(
        session_id=session_id, ok=True, verified_bets=count,
        message=f"All {count} bets for game session {session_id} are valid!",
    )
