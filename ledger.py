"""The vote ledger: one vote per voter per position, enforced by the database."""
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from db import session_scope
from errors import (
    CandidateNotFound,
    CrossLevelVote,
    DuplicateVote,
    EligibilityUndetermined,
    MalformedCandidate,
    SessionInvalid,
    StorageFault,
    VotingClosed,
)
from models import Candidate, Vote, Voter
from taxonomy import resolve_level, resolve_position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoteRecord:
    id: int
    voter_id: str
    candidate_id: str
    position: str
    level: str
    cast_at: datetime

    @classmethod
    def from_model(cls, vote: Vote) -> "VoteRecord":
        return cls(
            id=vote.id,
            voter_id=vote.voter_id,
            candidate_id=vote.candidate_id,
            position=vote.position,
            level=vote.level,
            cast_at=vote.cast_at,
        )


class VoteLedger:
    """Accepts or rejects single votes.

    The unique index on ``votes (voter_id, position, level)`` is what decides a
    race between two submissions for the same voter and position: both may pass
    every check below, only one INSERT commits, and the loser's IntegrityError
    is turned into ``DuplicateVote`` carrying the winner's row.
    """

    def __init__(self, session_factory, gate):
        self.Session = session_factory
        self.gate = gate

    def cast_vote(self, voter_id, candidate_id) -> VoteRecord:
        if not self.gate.is_open():
            raise VotingClosed()

        with session_scope(self.Session, "casting vote") as session:
            voter = session.get(Voter, voter_id) if voter_id else None
            if voter is None:
                raise SessionInvalid()

            level = resolve_level(voter.level)
            if level is None:
                raise EligibilityUndetermined()

            candidate = session.get(Candidate, candidate_id) if candidate_id else None
            if candidate is None:
                raise CandidateNotFound()

            if resolve_level(candidate.level) != level:
                logger.warning(
                    f"Voter {voter_id} ({level}) tried to vote for candidate "
                    f"{candidate_id} ({candidate.level})"
                )
                raise CrossLevelVote()

            position = resolve_position(candidate.position)
            if position is None:
                raise MalformedCandidate()

            voter_pk = voter.id
            vote = Vote(voter_id=voter_pk, candidate_id=candidate.id, position=position, level=level)
            session.add(vote)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                existing = self._find(session, voter_pk, position, level)
                if existing is None:
                    # a constraint other than the one-vote rule
                    logger.exception(f"Vote insert for voter {voter_id} failed")
                    raise StorageFault() from exc
                logger.warning(f"Duplicate vote rejected: voter {voter_id} already voted for {position}")
                raise DuplicateVote(VoteRecord.from_model(existing))

            record = VoteRecord.from_model(vote)
            logger.info(f"Vote recorded: voter {voter_id} -> candidate {candidate_id} ({level} {position})")
            return record

    def votes_for_voter(self, voter_id):
        with session_scope(self.Session, "listing votes") as session:
            rows = session.scalars(
                select(Vote).where(Vote.voter_id == voter_id).order_by(Vote.position, Vote.id)
            )
            return [VoteRecord.from_model(v) for v in rows]

    @staticmethod
    def _find(session, voter_id, position, level):
        return session.scalars(
            select(Vote).where(
                Vote.voter_id == voter_id,
                Vote.position == position,
                Vote.level == level,
            )
        ).first()
