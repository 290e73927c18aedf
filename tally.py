# tally.py
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, select

from db import session_scope
from models import Candidate, Vote
from taxonomy import resolve_level, resolve_position


@dataclass(frozen=True)
class TallyRow:
    candidate_id: str
    first_name: str
    middle_name: Optional[str]
    last_name: str
    party_list: str
    position: str
    level: Optional[str]
    photo_path: Optional[str]
    votes: int


def tally(session_factory, level=None, position=None):
    """Vote count per candidate, zero-vote candidates included.

    Counting happens in SQL; level and position are canonicalized afterwards so
    legacy spellings like ``"senior high"`` land under ``"SHS"``. Ordered by
    level, position, votes (high first), then last name. Read-only; a vote
    committing concurrently may or may not be counted.
    """
    votes = func.count(Vote.id).label("votes")
    columns = (
        Candidate.id,
        Candidate.first_name,
        Candidate.middle_name,
        Candidate.last_name,
        Candidate.party_list,
        Candidate.position,
        Candidate.level,
        Candidate.photo_path,
    )
    query = (
        select(*columns, votes)
        .outerjoin(Vote, Vote.candidate_id == Candidate.id)
        .group_by(*columns)
    )

    with session_scope(session_factory, "computing tally") as session:
        rows = [
            TallyRow(
                candidate_id=row.id,
                first_name=row.first_name,
                middle_name=row.middle_name,
                last_name=row.last_name,
                party_list=row.party_list,
                position=resolve_position(row.position) or row.position,
                level=resolve_level(row.level) or row.level,
                photo_path=row.photo_path,
                votes=int(row.votes),
            )
            for row in session.execute(query)
        ]

    if level:
        wanted = resolve_level(level) or level
        rows = [r for r in rows if r.level == wanted]
    if position:
        wanted = resolve_position(position) or position
        rows = [r for r in rows if r.position == wanted]
    return sorted(rows, key=lambda r: (r.level or "", r.position or "", -r.votes, r.last_name))
