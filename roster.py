# roster.py
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from credentials import hash_credential
from db import session_scope
from errors import InvalidLevel, InvalidStatus, MissingField, VoterExists, VoterNotFound
from models import Candidate, Voter
from taxonomy import normalize_school_id, resolve_level, resolve_position, resolve_year_label

logger = logging.getLogger(__name__)

_VOTER_FIELDS = ("full_name", "course", "year", "status", "password")


def to_status(value):
    """Spreadsheet status cell -> 0/1. Anything not clearly "voted" is 0."""
    text = str(value if value is not None else "").strip().lower()
    return 1 if text in ("1", "true", "yes", "y", "voted") else 0


def check_status(value):
    try:
        status = int(value)
    except (TypeError, ValueError):
        raise InvalidStatus()
    if status not in (0, 1):
        raise InvalidStatus()
    return status


def existing_school_keys(session, level):
    """All canonical school ids already on the roster for ``level``, as a set.

    Stored levels are compared after ``resolve_level``, so a legacy ``"shs"``
    row counts as SHS even though the unique index sees a different string.
    """
    rows = session.execute(select(Voter.school_key, Voter.level))
    return {key for key, stored in rows if resolve_level(stored) == level}


class RosterStore:
    """Voter and candidate records.

    Reads are plain lookups; writes validate labels through ``taxonomy`` and
    hash credentials explicitly before they reach the session.
    """

    def __init__(self, session_factory, hash_method=None):
        self.Session = session_factory
        self.hash_method = hash_method

    # voters

    def get_voter(self, voter_id):
        with session_scope(self.Session, "loading voter") as session:
            return session.get(Voter, voter_id)

    def list_voters(self, level=None):
        with session_scope(self.Session, "listing voters") as session:
            voters = session.scalars(select(Voter).order_by(Voter.created_at.desc()))
            if not level:
                return list(voters)
            wanted = resolve_level(level) or level
            return [v for v in voters if (resolve_level(v.level) or v.level) == wanted]

    def add_voter(self, school_id, full_name, year, level, password, course=None, status=0):
        if not str(school_id or "").strip() or not str(full_name or "").strip() \
                or not str(year or "").strip() or not level:
            raise MissingField("schoolId, fullName, year, department are required")
        canonical = resolve_level(level)
        if canonical is None:
            raise InvalidLevel("Invalid department")
        status = check_status(status)
        if not password:
            raise MissingField("password is required")

        voter = Voter(
            school_id=str(school_id).strip(),
            school_key=normalize_school_id(school_id),
            full_name=str(full_name).strip(),
            course=str(course).strip() if course else None,
            year=resolve_year_label(canonical, year),
            status=status,
            level=canonical,
            password_hash=hash_credential(password, self.hash_method),
        )
        with session_scope(self.Session, "creating voter") as session:
            # legacy level spellings slip past the unique index
            if voter.school_key in existing_school_keys(session, canonical):
                raise VoterExists()
            session.add(voter)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise VoterExists()
            session.refresh(voter)
            logger.info(f"Voter {voter.school_id} added to {canonical}")
            return voter

    def update_voter(self, voter_id, **changes):
        unknown = set(changes) - set(_VOTER_FIELDS)
        if unknown:
            raise TypeError(f"Unknown voter fields: {', '.join(sorted(unknown))}")
        with session_scope(self.Session, "updating voter") as session:
            voter = session.get(Voter, voter_id)
            if voter is None:
                raise VoterNotFound()
            if changes.get("full_name") is not None:
                voter.full_name = str(changes["full_name"]).strip()
            if "course" in changes:
                course = changes["course"]
                voter.course = str(course).strip() if course else None
            if changes.get("year") is not None:
                voter.year = resolve_year_label(voter.level, changes["year"])
            if changes.get("status") is not None:
                voter.status = check_status(changes["status"])
            if changes.get("password"):
                voter.password_hash = hash_credential(changes["password"], self.hash_method)
            session.commit()
            session.refresh(voter)
            return voter

    def set_status(self, voter_id, status):
        return self.update_voter(voter_id, status=check_status(status))

    def delete_voter(self, voter_id):
        with session_scope(self.Session, "deleting voter") as session:
            voter = session.get(Voter, voter_id)
            if voter is None:
                raise VoterNotFound()
            session.delete(voter)
            session.commit()
            logger.info(f"Voter {voter_id} deleted")

    # candidates

    def get_candidate(self, candidate_id):
        with session_scope(self.Session, "loading candidate") as session:
            return session.get(Candidate, candidate_id)

    def list_candidates(self, level=None, position=None):
        with session_scope(self.Session, "listing candidates") as session:
            candidates = list(session.scalars(select(Candidate)))
        if level:
            wanted = resolve_level(level) or level
            candidates = [c for c in candidates if (resolve_level(c.level) or c.level) == wanted]
        if position:
            wanted = resolve_position(position) or position
            candidates = [c for c in candidates if (resolve_position(c.position) or c.position) == wanted]
        return sorted(candidates, key=lambda c: (
            resolve_level(c.level) or c.level or "",
            resolve_position(c.position) or c.position or "",
            c.last_name,
        ))

    def add_candidate(self, first_name, last_name, position, party_list, level,
                      middle_name=None, gender=None, year=None, photo_path=None):
        canonical = resolve_level(level)
        if canonical is None:
            raise InvalidLevel()
        office = resolve_position(position)
        if office is None:
            raise MissingField(f"Invalid position: {position}")
        if not first_name or not last_name or not party_list:
            raise MissingField("firstName, lastName, partyList are required")

        candidate = Candidate(
            first_name=first_name.strip(),
            middle_name=middle_name.strip() if middle_name else None,
            last_name=last_name.strip(),
            position=office,
            party_list=party_list.strip(),
            level=canonical,
            gender=gender,
            year=year,
            photo_path=photo_path,
        )
        with session_scope(self.Session, "creating candidate") as session:
            session.add(candidate)
            session.commit()
            session.refresh(candidate)
            return candidate
