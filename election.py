# election.py
import logging
from dataclasses import dataclass
from functools import wraps
from typing import Optional

from db import SessionLocal
from errors import Forbidden
from gate import SettingsStore, VotingGate
from importer import RosterImporter
from ledger import VoteLedger
from roster import RosterStore
from tally import tally

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Caller:
    """Identity handed over by the (external) auth layer."""
    voter_id: Optional[str]
    role: str


def role_required(role):
    def decorator(f):
        @wraps(f)
        def wrapper(self, caller, *args, **kwargs):
            user_role = str(getattr(caller, "role", "") or "").strip().lower()
            if user_role != role:
                logger.warning(f"{f.__name__} denied for role {user_role or None}")
                raise Forbidden()
            return f(self, caller, *args, **kwargs)
        return wrapper
    return decorator


class Election:
    """Entry points used by the web layer; every caller is already authenticated."""

    def __init__(self, session_factory=SessionLocal, settings=None, hash_method=None):
        self.Session = session_factory
        self.gate = VotingGate(settings or SettingsStore(session_factory))
        self.roster = RosterStore(session_factory, hash_method=hash_method)
        self.ledger = VoteLedger(session_factory, self.gate)
        self.importer = RosterImporter(session_factory, hash_method=hash_method)

    # anyone logged in can read the status
    def voting_open(self) -> bool:
        return self.gate.is_open()

    @role_required("admin")
    def set_voting_open(self, caller, open_):
        return self.gate.set_open(bool(open_))

    @role_required("student")
    def cast_vote(self, caller, candidate_id):
        return self.ledger.cast_vote(caller.voter_id, candidate_id)

    @role_required("student")
    def votes_for_voter(self, caller):
        return self.ledger.votes_for_voter(caller.voter_id)

    @role_required("admin")
    def import_roster(self, caller, level, rows):
        return self.importer.import_roster(level, rows)

    @role_required("admin")
    def tally(self, caller, level=None, position=None):
        return tally(self.Session, level=level, position=position)
