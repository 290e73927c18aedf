# gate.py
import logging

import config
from db import session_scope
from models import Setting

logger = logging.getLogger(__name__)


class SettingsStore:
    """Key/value access to the ``settings`` table."""

    def __init__(self, session_factory):
        self.Session = session_factory

    def get(self, key, default=None):
        with session_scope(self.Session, f"reading setting {key}") as session:
            row = session.get(Setting, key)
            return row.value if row is not None else default

    def put(self, key, value):
        with session_scope(self.Session, f"writing setting {key}") as session:
            row = session.get(Setting, key)
            if row is None:
                session.add(Setting(key=key, value=value))
            elif row.value != value:
                row.value = value
            session.commit()


class VotingGate:
    """The single open/closed switch in front of the vote ledger.

    ``settings`` is anything with ``get(key, default)`` and ``put(key, value)``.
    A missing row reads as closed.
    """

    def __init__(self, settings, key=config.VOTING_OPEN_KEY):
        self.settings = settings
        self.key = key

    def is_open(self) -> bool:
        return str(self.settings.get(self.key, "false")).strip().lower() == "true"

    def set_open(self, open_: bool) -> bool:
        value = "true" if open_ else "false"
        self.settings.put(self.key, value)
        state = "active" if open_ else "stopped"
        logger.info(f"Voting {state}")
        return bool(open_)
