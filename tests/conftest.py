import pytest
from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

import db
from gate import SettingsStore, VotingGate
from importer import RosterImporter
from ledger import VoteLedger
from models import Voter
from roster import RosterStore

# cheap hash so tests do not spend seconds in scrypt
FAST_HASH = "pbkdf2:sha256:1000"


@pytest.fixture
def engine(tmp_path):
    eng = db.make_engine(
        f"sqlite:///{tmp_path / 'election.db'}",
        connect_args={"timeout": 30, "check_same_thread": False},
    )
    db.init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def Session(engine):
    return sessionmaker(bind=engine)


@pytest.fixture
def gate(Session):
    return VotingGate(SettingsStore(Session))


@pytest.fixture
def open_gate(gate):
    gate.set_open(True)
    return gate


@pytest.fixture
def roster(Session):
    return RosterStore(Session, hash_method=FAST_HASH)


@pytest.fixture
def ledger(Session, gate):
    return VoteLedger(Session, gate)


@pytest.fixture
def importer(Session):
    return RosterImporter(Session, hash_method=FAST_HASH)


@pytest.fixture
def shs_voter(roster):
    return roster.add_voter("2023-001", "Ana Cruz", "Grade 11", "SHS", "secret", course="STEM")


@pytest.fixture
def shs_president(roster):
    return roster.add_candidate("Ben", "Reyes", "President", "Unity", "SHS")


@pytest.fixture
def count_rows(Session):
    """count_rows(Model) -> number of rows currently committed."""
    def _count(model):
        with Session() as session:
            return len(session.scalars(select(model)).all())
    return _count


@pytest.fixture
def legacy_shs_voter(Session):
    """A voter stored before levels were canonicalized: level is "shs", not "SHS"."""
    with Session(expire_on_commit=False) as session:
        voter = Voter(school_id="L-100", school_key="l-100", full_name="Lea Legacy",
                      year="Grade 12", status=0, level="shs", password_hash=None)
        session.add(voter)
        session.commit()
        return voter
