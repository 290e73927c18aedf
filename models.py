# models.py
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class LevelEnum(enum.Enum):
    elementary = "Elementary"
    jhs = "JHS"
    shs = "SHS"
    college = "College"


class PositionEnum(enum.Enum):
    president = "President"
    vice_president = "Vice President"
    secretary = "Secretary"
    treasurer = "Treasurer"
    auditor = "Auditor"
    representative = "Representative"


def new_id():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


class Voter(Base):
    __tablename__ = "voters"
    __table_args__ = (
        UniqueConstraint("school_key", "level", name="voters_school_id_level_uq"),
    )
    id = Column(String(36), primary_key=True, default=new_id)
    school_id = Column(String(50), nullable=False)
    # trimmed, lower-cased school_id; the unique key the roster is deduplicated on
    school_key = Column(String(50), nullable=False)
    full_name = Column(String(150), nullable=False)
    course = Column(String(120), nullable=True)
    year = Column(Text, nullable=False)
    status = Column(Integer, nullable=False, default=0)
    # free text on purpose: legacy rows are canonicalized by taxonomy.resolve_level
    level = Column(String(20), nullable=False)
    password_hash = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    votes = relationship("Vote", back_populates="voter", cascade="all, delete-orphan")


class Candidate(Base):
    __tablename__ = "candidates"
    id = Column(String(36), primary_key=True, default=new_id)
    level = Column(String(20), nullable=True)
    position = Column(String(50), nullable=False)
    party_list = Column(String(100), nullable=False)
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=False)
    gender = Column(String(10), nullable=True)
    year = Column(String(50), nullable=True)
    photo_path = Column(String(255), nullable=True)

    votes = relationship("Vote", back_populates="candidate")

    @property
    def full_name(self):
        return " ".join(p for p in (self.first_name, self.middle_name, self.last_name) if p)


class Vote(Base):
    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("voter_id", "position", "level", name="votes_voter_position_level_uq"),
    )
    id = Column(Integer, primary_key=True, autoincrement=True)
    voter_id = Column(String(36), ForeignKey("voters.id", ondelete="CASCADE"), nullable=False)
    candidate_id = Column(String(36), ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False)
    # copied from the candidate when the vote is cast
    position = Column(String(50), nullable=False)
    level = Column(String(20), nullable=False)
    cast_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    voter = relationship("Voter", back_populates="votes")
    candidate = relationship("Candidate", back_populates="votes")


class Setting(Base):
    __tablename__ = "settings"
    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False, default="false")
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
