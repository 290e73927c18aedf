"""Exceptions raised by the election core.

Cast-vote errors are surfaced to the caller one at a time. Import row errors
are caught by the importer and tallied into the report. ``StorageFault`` is the
only fatal kind and never carries driver detail in its message.
"""


class BallotError(Exception):
    """Base class for every error the core raises on purpose."""

    message = "Election error"

    def __init__(self, message=None):
        super().__init__(message or self.message)


# cast-vote path

class VotingClosed(BallotError):
    message = "Voting is closed"


class SessionInvalid(BallotError):
    message = "Session invalid. Please log in again."


class EligibilityUndetermined(BallotError):
    message = "Your department is not set"


class CandidateNotFound(BallotError):
    message = "Candidate not found"


class CrossLevelVote(BallotError):
    message = "You cannot vote for another department"


class MalformedCandidate(BallotError):
    message = "Candidate position missing"


class DuplicateVote(BallotError):
    message = "Already voted for this position"

    def __init__(self, existing, message=None):
        super().__init__(message)
        self.existing = existing


# import path

class InvalidLevel(BallotError):
    message = "Invalid or missing level"


class RowRejected(BallotError):
    """A row whose year label does not fit the target level."""

    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason


class RowMissingFields(BallotError):
    message = "Missing school id, name or year"


class RowDuplicateInFile(BallotError):
    message = "Duplicate in file"


class RowDuplicateInRoster(BallotError):
    message = "Already exists in database for this department"


class UnsupportedFile(BallotError):
    message = "Only .csv, .xls, .xlsx files are allowed"


# roster administration

class VoterNotFound(BallotError):
    message = "Voter not found"


class VoterExists(BallotError):
    message = "Voter already exists for this department"


class InvalidStatus(BallotError):
    message = "status must be 0 or 1"


class MissingField(BallotError):
    pass


# access

class Forbidden(BallotError):
    message = "Access denied: insufficient permissions"


class StorageFault(BallotError):
    message = "Server error"
