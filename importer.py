"""Bulk roster import from spreadsheet rows.

The whole file is written in one transaction: rows that fail validation are
counted and skipped, but a database error rolls back every insert from the file.
Existing voters are never touched; a school id already on the roster for the
level is reported as a duplicate and skipped.

Two imports of the same level must not run at the same time. The duplicate
set is loaded once per file, so a concurrent import of that level would not
see the other's inserts before the unique index rejects one of them.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

import config
from credentials import hash_credential
from db import session_scope
from errors import (
    BallotError,
    InvalidLevel,
    RowDuplicateInFile,
    RowDuplicateInRoster,
    RowMissingFields,
    RowRejected,
)
from models import Voter
from roster import existing_school_keys, to_status
from taxonomy import normalize_school_id, resolve_level, resolve_year_label

logger = logging.getLogger(__name__)

# accepted header spellings per field, compared trimmed and case-insensitively
HEADERS = {
    "school_id": ["school id", "schoolid", "id number", "student id", "sid", "id"],
    "full_name": ["full name", "fullname", "name"],
    "course": ["course", "strand", "program"],
    "year": ["year", "year level", "grade level", "grade"],
    "status": ["status", "voted", "has voted"],
    "password": ["password", "pass", "pwd"],
}


def pick(row: Mapping[str, Any], names: Sequence[str]) -> str:
    """Value of the first header in ``names`` present in ``row``, as trimmed text."""
    keys = {str(k).strip().lower(): k for k in row.keys() if k is not None}
    for name in names:
        key = keys.get(name.lower())
        if key is not None:
            value = row[key]
            if value is None:
                return ""
            text = str(value).strip()
            return "" if text == "NaN" else text
    return ""


@dataclass
class ImportReport:
    level: str
    inserted: int = 0
    skipped_missing: int = 0
    invalid: int = 0
    duplicates_db: int = 0
    duplicates_file: int = 0
    invalid_samples: List[Dict[str, Any]] = field(default_factory=list)
    duplicate_samples: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Imported as {self.level}"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "message": self.message,
            "inserted": self.inserted,
            "skippedMissing": self.skipped_missing,
            "invalid": self.invalid,
            "duplicatesDb": self.duplicates_db,
            "duplicatesFile": self.duplicates_file,
            "invalidSamples": list(self.invalid_samples),
            "duplicateSamples": list(self.duplicate_samples),
        }


class RosterImporter:
    def __init__(self, session_factory, hash_method=None, sample_limit=config.IMPORT_SAMPLE_LIMIT):
        self.Session = session_factory
        self.hash_method = hash_method
        self.sample_limit = sample_limit

    def import_roster(self, level, rows: Sequence[Mapping[str, Any]]) -> ImportReport:
        canonical = resolve_level(level)
        if canonical is None:
            raise InvalidLevel()

        report = ImportReport(level=canonical)
        with session_scope(self.Session, f"importing {canonical} roster") as session:
            existing = existing_school_keys(session, canonical)
            seen_in_file = set()

            for idx, row in enumerate(rows):
                # rows from read_rows carry their sheet row; plain dicts count from 2
                row_number = getattr(row, "number", idx + 2)
                fields = {name: pick(row, headers) for name, headers in HEADERS.items()}
                try:
                    voter = self._build_voter(canonical, fields, existing, seen_in_file)
                except BallotError as exc:
                    self._record(report, exc, row_number, fields)
                    continue
                session.add(voter)
                report.inserted += 1
                seen_in_file.add(voter.school_key)
                existing.add(voter.school_key)

            session.commit()

        logger.info(
            f"Roster import ({canonical}): inserted={report.inserted} "
            f"missing={report.skipped_missing} invalid={report.invalid} "
            f"dup_db={report.duplicates_db} dup_file={report.duplicates_file}"
        )
        return report

    def _build_voter(self, level, fields, existing, seen_in_file):
        if not fields["school_id"] or not fields["full_name"] or not fields["year"]:
            raise RowMissingFields()
        year = resolve_year_label(level, fields["year"])
        key = normalize_school_id(fields["school_id"])
        if key in seen_in_file:
            raise RowDuplicateInFile()
        if key in existing:
            raise RowDuplicateInRoster()
        return Voter(
            school_id=fields["school_id"],
            school_key=key,
            full_name=fields["full_name"],
            course=fields["course"] or None,
            year=year,
            status=to_status(fields["status"]),
            level=level,
            password_hash=hash_credential(fields["password"], self.hash_method),
        )

    def _record(self, report, exc, row_number, fields):
        sample = {
            "row": row_number,
            "schoolId": fields["school_id"],
            "fullName": fields["full_name"],
            "reason": str(exc),
        }
        if isinstance(exc, RowMissingFields):
            report.skipped_missing += 1
        elif isinstance(exc, RowRejected):
            report.invalid += 1
            if len(report.invalid_samples) < self.sample_limit:
                report.invalid_samples.append(sample)
        elif isinstance(exc, RowDuplicateInFile):
            report.duplicates_file += 1
            if len(report.duplicate_samples) < self.sample_limit:
                report.duplicate_samples.append(sample)
        elif isinstance(exc, RowDuplicateInRoster):
            report.duplicates_db += 1
            if len(report.duplicate_samples) < self.sample_limit:
                report.duplicate_samples.append(sample)
        else:
            raise exc
