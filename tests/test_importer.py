"""Bulk roster import: validation, de-duplication and all-or-nothing writes."""
import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session as OrmSession, sessionmaker

from credentials import check_credential
from errors import InvalidLevel, StorageFault
from importer import RosterImporter, pick
from models import Voter


def shs_rows(*ids):
    return [
        {"School ID": sid, "Full Name": f"Student {sid}", "Strand": "STEM", "Year": "Grade 11"}
        for sid in ids
    ]


def voters(Session, level=None):
    with Session() as session:
        query = select(Voter).order_by(Voter.school_key)
        if level:
            query = query.where(Voter.level == level)
        return list(session.scalars(query))


class TestPick:
    def test_header_synonyms_are_case_and_space_insensitive(self):
        row = {" STUDENT ID ": " 42 ", "name": "Ana"}
        assert pick(row, ["school id", "student id"]) == "42"
        assert pick(row, ["full name", "name"]) == "Ana"

    def test_missing_and_nan(self):
        assert pick({"year": "NaN"}, ["year"]) == ""
        assert pick({"year": None}, ["year"]) == ""
        assert pick({}, ["year"]) == ""


class TestImportRoster:
    def test_inserts_new_rows(self, Session, importer):
        report = importer.import_roster("SHS", shs_rows("A1", "A2", "A3"))
        assert report.inserted == 3
        assert report.duplicates_db == 0
        stored = voters(Session)
        assert [v.school_id for v in stored] == ["A1", "A2", "A3"]
        assert {v.year for v in stored} == {"Grade 11"}
        assert {v.level for v in stored} == {"SHS"}
        assert {v.course for v in stored} == {"STEM"}
        assert {v.status for v in stored} == {0}

    def test_reimport_is_all_duplicates(self, Session, importer, count_rows):
        rows = shs_rows("A1", "A2", "A3")
        first = importer.import_roster("SHS", rows)
        size = count_rows(Voter)
        second = importer.import_roster("SHS", rows)

        assert (first.inserted, first.duplicates_db) == (3, 0)
        assert (second.inserted, second.duplicates_db) == (0, 3)
        assert count_rows(Voter) == size == 3
        assert second.duplicate_samples[0]["reason"] == "Already exists in database for this department"

    def test_case_differing_duplicate_in_file_keeps_first(self, Session, importer):
        rows = [
            {"School ID": "ab-100", "Name": "First Row", "Year": "g12"},
            {"School ID": "AB-100", "Name": "Second Row", "Year": "Grade 11"},
        ]
        report = importer.import_roster("SHS", rows)
        assert report.inserted == 1
        assert report.duplicates_file == 1
        assert report.duplicate_samples == [
            {"row": 3, "schoolId": "AB-100", "fullName": "Second Row", "reason": "Duplicate in file"}
        ]
        (voter,) = voters(Session)
        assert voter.full_name == "First Row"
        assert voter.year == "Grade 12"

    def test_third_occurrence_is_also_skipped(self, importer):
        report = importer.import_roster("SHS", shs_rows("Z9", "z9", " Z9 "))
        assert report.inserted == 1
        assert report.duplicates_file == 2

    def test_missing_fields_are_counted(self, Session, importer):
        rows = [
            {"School ID": "", "Name": "No Id", "Year": "11"},
            {"School ID": "B1", "Name": "", "Year": "11"},
            {"School ID": "B2", "Name": "No Year", "Year": "NaN"},
            {"School ID": "B3", "Name": "Fine", "Year": "11"},
        ]
        report = importer.import_roster("SHS", rows)
        assert report.skipped_missing == 3
        assert report.inserted == 1
        assert report.invalid_samples == []

    def test_invalid_year_reports_row_and_reason(self, Session, importer):
        rows = [
            {"ID Number": "C1", "Full Name": "Good", "Year Level": "2nd"},
            {"ID Number": "C2", "Full Name": "Wrong Level", "Year Level": "Grade 11"},
        ]
        report = importer.import_roster("College", rows)
        assert report.inserted == 1
        assert report.invalid == 1
        (sample,) = report.invalid_samples
        assert sample["row"] == 3
        assert sample["schoolId"] == "C2"
        assert "looks like SHS" in sample["reason"]
        assert [v.year for v in voters(Session)] == ["2nd Year"]

    def test_invalid_rows_are_not_remembered_as_seen(self, importer):
        rows = [
            {"School ID": "D1", "Name": "Bad", "Year": "Grade 3"},
            {"School ID": "D1", "Name": "Good", "Year": "Grade 12"},
        ]
        report = importer.import_roster("SHS", rows)
        assert (report.invalid, report.inserted, report.duplicates_file) == (1, 1, 0)

    def test_samples_are_capped(self, importer):
        rows = [{"School ID": f"E{i}", "Name": "X", "Year": "Grade 5"} for i in range(25)]
        report = importer.import_roster("SHS", rows)
        assert report.invalid == 25
        assert len(report.invalid_samples) == 20

    def test_status_and_password_columns(self, Session, importer):
        rows = [
            {"School ID": "F1", "Name": "Voted", "Year": "11", "Has Voted": "Yes", "Password": "pw1"},
            {"School ID": "F2", "Name": "Not Yet", "Year": "11", "Has Voted": "nope"},
        ]
        importer.import_roster("SHS", rows)
        f1, f2 = voters(Session)
        assert f1.status == 1
        assert check_credential(f1.password_hash, "pw1")
        assert f2.status == 0
        assert f2.password_hash is None

    def test_existing_voter_is_never_overwritten(self, Session, roster, importer):
        original = roster.add_voter("G1", "Original Name", "Grade 12", "SHS", "keep-me")
        rows = [{"School ID": "g1", "Name": "Changed", "Year": "11", "Password": "new", "Status": "1"}]
        report = importer.import_roster("shs", rows)
        assert report.duplicates_db == 1
        assert report.inserted == 0
        (stored,) = voters(Session)
        assert stored.full_name == "Original Name"
        assert stored.status == 0
        assert stored.password_hash == original.password_hash

    def test_legacy_level_spelling_still_counts_as_on_roster(self, Session, importer, count_rows,
                                                             legacy_shs_voter):
        report = importer.import_roster("SHS", [{"School ID": "l-100 ", "Name": "Dup", "Year": "11"}])
        assert (report.inserted, report.duplicates_db) == (0, 1)
        assert count_rows(Voter) == 1
        (stored,) = voters(Session)
        assert stored.full_name == "Lea Legacy"

    def test_same_id_may_exist_under_another_level(self, Session, importer):
        importer.import_roster("SHS", shs_rows("H1"))
        report = importer.import_roster("College", [{"School ID": "H1", "Name": "H", "Year": "1st"}])
        assert report.inserted == 1
        assert len(voters(Session)) == 2

    def test_invalid_level(self, importer):
        with pytest.raises(InvalidLevel):
            importer.import_roster("Kindergarten", shs_rows("I1"))

    def test_as_dict(self, importer):
        data = importer.import_roster("SHS", shs_rows("J1")).as_dict()
        assert data["ok"] is True
        assert data["message"] == "Imported as SHS"
        assert data["inserted"] == 1
        assert data["duplicatesFile"] == 0


class FailingCommitSession(OrmSession):
    """Flushes every pending insert, then loses the connection on commit."""

    def commit(self):
        self.flush()
        raise OperationalError("COMMIT", {}, Exception("connection lost"))


class TestImportRollback:
    def test_storage_fault_leaves_roster_unchanged(self, engine, Session, count_rows):
        failing = sessionmaker(bind=engine, class_=FailingCommitSession)
        importer = RosterImporter(failing, hash_method="pbkdf2:sha256:1000")

        with pytest.raises(StorageFault) as excinfo:
            importer.import_roster("SHS", shs_rows("K1", "K2"))

        assert "connection lost" not in str(excinfo.value)
        assert isinstance(excinfo.value.__cause__, OperationalError)
        assert count_rows(Voter) == 0
