# import_voters.py
import logging

import config
from db import init_db, SessionLocal
from errors import BallotError
from importer import RosterImporter
from spreadsheet import read_rows


def main():
    logging.basicConfig(level=config.LOG_LEVEL)
    init_db()
    path = input("Spreadsheet (.csv/.xls/.xlsx): ").strip()
    level = input("Level (Elementary/JHS/SHS/College): ").strip()
    try:
        rows = read_rows(path)
        report = RosterImporter(SessionLocal).import_roster(level, rows)
    except BallotError as e:
        print(f"Import failed: {e}")
        return 1
    print(report.message)
    print(f"  inserted:         {report.inserted}")
    print(f"  missing fields:   {report.skipped_missing}")
    print(f"  invalid year:     {report.invalid}")
    print(f"  already on file:  {report.duplicates_db}")
    print(f"  repeated in file: {report.duplicates_file}")
    for sample in report.invalid_samples + report.duplicate_samples:
        print(f"  row {sample['row']}: {sample['schoolId']} {sample['fullName']} - {sample['reason']}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
