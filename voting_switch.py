# voting_switch.py
import logging

import config
from db import init_db, SessionLocal
from gate import SettingsStore, VotingGate


def main():
    logging.basicConfig(level=config.LOG_LEVEL)
    init_db()
    gate = VotingGate(SettingsStore(SessionLocal))
    print("Voting is currently", "active" if gate.is_open() else "stopped")
    answer = input("Open voting? [y/n, blank to keep]: ").strip().lower()
    if answer in ("y", "yes"):
        gate.set_open(True)
    elif answer in ("n", "no"):
        gate.set_open(False)
    print("Voting is now", "active" if gate.is_open() else "stopped")


if __name__ == "__main__":
    main()
