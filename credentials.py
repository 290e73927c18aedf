# credentials.py
from werkzeug.security import generate_password_hash, check_password_hash

import config

# prefixes of the hash formats werkzeug produces
_HASH_PREFIXES = ("scrypt:", "pbkdf2:")


def is_hashed(value: str) -> bool:
    return isinstance(value, str) and value.startswith(_HASH_PREFIXES) and value.count("$") >= 2


def hash_credential(raw, method: str = None):
    """
    Return the value to store in ``password_hash``.
    Blank input gives None; an existing werkzeug hash is returned untouched so calling
    this twice on the same value never double-hashes it.
    """
    if raw is None:
        return None
    raw = str(raw)
    if not raw.strip():
        return None
    if is_hashed(raw):
        return raw
    return generate_password_hash(raw, method=method or config.CREDENTIAL_HASH_METHOD)


def check_credential(stored_hash, raw) -> bool:
    if not stored_hash or raw is None:
        return False
    return check_password_hash(stored_hash, str(raw))
