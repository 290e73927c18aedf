# config.py
import os

# MySQL database configuration
MYSQL_HOST = "127.0.0.1"
MYSQL_PORT = "3306"
MYSQL_USER = "root"
MYSQL_PASSWORD = "root"   # ← change this
MYSQL_DB = "election_db"

DATABASE_URL = os.environ.get(
    "DATABASE_URL",
    f"mysql+pymysql://{MYSQL_USER}:{MYSQL_PASSWORD}@{MYSQL_HOST}:{MYSQL_PORT}/{MYSQL_DB}",
)

# settings row that gates every vote
VOTING_OPEN_KEY = "voting_open"

# max sample rows echoed back per category by the roster import
IMPORT_SAMPLE_LIMIT = 20

# werkzeug method string, e.g. "scrypt" or "pbkdf2:sha256:600000"
CREDENTIAL_HASH_METHOD = os.environ.get("CREDENTIAL_HASH_METHOD", "scrypt")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
