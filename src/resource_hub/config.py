# Settings are read from the environment once, at import.
import os

DATA_FILE = os.environ.get("HUB_DATA_FILE", "resources.csv")
SECRET_KEY = os.environ.get("FLASK_SECRET", "dev-change-me")

HOST = os.environ.get("HUB_HOST", "127.0.0.1")
PORT = int(os.environ.get("HUB_PORT", "5000"))
DEBUG = os.environ.get("HUB_DEBUG", "0").lower() in ("1", "true", "yes", "on")
LOG_LEVEL = os.environ.get("HUB_LOG_LEVEL", "INFO").upper()

# Edit key hashing / lockout
KEY_ITERATIONS = 200_000
KEY_LENGTH = 32
SALT_BYTES = 16
MAX_UNLOCK_ATTEMPTS = 3


def flask_config(overrides=None):
    """Config mapping handed to ``app.config`` by the app factory."""
    cfg = {
        "SECRET_KEY": SECRET_KEY,
        "HUB_DATA_FILE": DATA_FILE,
    }
    cfg.update(overrides or {})
    return cfg
