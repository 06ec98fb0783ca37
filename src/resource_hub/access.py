# Shared edit key: salted PBKDF2 hash in the store, edit flag + lockout in the session.
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass

from . import config
from .models import KeyConfig

logger = logging.getLogger(__name__)


def hash_secret(candidate: str, salt: bytes) -> str:
    dk = hashlib.pbkdf2_hmac("sha256", candidate.encode("utf-8"), salt,
                             config.KEY_ITERATIONS, dklen=config.KEY_LENGTH)
    return dk.hex()


class AccessGate:
    def __init__(self, store):
        self.store = store

    def _config(self):
        row = self.store.get_config()
        if row is None:
            return None
        cfg = KeyConfig.from_row(row)
        return cfg if cfg.hash and cfg.salt else None

    def has_configured_secret(self) -> bool:
        return self._config() is not None

    def verify_secret(self, candidate: str) -> bool:
        cfg = self._config()
        if cfg is None or not candidate:
            return False
        try:
            salt = bytes.fromhex(cfg.salt)
        except ValueError:
            logger.error("stored key salt is not valid hex")
            return False
        return hmac.compare_digest(hash_secret(candidate, salt), cfg.hash)

    def set_secret(self, candidate: str) -> None:
        if not candidate or not candidate.strip():
            raise ValueError("edit key must not be empty")
        salt = secrets.token_bytes(config.SALT_BYTES)
        self.store.put_config(hash_secret(candidate, salt), salt.hex())
        logger.info("edit key updated")


@dataclass(frozen=True)
class UnlockResult:
    ok: bool
    locked: bool
    remaining: int


class EditSession:
    """Edit flag and failed-attempt counter kept in a session mapping.

    The mapping is the Flask session in the app and a plain dict in tests.
    """

    EDIT_KEY = "edit_mode"
    FAILS_KEY = "failed_unlocks"

    def __init__(self, scope, max_attempts=None):
        self.scope = scope
        self.max_attempts = max_attempts or config.MAX_UNLOCK_ATTEMPTS

    @property
    def edit_mode(self) -> bool:
        return bool(self.scope.get(self.EDIT_KEY))

    @property
    def failed_attempts(self) -> int:
        return int(self.scope.get(self.FAILS_KEY) or 0)

    @property
    def locked(self) -> bool:
        return self.failed_attempts >= self.max_attempts

    @property
    def remaining(self) -> int:
        return max(0, self.max_attempts - self.failed_attempts)

    def unlock(self, gate, candidate) -> UnlockResult:
        if self.locked:
            return UnlockResult(False, True, 0)
        if gate.verify_secret(candidate):
            self.scope[self.FAILS_KEY] = 0
            self.scope[self.EDIT_KEY] = True
            return UnlockResult(True, False, self.remaining)
        self.scope[self.FAILS_KEY] = self.failed_attempts + 1
        logger.warning("failed unlock attempt (%d/%d)", self.failed_attempts, self.max_attempts)
        return UnlockResult(False, self.locked, self.remaining)

    def grant(self):
        """Enter edit mode without a key check (first key set)."""
        self.scope[self.EDIT_KEY] = True

    def lock(self):
        self.scope[self.EDIT_KEY] = False
