import logging
from typing import Optional

import bcrypt

from authcore.app.services.password_hasher import IPasswordHasher
from authcore.domain.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72

_DUMMY_PASSWORD = b"dummy_password"


class BcryptPasswordHasher(IPasswordHasher):
    """bcrypt implementation of the password hasher (cost factor 12 by default)"""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds
        self._dummy_hash: Optional[bytes] = None

    def hash(self, plaintext: str) -> str:
        if not plaintext:
            raise InvalidInputError("Password must not be empty")

        encoded = plaintext.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise InvalidInputError(
                f"Password must not be longer than {MAX_PASSWORD_BYTES} bytes"
            )

        return bcrypt.hashpw(encoded, bcrypt.gensalt(self.rounds)).decode("utf-8")

    def verify(self, plaintext: str, hashed: str) -> bool:
        if not plaintext or not hashed:
            return False

        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            # Malformed hash, oversized password, non-str input: all deny
            return False

    def dummy_verify(self, plaintext: str) -> None:
        if self._dummy_hash is None:
            self._dummy_hash = bcrypt.hashpw(_DUMMY_PASSWORD, bcrypt.gensalt(self.rounds))
        try:
            bcrypt.checkpw((plaintext or "").encode("utf-8")[:MAX_PASSWORD_BYTES], self._dummy_hash)
        except ValueError:
            logger.debug("Dummy password verification failed")
