"""Password hashing with bcrypt."""

import bcrypt

# bcrypt only looks at the first 72 bytes and newer releases reject longer input
BCRYPT_MAX_BYTES = 72


def _prepare(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Hashes and verifies passwords.

    Args:
        rounds: bcrypt cost factor (log2 of the iteration count)
    """

    def __init__(self, rounds: int = 12):
        self.rounds = rounds
        self._dummy_hash: bytes | None = None

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(_prepare(password), bcrypt.gensalt(rounds=self.rounds)).decode(
            "ascii"
        )

    def verify(self, password: str, password_hash: str) -> bool:
        """Check a password against a stored hash. Malformed hashes never match."""
        try:
            return bcrypt.checkpw(_prepare(password), password_hash.encode("ascii"))
        except ValueError:
            return False

    def verify_dummy(self, password: str) -> None:
        """Spend the same time as a real verification.

        Called when the account does not exist so response timing does
        not reveal which usernames are registered.
        """
        if self._dummy_hash is None:
            self._dummy_hash = bcrypt.hashpw(b"dummy-password", bcrypt.gensalt(rounds=self.rounds))
        bcrypt.checkpw(_prepare(password), self._dummy_hash)
