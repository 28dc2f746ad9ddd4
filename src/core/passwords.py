"""Password hashing with bcrypt, kept off the event loop."""
import asyncio

import bcrypt

# bcrypt only looks at the first 72 bytes; longer inputs are rejected at the schema layer.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """One-way hash/verify for account passwords."""

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds
        self._dummy_hash: bytes | None = None

    async def hash(self, password: str) -> str:
        """Hash a plaintext password."""
        return await asyncio.to_thread(self._hash_sync, password)

    async def verify(self, password: str, password_hash: str) -> bool:
        """Check a plaintext password against a stored hash."""
        return await asyncio.to_thread(self._verify_sync, password, password_hash.encode())

    async def verify_dummy(self, password: str) -> bool:
        """
        Burn the same CPU time as a real verification.

        Used when no account exists for an email so that response timing does
        not reveal which emails are registered. Always returns False.
        """
        if self._dummy_hash is None:
            self._dummy_hash = (await self.hash("not-a-real-password")).encode()
        await asyncio.to_thread(self._verify_sync, password, self._dummy_hash)
        return False

    def _hash_sync(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode(), salt).decode()

    @staticmethod
    def _verify_sync(password: str, password_hash: bytes) -> bool:
        encoded = password.encode()
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, password_hash)
        except ValueError:
            # Stored value is not a bcrypt hash
            return False
