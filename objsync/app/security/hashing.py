# objsync/app/security/hashing.py
"""
Password hashing with PBKDF2-HMAC.

The derivation parameters are returned alongside the digest and stored with
the user, so changing the defaults never invalidates existing passwords.
"""
import hashlib
import hmac
import secrets
from typing import NamedTuple


class HashedPassword(NamedTuple):
    salt: bytes
    iterations: int
    hash: bytes


class CredentialHasher:
    """Derives and verifies salted PBKDF2 password hashes."""

    def __init__(
        self,
        iterations: int = 10000,
        salt_len: int = 32,
        output_len: int = 32,
        hash_algo: str = "sha256",
    ):
        self.iterations = iterations
        self.salt_len = salt_len
        self.output_len = output_len
        self.hash_algo = hash_algo

    @classmethod
    def from_settings(cls, settings) -> "CredentialHasher":
        return cls(
            iterations=settings.PBKDF2_ITERATIONS,
            salt_len=settings.PBKDF2_SALT_LEN,
            output_len=settings.PBKDF2_OUTPUT_LEN,
            hash_algo=settings.PBKDF2_HASH_ALGO,
        )

    def hash_password(self, password: str) -> HashedPassword:
        """
        Hash a password with a fresh random salt.

        Args:
            password: Plaintext password

        Returns:
            HashedPassword with the salt and iteration count used
        """
        salt = secrets.token_bytes(self.salt_len)
        digest = hashlib.pbkdf2_hmac(
            self.hash_algo,
            password.encode("utf-8"),
            salt,
            self.iterations,
            self.output_len,
        )
        return HashedPassword(salt=salt, iterations=self.iterations, hash=digest)

    def verify_password(self, stored: HashedPassword, password: str) -> bool:
        """
        Check ``password`` against a stored hash.

        The derivation is replayed with the stored salt and iteration count
        and with the stored digest's length, so both sides of the
        constant-time comparison always have the same size.

        Args:
            stored: Salt, iterations and digest saved at hashing time
            password: Candidate plaintext password

        Returns:
            True if the password matches, False otherwise
        """
        if not stored.hash or stored.iterations < 1:
            return False

        candidate = hashlib.pbkdf2_hmac(
            self.hash_algo,
            password.encode("utf-8"),
            stored.salt,
            stored.iterations,
            len(stored.hash),
        )
        return hmac.compare_digest(stored.hash, candidate)
