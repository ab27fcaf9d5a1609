"""Salted PBKDF2 password hashing."""

import hashlib
import hmac
import secrets
from dataclasses import dataclass

from auth.config import PasswordPolicy


@dataclass
class PasswordHash:
    """Hex-encoded digest and the hex salt it was derived with."""

    hash: str
    salt: str


class PasswordHasher:
    """
    PBKDF2-HMAC password hasher bound to one current policy.

    Usage:
        hasher = PasswordHasher(PasswordPolicy())
        hashed = hasher.hash_password("secret1")
        hasher.verify("secret1", hashed.hash, hashed.salt)  # True
    """

    def __init__(
        self,
        policy: PasswordPolicy,
        legacy_policies: tuple[PasswordPolicy, ...] = (),
    ):
        self._policy = policy
        self._legacy_policies = tuple(p for p in legacy_policies if p != policy)

    @property
    def policy(self) -> PasswordPolicy:
        return self._policy

    def make_salt(self) -> str:
        """Random salt from the OS CSPRNG, hex-encoded."""
        return secrets.token_hex(self._policy.salt_bytes)

    @staticmethod
    def derive(password: str, salt: str, policy: PasswordPolicy) -> str:
        """Deterministic PBKDF2 digest of password under policy, hex-encoded.

        The hex salt string itself is the PBKDF2 salt (its UTF-8 bytes), which
        matches how existing users.json hashes were produced.
        """
        return hashlib.pbkdf2_hmac(
            policy.digest,
            password.encode("utf-8"),
            salt.encode("utf-8"),
            policy.iterations,
            dklen=policy.hash_length,
        ).hex()

    def hash(self, password: str, salt: str) -> str:
        """Digest of password with the given salt under the current policy."""
        return self.derive(password, salt, self._policy)

    def hash_password(self, password: str) -> PasswordHash:
        """Hash with a fresh random salt."""
        salt = self.make_salt()
        return PasswordHash(hash=self.hash(password, salt), salt=salt)

    def verify(self, password: str, digest: str, salt: str) -> bool:
        """True if password matches digest under the current policy."""
        return hmac.compare_digest(self.hash(password, salt), digest)

    def verify_any(self, password: str, digest: str, salt: str) -> tuple[bool, bool]:
        """
        Check password against the current policy, then each legacy policy.

        Returns:
            (matched, needs_rehash). needs_rehash is True when only a legacy
            policy matched.
        """
        if self.verify(password, digest, salt):
            return True, False
        for policy in self._legacy_policies:
            if len(digest) != policy.hash_length * 2:
                continue
            if hmac.compare_digest(self.derive(password, salt, policy), digest):
                return True, True
        return False, False
