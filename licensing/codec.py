"""License key generation.

A key is the prefix followed by up to 25 alphanumerics cut from the base64
form of an AES-GCM encryption of {"id", "exp"}. The truncation throws away
most of the ciphertext, so a key cannot be decrypted back into its payload:
it is an opaque lookup token, and validity is decided by finding the stored
record with exactly this key.
"""

import base64
import hashlib
import json
import re
import secrets
from datetime import datetime

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

_STRIP_CHARS = re.compile(r"[+/=]")
_NONCE_BYTES = 12


class LicenseKeyCodec:
    """
    Produces opaque license keys.

    Usage:
        codec = LicenseKeyCodec(secret_key="...")
        key = codec.encode(license_id, expires_at)   # "MM-Xy3..."
    """

    def __init__(self, secret_key: str, prefix: str = "MM-", length: int = 25):
        self._prefix = prefix
        self._length = length
        # AES-256 key derived from the application secret
        self._aead = AESGCM(hashlib.sha256(secret_key.encode("utf-8")).digest())
        self._pattern = re.compile(
            rf"^{re.escape(prefix)}[A-Za-z0-9]{{1,{length}}}$"
        )

    def encrypt_payload(self, license_id: str, expires_at: datetime) -> bytes:
        """Nonce plus AES-GCM ciphertext of the JSON payload."""
        payload = json.dumps(
            {"id": license_id, "exp": int(expires_at.timestamp() * 1000)},
            separators=(",", ":"),
        ).encode("utf-8")
        nonce = secrets.token_bytes(_NONCE_BYTES)
        return nonce + self._aead.encrypt(nonce, payload, None)

    def encode(self, license_id: str, expires_at: datetime) -> str:
        """Build a new key for the given license id and expiry.

        A fresh random nonce is used each call, so the same payload never
        yields the same key twice.
        """
        encoded = base64.b64encode(self.encrypt_payload(license_id, expires_at)).decode("ascii")
        body = _STRIP_CHARS.sub("", encoded)[: self._length]
        return f"{self._prefix}{body}"

    def is_well_formed(self, license_key: str | None) -> bool:
        """True if license_key has this codec's prefix and body shape."""
        return bool(license_key) and self._pattern.fullmatch(license_key) is not None
