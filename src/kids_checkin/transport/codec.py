"""Symmetric envelope applied to request/response bodies.

Envelope format: ``base64(iv || AES-256-CBC(PKCS7(plaintext)))`` with a fresh
16-byte IV per call. The key is a configured secret, NUL-padded or truncated
to 32 bytes so devices sharing the same secret string derive the same key.

Plain CBC carries no integrity check: a body sealed under another key still
unpads cleanly about once in 256 tries, and only the UTF-8 decode (then the
JSON parse) stands between that and garbage. With ``authenticate=True`` the
envelope becomes ``base64(iv || ciphertext || HMAC-SHA256(iv || ciphertext))``
and any wrong key or flipped byte is rejected before decryption. Both ends
must agree on the mode (``TRANSPORT_MAC``).
"""
from __future__ import annotations

import base64
import binascii
import logging
import os

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..core.constants import AES_IV_BYTES, AES_KEY_BYTES, MAC_TAG_BYTES
from ..core.exceptions import TransportError

logger = logging.getLogger(__name__)

_BLOCK_BITS = algorithms.AES.block_size
_MAC_LABEL = b"kids-checkin envelope mac"


def derive_key(secret: str) -> bytes:
    if not secret:
        raise ValueError("Transport key is not configured")
    raw = secret.encode("utf-8")
    return raw[:AES_KEY_BYTES].ljust(AES_KEY_BYTES, b"\0")


def _mac_key(key: bytes) -> bytes:
    # Separate key for the tag so it never equals the cipher key.
    h = hmac.HMAC(key, hashes.SHA256())
    h.update(_MAC_LABEL)
    return h.finalize()


class TransportCodec:
    def __init__(self, secret: str, *, authenticate: bool = False):
        self._key = derive_key(secret)
        self._mac_key = _mac_key(self._key) if authenticate else None

    @property
    def authenticated(self) -> bool:
        return self._mac_key is not None

    def _tag(self, data: bytes) -> bytes:
        h = hmac.HMAC(self._mac_key, hashes.SHA256())
        h.update(data)
        return h.finalize()

    def seal(self, plaintext: str) -> str:
        iv = os.urandom(AES_IV_BYTES)
        padder = padding.PKCS7(_BLOCK_BITS).padder()
        data = padder.update(plaintext.encode("utf-8")) + padder.finalize()

        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        sealed = iv + encryptor.update(data) + encryptor.finalize()
        if self._mac_key is not None:
            sealed += self._tag(sealed)
        return base64.b64encode(sealed).decode("ascii")

    def _verify(self, combined: bytes) -> bytes:
        if len(combined) <= MAC_TAG_BYTES:
            raise TransportError("Envelope is truncated")
        body, tag = combined[:-MAC_TAG_BYTES], combined[-MAC_TAG_BYTES:]
        h = hmac.HMAC(self._mac_key, hashes.SHA256())
        h.update(body)
        try:
            h.verify(tag)
        except InvalidSignature as e:
            logger.warning("envelope rejected: bad tag")
            raise TransportError("Envelope failed its integrity check") from e
        return body

    def open(self, envelope: str) -> str:
        if not envelope or not isinstance(envelope, str):
            raise TransportError("Empty envelope")

        try:
            combined = base64.b64decode(envelope.strip(), validate=True)
        except (binascii.Error, ValueError) as e:
            raise TransportError("Envelope is not valid base64") from e

        if self._mac_key is not None:
            combined = self._verify(combined)

        iv, ciphertext = combined[:AES_IV_BYTES], combined[AES_IV_BYTES:]
        if len(iv) < AES_IV_BYTES or not ciphertext or len(ciphertext) % (_BLOCK_BITS // 8):
            raise TransportError("Envelope is truncated")

        try:
            decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
            data = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()
            plain = unpadder.update(data) + unpadder.finalize()
            return plain.decode("utf-8")
        except (ValueError, UnicodeDecodeError) as e:
            # Wrong key or corrupted ciphertext: never hand back garbage.
            logger.warning("envelope rejected: %s", e.__class__.__name__)
            raise TransportError("Envelope could not be decrypted") from e
