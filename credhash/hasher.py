"""Scheme dispatch for stored password hashes.

Two schemes can live in the same credential store while hashes migrate:

- ``legacy_sha1``: base64 text descriptors from `credhash.legacy`
- ``identity``: binary blobs from `credhash.identity`, either raw bytes or
  base64 text

The scheme of a stored value is read from the value itself (its type, its
leading format byte and its length), so callers only ever need
`verify_password` and `needs_rehash`. New hashes use `settings.DEFAULT_SCHEME`
unless told otherwise.
"""

import asyncio
import base64
import binascii
from typing import Protocol

from credhash import legacy
from credhash.identity import (
    FORMAT_MARKER_V2,
    FORMAT_MARKER_V3,
    MIN_SALT_SIZE,
    MIN_SUBKEY_SIZE,
    V2_BLOB_SIZE,
    V3_HEADER_SIZE,
    CompatibilityMode,
    PasswordHasher,
    PasswordHasherOptions,
)
from credhash.logger import logger
from credhash.settings import Scheme, settings

StoredHash = bytes | str

LEGACY_SHA1: Scheme = "legacy_sha1"
IDENTITY: Scheme = "identity"

MIN_V3_BLOB_SIZE = V3_HEADER_SIZE + MIN_SALT_SIZE + MIN_SUBKEY_SIZE


class PasswordHashScheme(Protocol):
    name: Scheme

    def hash(self, password: str) -> StoredHash: ...

    def verify(self, password: str, stored: StoredHash) -> bool: ...

    def needs_rehash(self, stored: StoredHash) -> bool: ...


class LegacySha1Scheme:
    name: Scheme = LEGACY_SHA1

    def hash(self, password: str) -> str:
        return legacy.hash_password(password)

    def verify(self, password: str, stored: StoredHash) -> bool:
        # malformed descriptors raise InvalidHash / UnsupportedAlgorithm
        return legacy.validate_password(password, stored)

    def needs_rehash(self, stored: StoredHash) -> bool:
        descriptor = legacy.parse_descriptor(stored)
        return (
            descriptor.iterations < legacy.PBKDF2_ITERATIONS
            or descriptor.hash_size < legacy.HASH_BYTES
        )


class IdentityScheme:
    name: Scheme = IDENTITY

    def __init__(self, hasher: PasswordHasher, as_text: bool = False):
        self.hasher = hasher
        self.as_text = as_text

    def hash(self, password: str) -> StoredHash:
        blob = self.hasher.hash_password(password)
        if self.as_text:
            return base64.b64encode(blob).decode("ascii")
        return blob

    def verify(self, password: str, stored: StoredHash) -> bool:
        blob = _identity_bytes(stored)
        if blob is None:
            return False
        return self.hasher.validate_password(password, blob)

    def needs_rehash(self, stored: StoredHash) -> bool:
        blob = _identity_bytes(stored)
        if blob is None:
            return True
        return self.hasher.needs_rehash(blob)


def _identity_bytes(stored: StoredHash) -> bytes | None:
    if isinstance(stored, (bytes, bytearray, memoryview)):
        return bytes(stored)
    try:
        return base64.b64decode(stored, validate=True)
    except (binascii.Error, ValueError, TypeError):
        return None


def identity_options() -> PasswordHasherOptions:
    return PasswordHasherOptions(
        compatibility_mode=CompatibilityMode(settings.IDENTITY_COMPATIBILITY_MODE),
        iteration_count=settings.IDENTITY_ITERATION_COUNT,
    )


def get_scheme(
    name: Scheme | None = None,
    options: PasswordHasherOptions | None = None,
    as_text: bool = False,
) -> PasswordHashScheme:
    name = name or settings.DEFAULT_SCHEME
    if name == LEGACY_SHA1:
        return LegacySha1Scheme()
    if name == IDENTITY:
        return IdentityScheme(PasswordHasher(options or identity_options()), as_text)
    raise ValueError(f"Unknown password hash scheme: {name!r}")


def detect_scheme(stored: StoredHash) -> Scheme:
    """Identify which scheme produced `stored`."""
    if isinstance(stored, (bytes, bytearray, memoryview)):
        return IDENTITY
    if not isinstance(stored, str):
        raise TypeError(f"Stored hash must be bytes or str, got {type(stored).__name__}")
    try:
        raw = base64.b64decode(stored, validate=True)
    except (binascii.Error, ValueError):
        # let the legacy parser report the malformed descriptor
        return LEGACY_SHA1
    if raw[:1] == bytes([FORMAT_MARKER_V2]) and len(raw) == V2_BLOB_SIZE:
        return IDENTITY
    if raw[:1] == bytes([FORMAT_MARKER_V3]) and len(raw) >= MIN_V3_BLOB_SIZE:
        return IDENTITY
    return LEGACY_SHA1


def hash_password(
    password: str, scheme: Scheme | None = None, as_text: bool = False
) -> StoredHash:
    selected = get_scheme(scheme, as_text=as_text)
    logger.debug("Hashing password", scheme=selected.name)
    return selected.hash(password)


def verify_password(password: str, stored: StoredHash) -> bool:
    """Check `password` against a stored hash of either scheme.

    Legacy descriptors that cannot be parsed raise InvalidHash; identity blobs
    that cannot be parsed simply do not match.
    """
    name = detect_scheme(stored)
    logger.debug("Verifying password hash", scheme=name)
    return get_scheme(name).verify(password, stored)


def needs_rehash(stored: StoredHash) -> bool:
    name = detect_scheme(stored)
    if name != settings.DEFAULT_SCHEME:
        return True
    return get_scheme(name).needs_rehash(stored)


async def hash_password_async(
    password: str, scheme: Scheme | None = None, as_text: bool = False
) -> StoredHash:
    return await asyncio.to_thread(hash_password, password, scheme, as_text)


async def verify_password_async(password: str, stored: StoredHash) -> bool:
    return await asyncio.to_thread(verify_password, password, stored)
