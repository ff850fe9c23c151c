"""Text-encoded PBKDF2-HMAC-SHA1 password hashes.

Stored form is base64 of the UTF-8 text

    sha1:<iterations>:<hash size>:<base64 salt>:<base64 subkey>

The layout is fixed; only the constants used for new hashes may change.
"""

import base64
import binascii
import hashlib
import re
from dataclasses import dataclass

from credhash.comparator import bytes_equal
from credhash.errors import InvalidHash, UnsupportedAlgorithm
from credhash.rng import RandomSource, random_bytes

SALT_BYTES = 24
HASH_BYTES = 18
PBKDF2_ITERATIONS = 64000

HASH_ALGORITHM = "sha1"
HASH_SECTIONS = 5
HASH_ALGORITHM_INDEX = 0
ITERATION_INDEX = 1
HASH_SIZE_INDEX = 2
SALT_INDEX = 3
PBKDF2_INDEX = 4

INT32_MAX = 2**31 - 1

_INT_RE = re.compile(r"\s*[+-]?\d+\s*", re.ASCII)


@dataclass(frozen=True)
class HashDescriptor:
    algorithm: str
    iterations: int
    hash_size: int
    salt: bytes
    subkey: bytes

    def encode(self) -> str:
        parts = ":".join(
            [
                self.algorithm,
                str(self.iterations),
                str(self.hash_size),
                base64.b64encode(self.salt).decode("ascii"),
                base64.b64encode(self.subkey).decode("ascii"),
            ]
        )
        return base64.b64encode(parts.encode("utf-8")).decode("ascii")


def _pbkdf2(password: str, salt: bytes, iterations: int, length: int) -> bytes:
    return hashlib.pbkdf2_hmac(
        HASH_ALGORITHM, password.encode("utf-8"), salt, iterations, length
    )


def _b64decode(value: str, what: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidHash(f"Base64 decoding of {what} failed.") from e


def _parse_int(value: str, what: str) -> int:
    if not _INT_RE.fullmatch(value):
        raise InvalidHash(f"Could not parse the {what} as an integer.")
    parsed = int(value)
    if parsed > INT32_MAX or parsed < -INT32_MAX - 1:
        raise InvalidHash(f"The {what} is too large to be represented.")
    return parsed


def create_hash(
    password: str, salt: bytes | None = None, rng: RandomSource | None = None
) -> bytes:
    """Derive HASH_BYTES of key material for `password`.

    A fresh SALT_BYTES salt is drawn when `salt` is omitted. Passing a salt is
    meant for tests; production code goes through `hash_password`.
    """
    if salt is None:
        salt = random_bytes(SALT_BYTES, rng)
    return _pbkdf2(password, salt, PBKDF2_ITERATIONS, HASH_BYTES)


def hash_password(password: str, rng: RandomSource | None = None) -> str:
    salt = random_bytes(SALT_BYTES, rng)
    subkey = create_hash(password, salt)
    return HashDescriptor(
        algorithm=HASH_ALGORITHM,
        iterations=PBKDF2_ITERATIONS,
        hash_size=len(subkey),
        salt=salt,
        subkey=subkey,
    ).encode()


def parse_descriptor(stored: str) -> HashDescriptor:
    """Decode and check a stored descriptor.

    Raises:
        InvalidHash: the descriptor is malformed.
        UnsupportedAlgorithm: the descriptor is not a sha1 descriptor.
    """
    raw = _b64decode(stored, "password hash")
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidHash("Password hash is not valid UTF-8.") from e

    split = text.split(":")
    if len(split) != HASH_SECTIONS:
        raise InvalidHash("Fields are missing from the password hash.")

    if split[HASH_ALGORITHM_INDEX] != HASH_ALGORITHM:
        raise UnsupportedAlgorithm("Unsupported hash type.")

    iterations = _parse_int(split[ITERATION_INDEX], "iteration count")
    if iterations < 1:
        raise InvalidHash("Invalid number of iterations. Must be >= 1.")

    salt = _b64decode(split[SALT_INDEX], "salt")
    subkey = _b64decode(split[PBKDF2_INDEX], "pbkdf2 output")

    hash_size = _parse_int(split[HASH_SIZE_INDEX], "hash size")
    if hash_size < 1:
        raise InvalidHash("Invalid hash size. Must be >= 1.")
    if hash_size != len(subkey):
        raise InvalidHash("Hash length doesn't match stored hash length.")

    return HashDescriptor(
        algorithm=HASH_ALGORITHM,
        iterations=iterations,
        hash_size=hash_size,
        salt=salt,
        subkey=subkey,
    )


def validate_password(password: str, stored: str) -> bool:
    descriptor = parse_descriptor(stored)
    candidate = _pbkdf2(
        password, descriptor.salt, descriptor.iterations, len(descriptor.subkey)
    )
    return bytes_equal(descriptor.subkey, candidate)
