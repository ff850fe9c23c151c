"""Binary versioned password hashes, compatible with ASP.NET Core Identity.

Version 2:
    PBKDF2 with HMAC-SHA1, 128-bit salt, 256-bit subkey, 1000 iterations.
    Format: { 0x00, salt, subkey }

Version 3:
    PBKDF2 with HMAC-SHA256, 128-bit salt, 256-bit subkey, 10000 iterations
    by default.
    Format: { 0x01, prf (uint32), iter count (uint32), salt length (uint32),
    salt, subkey }
    All uint32 fields are big-endian.

Verification never raises on a malformed blob; it is reported as a failed
match.
"""

import hashlib
import struct
from dataclasses import dataclass
from enum import Enum, IntEnum

from credhash.comparator import bytes_equal
from credhash.errors import InvalidConfiguration
from credhash.rng import RandomSource, random_bytes

FORMAT_MARKER_V2 = 0x00
FORMAT_MARKER_V3 = 0x01

V3_HEADER = struct.Struct(">BIII")
V3_HEADER_SIZE = V3_HEADER.size  # 13

SALT_SIZE = 128 // 8
SUBKEY_SIZE = 256 // 8
MIN_SALT_SIZE = 128 // 8
MIN_SUBKEY_SIZE = 128 // 8

V2_ITERATION_COUNT = 1000
V2_BLOB_SIZE = 1 + SALT_SIZE + SUBKEY_SIZE

DEFAULT_ITERATION_COUNT = 10000
MAX_ITERATION_COUNT = 2**31 - 1


class KeyDerivationPrf(IntEnum):
    HMACSHA1 = 0
    HMACSHA256 = 1
    HMACSHA512 = 2

    @property
    def digest(self) -> str:
        return {
            KeyDerivationPrf.HMACSHA1: "sha1",
            KeyDerivationPrf.HMACSHA256: "sha256",
            KeyDerivationPrf.HMACSHA512: "sha512",
        }[self]


class CompatibilityMode(str, Enum):
    IDENTITY_V2 = "v2"
    IDENTITY_V3 = "v3"


class PasswordVerificationResult(Enum):
    FAILED = "failed"
    SUCCESS = "success"
    SUCCESS_REHASH_NEEDED = "success_rehash_needed"

    def __bool__(self) -> bool:
        return self is not PasswordVerificationResult.FAILED


@dataclass(frozen=True)
class PasswordHasherOptions:
    compatibility_mode: CompatibilityMode | str = CompatibilityMode.IDENTITY_V3
    iteration_count: int = DEFAULT_ITERATION_COUNT
    rng: RandomSource | None = None


@dataclass(frozen=True)
class HashBlob:
    """Decoded version 3 blob."""

    prf: KeyDerivationPrf
    iteration_count: int
    salt: bytes
    subkey: bytes

    def to_bytes(self) -> bytes:
        header = V3_HEADER.pack(
            FORMAT_MARKER_V3, int(self.prf), self.iteration_count, len(self.salt)
        )
        return header + self.salt + self.subkey

    @classmethod
    def from_bytes(cls, data: bytes) -> "HashBlob":
        """Parse a version 3 blob.

        Raises ValueError (or struct.error) when the blob is truncated, names
        an unknown PRF or carries an undersized salt or subkey.
        """
        marker, prf, iteration_count, salt_length = V3_HEADER.unpack_from(data, 0)
        if marker != FORMAT_MARKER_V3:
            raise ValueError(f"Unexpected format marker {marker:#04x}")
        if iteration_count < 1 or iteration_count > MAX_ITERATION_COUNT:
            raise ValueError(f"Invalid iteration count {iteration_count}")
        if salt_length < MIN_SALT_SIZE:
            raise ValueError(f"Salt too short ({salt_length} bytes)")
        subkey_length = len(data) - V3_HEADER_SIZE - salt_length
        if subkey_length < MIN_SUBKEY_SIZE:
            raise ValueError(f"Subkey too short ({subkey_length} bytes)")
        salt_end = V3_HEADER_SIZE + salt_length
        return cls(
            prf=KeyDerivationPrf(prf),
            iteration_count=iteration_count,
            salt=bytes(data[V3_HEADER_SIZE:salt_end]),
            subkey=bytes(data[salt_end:]),
        )


def _pbkdf2(
    password: str, salt: bytes, prf: KeyDerivationPrf, iterations: int, length: int
) -> bytes:
    return hashlib.pbkdf2_hmac(
        prf.digest, password.encode("utf-8"), salt, iterations, length
    )


class PasswordHasher:
    def __init__(self, options: PasswordHasherOptions | None = None):
        options = options or PasswordHasherOptions()

        try:
            self.compatibility_mode = CompatibilityMode(options.compatibility_mode)
        except ValueError as e:
            raise InvalidConfiguration(
                f"Invalid compatibility mode: {options.compatibility_mode!r}"
            ) from e

        self.iteration_count = 0
        if self.compatibility_mode is CompatibilityMode.IDENTITY_V3:
            iteration_count = options.iteration_count
            if (
                not isinstance(iteration_count, int)
                or isinstance(iteration_count, bool)
                or iteration_count < 1
            ):
                raise InvalidConfiguration(
                    f"Iteration count must be a positive integer, got {iteration_count!r}"
                )
            if iteration_count > MAX_ITERATION_COUNT:
                raise InvalidConfiguration(
                    f"Iteration count {iteration_count} is too large"
                )
            self.iteration_count = iteration_count

        self._rng = options.rng

    def hash_password(self, password: str) -> bytes:
        if self.compatibility_mode is CompatibilityMode.IDENTITY_V2:
            return self._hash_password_v2(password)
        return self._hash_password_v3(password)

    def validate_password(self, password: str, password_hash: bytes) -> bool:
        return bool(self.verify_hashed_password(password_hash, password))

    def verify_hashed_password(
        self, password_hash: bytes, password: str
    ) -> PasswordVerificationResult:
        if not password_hash:
            return PasswordVerificationResult.FAILED

        marker = password_hash[0]
        if marker == FORMAT_MARKER_V2:
            if not self._verify_v2(password_hash, password):
                return PasswordVerificationResult.FAILED
            if self.compatibility_mode is CompatibilityMode.IDENTITY_V3:
                return PasswordVerificationResult.SUCCESS_REHASH_NEEDED
            return PasswordVerificationResult.SUCCESS

        if marker == FORMAT_MARKER_V3:
            blob = self._verify_v3(password_hash, password)
            if blob is None:
                return PasswordVerificationResult.FAILED
            if blob.iteration_count < self.iteration_count:
                return PasswordVerificationResult.SUCCESS_REHASH_NEEDED
            return PasswordVerificationResult.SUCCESS

        return PasswordVerificationResult.FAILED

    def needs_rehash(self, password_hash: bytes) -> bool:
        """Tell from the header alone whether a stored blob should be replaced."""
        if not password_hash:
            return True
        if password_hash[0] == FORMAT_MARKER_V2:
            if len(password_hash) != V2_BLOB_SIZE:
                return True
            return self.compatibility_mode is CompatibilityMode.IDENTITY_V3
        try:
            blob = HashBlob.from_bytes(password_hash)
        except (ValueError, struct.error):
            return True
        return blob.iteration_count < self.iteration_count

    def _hash_password_v2(self, password: str) -> bytes:
        salt = random_bytes(SALT_SIZE, self._rng)
        subkey = _pbkdf2(
            password, salt, KeyDerivationPrf.HMACSHA1, V2_ITERATION_COUNT, SUBKEY_SIZE
        )
        return bytes([FORMAT_MARKER_V2]) + salt + subkey

    def _hash_password_v3(self, password: str) -> bytes:
        prf = KeyDerivationPrf.HMACSHA256
        salt = random_bytes(SALT_SIZE, self._rng)
        subkey = _pbkdf2(password, salt, prf, self.iteration_count, SUBKEY_SIZE)
        return HashBlob(
            prf=prf,
            iteration_count=self.iteration_count,
            salt=salt,
            subkey=subkey,
        ).to_bytes()

    @staticmethod
    def _verify_v2(password_hash: bytes, password: str) -> bool:
        if len(password_hash) != V2_BLOB_SIZE:
            return False
        salt = bytes(password_hash[1 : 1 + SALT_SIZE])
        expected_subkey = bytes(password_hash[1 + SALT_SIZE :])
        actual_subkey = _pbkdf2(
            password, salt, KeyDerivationPrf.HMACSHA1, V2_ITERATION_COUNT, SUBKEY_SIZE
        )
        return bytes_equal(actual_subkey, expected_subkey)

    @staticmethod
    def _verify_v3(password_hash: bytes, password: str) -> HashBlob | None:
        try:
            blob = HashBlob.from_bytes(password_hash)
            # a shorter PBKDF2 output is a prefix of the full one, so a
            # truncated subkey would otherwise still match
            if len(blob.subkey) != SUBKEY_SIZE:
                return None
            actual_subkey = _pbkdf2(
                password, blob.salt, blob.prf, blob.iteration_count, len(blob.subkey)
            )
        except (ValueError, TypeError, OverflowError, struct.error):
            # a malformed payload means verification failed
            return None
        if not bytes_equal(actual_subkey, blob.subkey):
            return None
        return blob
