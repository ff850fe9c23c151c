from credhash.errors import (
    InvalidConfiguration,
    InvalidHash,
    PasswordHashError,
    RngUnavailable,
    UnsupportedAlgorithm,
)
from credhash.hasher import (
    detect_scheme,
    get_scheme,
    hash_password,
    hash_password_async,
    needs_rehash,
    verify_password,
    verify_password_async,
)

__all__ = [
    "InvalidConfiguration",
    "InvalidHash",
    "PasswordHashError",
    "RngUnavailable",
    "UnsupportedAlgorithm",
    "detect_scheme",
    "get_scheme",
    "hash_password",
    "hash_password_async",
    "needs_rehash",
    "verify_password",
    "verify_password_async",
]
