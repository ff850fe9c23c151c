"""Tests for text-encoded PBKDF2-SHA1 hashes."""

import base64

import pytest

from credhash.errors import InvalidHash, RngUnavailable, UnsupportedAlgorithm
from credhash.legacy import (
    HASH_BYTES,
    PBKDF2_ITERATIONS,
    SALT_BYTES,
    HashDescriptor,
    create_hash,
    hash_password,
    parse_descriptor,
    validate_password,
)

# RFC 6070 PBKDF2-HMAC-SHA1 vectors for "password" / "salt"
RFC6070_C1 = bytes.fromhex("0c60c80f961f0e71f3a9b524af6012062fe037a6")
RFC6070_C2 = bytes.fromhex("ea6c014dc72d6f8ccd1ed92ace1d41f0d8de8957")


def _descriptor(*fields: str) -> str:
    return base64.b64encode(":".join(fields).encode("utf-8")).decode("ascii")


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def test_hash_is_created():
    h = hash_password("tms58431")
    assert isinstance(h, str)
    assert h
    decoded = base64.b64decode(h, validate=True).decode("utf-8")
    assert len(decoded.split(":")) == 5


def test_hash_format():
    h = hash_password("test")
    algorithm, iterations, hash_size, salt, subkey = (
        base64.b64decode(h).decode("utf-8").split(":")
    )
    assert algorithm == "sha1"
    assert iterations == str(PBKDF2_ITERATIONS)
    assert hash_size == str(HASH_BYTES)
    assert len(base64.b64decode(salt)) == SALT_BYTES
    assert len(base64.b64decode(subkey)) == HASH_BYTES


def test_hash_and_verify():
    h = hash_password("password")
    assert validate_password("password", h) is True


def test_wrong_password():
    h = hash_password("password")
    assert validate_password("Password", h) is False
    assert validate_password("PASSWORD", h) is False
    assert validate_password("P@$$w04d", h) is False


def test_different_salts():
    h1 = hash_password("password")
    h2 = hash_password("password")
    assert h1 != h2
    assert validate_password("password", h1) is True
    assert validate_password("password", h2) is True


def test_unicode_password():
    pw = "pässwörd\U0001f512"
    h = hash_password(pw)
    assert validate_password(pw, h) is True
    assert validate_password("password", h) is False


def test_known_vectors():
    assert validate_password(
        "password", _descriptor("sha1", "1", "20", _b64(b"salt"), _b64(RFC6070_C1))
    )
    assert validate_password(
        "password", _descriptor("sha1", "2", "20", _b64(b"salt"), _b64(RFC6070_C2))
    )
    assert not validate_password(
        "password", _descriptor("sha1", "2", "20", _b64(b"salt"), _b64(RFC6070_C1))
    )


def test_create_hash_with_explicit_salt():
    salt = b"\x01" * SALT_BYTES
    assert create_hash("password", salt) == create_hash("password", salt)
    assert len(create_hash("password", salt)) == HASH_BYTES
    assert create_hash("password", salt) != create_hash("password", b"\x02" * SALT_BYTES)


def test_create_hash_fresh_salt():
    assert create_hash("password") != create_hash("password")


def test_rng_unavailable(failing_rng):
    with pytest.raises(RngUnavailable):
        hash_password("password", rng=failing_rng)
    with pytest.raises(RngUnavailable):
        create_hash("password", rng=failing_rng)


def test_descriptor_roundtrip_matches_encoding(counting_rng):
    h = hash_password("password", rng=counting_rng)
    descriptor = parse_descriptor(h)
    assert descriptor.salt == bytes(range(SALT_BYTES))
    assert descriptor.iterations == PBKDF2_ITERATIONS
    assert descriptor.hash_size == len(descriptor.subkey) == HASH_BYTES
    assert descriptor.encode() == h


def test_descriptor_is_immutable():
    descriptor = HashDescriptor("sha1", 1, 1, b"s", b"k")
    with pytest.raises(AttributeError):
        descriptor.iterations = 2


def test_unsupported_algorithm():
    stored = _descriptor("sha256", "1", "20", _b64(b"salt"), _b64(RFC6070_C1))
    with pytest.raises(UnsupportedAlgorithm):
        validate_password("password", stored)
    # still a malformed descriptor from the caller's point of view
    with pytest.raises(InvalidHash):
        validate_password("password", stored)


@pytest.mark.parametrize(
    "fields",
    [
        ("sha1", "1", "20", _b64(b"salt")),
        ("sha1", "1", "20", _b64(b"salt"), _b64(RFC6070_C1), "extra"),
    ],
)
def test_wrong_field_count(fields):
    with pytest.raises(InvalidHash) as exc_info:
        validate_password("password", _descriptor(*fields))
    assert not isinstance(exc_info.value, UnsupportedAlgorithm)


def test_hash_size_mismatch():
    stored = _descriptor("sha1", "1", "18", _b64(b"salt"), _b64(RFC6070_C1))
    with pytest.raises(InvalidHash, match="length"):
        validate_password("password", stored)


@pytest.mark.parametrize("iterations", ["0", "-5", "abc", "", "1.5", "99999999999"])
def test_bad_iteration_count(iterations):
    stored = _descriptor("sha1", iterations, "20", _b64(b"salt"), _b64(RFC6070_C1))
    with pytest.raises(InvalidHash):
        validate_password("password", stored)


@pytest.mark.parametrize("hash_size", ["x", "0", "-20"])
def test_bad_hash_size(hash_size):
    stored = _descriptor("sha1", "1", hash_size, _b64(b"salt"), _b64(RFC6070_C1))
    with pytest.raises(InvalidHash):
        validate_password("password", stored)


def test_bad_salt_encoding():
    stored = _descriptor("sha1", "1", "20", "not base64!", _b64(RFC6070_C1))
    with pytest.raises(InvalidHash, match="salt"):
        validate_password("password", stored)


def test_bad_subkey_encoding():
    stored = _descriptor("sha1", "1", "20", _b64(b"salt"), "***")
    with pytest.raises(InvalidHash, match="pbkdf2"):
        validate_password("password", stored)


def test_bad_outer_encoding():
    with pytest.raises(InvalidHash):
        validate_password("password", "this is not base64")
    with pytest.raises(InvalidHash):
        validate_password("password", _b64(b"\xff\xfe\xfd\xfc"))
    with pytest.raises(InvalidHash):
        validate_password("password", "")
