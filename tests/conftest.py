import itertools

import pytest


@pytest.fixture(autouse=True)
def settings_configuration(monkeypatch):
    from credhash.settings import settings

    monkeypatch.setattr(settings, "DEFAULT_SCHEME", "identity")
    monkeypatch.setattr(settings, "IDENTITY_COMPATIBILITY_MODE", "v3")
    # keep derivation cheap where a test does not pin the count
    monkeypatch.setattr(settings, "IDENTITY_ITERATION_COUNT", 1000)


@pytest.fixture
def counting_rng():
    """Deterministic random source: 0x00, 0x01, ... wrapping at 256."""
    counter = itertools.count()

    def rng(size: int) -> bytes:
        return bytes(next(counter) % 256 for _ in range(size))

    return rng


@pytest.fixture
def failing_rng():
    def rng(size: int) -> bytes:
        raise OSError("entropy source unavailable")

    return rng
