import secrets
from typing import Callable

from credhash.errors import RngUnavailable

RandomSource = Callable[[int], bytes]


def random_bytes(size: int, rng: RandomSource | None = None) -> bytes:
    """Read `size` bytes from `rng`, or from the process CSPRNG by default."""
    source = rng or secrets.token_bytes
    try:
        data = source(size)
    except (OSError, NotImplementedError) as e:
        raise RngUnavailable("Random number generator not available.") from e
    if len(data) != size:
        raise RngUnavailable(
            f"Random number generator returned {len(data)} bytes, expected {size}"
        )
    return bytes(data)
