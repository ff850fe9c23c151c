"""Constant-time byte comparison.

The comparison must never exit early: neither on a length mismatch nor on the
first differing byte. `hmac.compare_digest` honours that contract in C, which
a byte loop in Python cannot guarantee; an `==` on the buffers may not be used.
"""

import hmac


def bytes_equal(a: bytes, b: bytes) -> bool:
    return hmac.compare_digest(bytes(a), bytes(b))
