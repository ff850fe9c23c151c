class PasswordHashError(Exception):
    pass


class RngUnavailable(PasswordHashError):
    """The secure random source could not be read."""


class InvalidConfiguration(PasswordHashError, ValueError):
    """Hasher options rejected at construction time."""


class InvalidHash(PasswordHashError, ValueError):
    """A stored legacy descriptor is malformed."""


class UnsupportedAlgorithm(InvalidHash):
    """A stored legacy descriptor names an algorithm other than sha1."""
