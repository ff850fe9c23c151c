"""Hash a password, or check one against a stored hash.

Usage:
    uv run python -m credhash.tools.hash_password --password <pass>
    uv run python -m credhash.tools.hash_password  # prompts for password
    uv run python -m credhash.tools.hash_password --scheme legacy_sha1 --password <pass>
    uv run python -m credhash.tools.hash_password --verify <hash> --password <pass>
"""

import argparse
import getpass
import logging
import sys

import structlog

from credhash.errors import PasswordHashError
from credhash.hasher import IDENTITY, LEGACY_SHA1, get_scheme, verify_password
from credhash.identity import PasswordHasherOptions
from credhash.settings import settings

logger = structlog.get_logger(__name__)


def configure_logging(level: str) -> None:
    level_no = logging.getLevelName(level.upper())
    if not isinstance(level_no, int):
        raise ValueError(f"Unknown log level: {level!r}")
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level_no),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def read_password(confirm: bool) -> str:
    password = getpass.getpass("Password: ")
    if confirm:
        again = getpass.getpass("Confirm password: ")
        if password != again:
            print("Passwords do not match", file=sys.stderr)
            sys.exit(1)
    return password


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Hash or verify a password")
    parser.add_argument(
        "--password",
        help="Password (will prompt if not provided)",
    )
    parser.add_argument(
        "--scheme",
        choices=[IDENTITY, LEGACY_SHA1],
        default=settings.DEFAULT_SCHEME,
        help="Hash scheme for new hashes",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=settings.IDENTITY_ITERATION_COUNT,
        help="PBKDF2 iteration count (identity scheme only)",
    )
    parser.add_argument(
        "--verify",
        metavar="HASH",
        help="Check the password against this stored hash instead of hashing",
    )
    args = parser.parse_args(argv)

    try:
        configure_logging(settings.LOG_LEVEL)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    password = args.password
    if password is None:
        password = read_password(confirm=args.verify is None)

    if not password:
        print("Password cannot be empty", file=sys.stderr)
        sys.exit(1)

    try:
        if args.verify is not None:
            valid = verify_password(password, args.verify)
            logger.info("Password verified", valid=valid)
            print("valid" if valid else "invalid")
            sys.exit(0 if valid else 1)

        options = PasswordHasherOptions(
            compatibility_mode=settings.IDENTITY_COMPATIBILITY_MODE,
            iteration_count=args.iterations,
        )
        scheme = get_scheme(args.scheme, options=options, as_text=True)
        print(scheme.hash(password))
        logger.info("Password hashed", scheme=scheme.name)
    except PasswordHashError as e:
        logger.error("Password hash operation failed", error_type=type(e).__name__)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
