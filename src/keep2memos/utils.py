"""Utility functions for the Keep to Memos importer."""
import datetime
import secrets
from datetime import timezone

EPOCH = datetime.datetime(1970, 1, 1, tzinfo=timezone.utc)

_BASE32_DIGITS = "0123456789abcdefghijklmnopqrstuv"


def random_token(bits: int = 130) -> str:
    """Generate an opaque random identifier for a new database row.

    Draws ``bits`` bits from the OS CSPRNG and renders them in base 32
    (digits then lowercase letters), giving a token of up to 26 characters
    for the default 130 bits.

    Returns:
        Lowercase base-32 string, never empty.
    """
    value = secrets.randbits(bits)
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 32)
        digits.append(_BASE32_DIGITS[rem])
    return "".join(reversed(digits))


def micros_to_datetime(micros: int) -> datetime.datetime:
    """Convert microseconds since the Unix epoch to an aware UTC datetime."""
    return EPOCH + datetime.timedelta(microseconds=micros)


def to_rfc3339(value: datetime.datetime) -> str:
    """Format an aware datetime the way the Memos API expects (``...Z``)."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def to_naive_utc(value: datetime.datetime) -> datetime.datetime:
    """Drop tzinfo after converting to UTC, for database drivers."""
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def sanitize_filename(name: str) -> str:
    """Make an attachment file name safe to place in the resources directory.

    Keeps only the final path component and replaces characters that are
    awkward on common filesystems.

    Examples:
        "photo 1.jpg" -> "photo 1.jpg"
        "../../etc/passwd" -> "passwd"
        "a:b*c?.png" -> "a_b_c_.png"
    """
    base = name.replace("\\", "/").rsplit("/", 1)[-1].strip()
    cleaned = "".join(
        "_" if c in '<>:"|?*' or ord(c) < 32 else c for c in base
    )
    if cleaned in ("", ".", ".."):
        return "attachment"
    return cleaned
