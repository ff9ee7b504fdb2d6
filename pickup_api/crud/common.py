import uuid
from datetime import datetime, timezone

from pickup_api.exceptions import InvalidIdError


def validate_id(value: str, field_name: str) -> None:
    """
    Raise InvalidIdError unless value is a canonical UUID string: lowercase,
    hyphenated, no braces. Cosmos DB ids are case-sensitive, so any other
    spelling of a stored id would never match.
    """
    try:
        parsed = uuid.UUID(value)
    except (TypeError, ValueError, AttributeError):
        raise InvalidIdError(field_name) from None
    if str(parsed) != value:
        raise InvalidIdError(field_name)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()
