"""Normalization helpers for user-supplied identifiers and import values."""

import re

from advisor_desk.db.enums import ClientType

_CLIENT_TYPE_ALIASES = {
    "mutual fund": ClientType.MUTUAL_FUNDS,
    "mutual funds": ClientType.MUTUAL_FUNDS,
    "mutual_funds": ClientType.MUTUAL_FUNDS,
    "mutualfunds": ClientType.MUTUAL_FUNDS,
    "mf": ClientType.MUTUAL_FUNDS,
    "holistic": ClientType.HOLISTIC,
}


def normalize_username(username: str) -> str:
    """Trim and lowercase a login name."""
    return (username or "").strip().lower()


def normalize_name(value: str | None) -> str:
    """Trim and collapse internal whitespace."""
    return re.sub(r"\s+", " ", (value or "").strip())


def normalize_header(header: str | None) -> str:
    """Lowercase a CSV header and drop spaces/underscores ("Client Type" -> "clienttype")."""
    return re.sub(r"[\s_]+", "", (header or "").strip().lower())


def normalize_client_type(value: str | None) -> ClientType | None:
    """Map free-text client type to ClientType, or None when unrecognised."""
    key = normalize_name(value).lower()
    return _CLIENT_TYPE_ALIASES.get(key)
