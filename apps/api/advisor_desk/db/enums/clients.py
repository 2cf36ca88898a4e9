"""Client enums."""

from enum import Enum


class ClientType(str, Enum):
    """Service line a client is enrolled in."""

    MUTUAL_FUNDS = "mutual_funds"
    HOLISTIC = "holistic"
