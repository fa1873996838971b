"""Enums for SIRRS - the closed value sets for categories, statuses and roles."""
from enum import Enum


class Category(str, Enum):
    """
    Incident categories.

    Declaration order is significant: the categorizer breaks score ties in
    favour of the category declared first.
    """
    ROAD = "road"
    WATER = "water"
    ELECTRICITY = "electricity"
    WASTE = "waste"
    SAFETY = "safety"
    OTHER = "other"


class IncidentStatus(str, Enum):
    """The five lifecycle states. No other states are allowed."""
    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class Role(str, Enum):
    """Actor roles supplied by the identity layer."""
    CITIZEN = "citizen"
    AUTHORITY = "authority"
    ADMIN = "admin"


def enum_values(enum_cls):
    """Persist enum values ("in-progress") rather than member names ("IN_PROGRESS")."""
    return [member.value for member in enum_cls]
