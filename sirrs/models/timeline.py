"""
Incident timeline model - the append-only audit history of an incident.

Entries are written only by the lifecycle engine and are never edited or
deleted afterwards.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Enum as SQLEnum, event
from sirrs.database import Base
from sirrs.models.enums import IncidentStatus, enum_values


class TimelineImmutabilityError(Exception):
    """Raised when something tries to rewrite or remove a timeline entry."""


class TimelineEntry(Base):
    """
    Immutable record of one status change.

    Invariants:
    - Once written, never edited or deleted
    - Append-only
    - timestamp is assigned by the engine, never by the caller
    """
    __tablename__ = "incident_timeline"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    incident_id = Column(Integer, ForeignKey("incidents.id"), nullable=False, index=True)
    status = Column(
        SQLEnum(IncidentStatus, name="incident_status", values_callable=enum_values, create_constraint=True),
        nullable=False
    )
    note = Column(String, nullable=True)
    updated_by = Column(Integer, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)


@event.listens_for(TimelineEntry, "before_update")
def _refuse_update(mapper, connection, target):
    raise TimelineImmutabilityError(
        f"IMMUTABILITY VIOLATION: timeline entry {target.id} cannot be modified"
    )


@event.listens_for(TimelineEntry, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise TimelineImmutabilityError(
        f"IMMUTABILITY VIOLATION: timeline entry {target.id} cannot be deleted"
    )
