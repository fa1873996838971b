"""Domain models - users and the incidents they report."""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Numeric, Enum as SQLEnum, JSON
from sqlalchemy.orm import relationship
from sirrs.database import Base
from sirrs.models.enums import Category, IncidentStatus, Role, enum_values
from sirrs.models.timeline import TimelineEntry


class User(Base):
    """A registered user. Credentials are issued elsewhere; only identity and role live here."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    role = Column(
        SQLEnum(Role, name="user_role", values_callable=enum_values, create_constraint=True),
        nullable=False,
        default=Role.CITIZEN
    )
    phone = Column(String(20), nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    incidents = relationship("Incident", back_populates="reporter")


class Incident(Base):
    """
    A citizen-reported incident.

    Invariants enforced here:
    - category and status are always members of their closed enums (CHECK constraints)
    - timeline, photos and resolution_photos are read-only from outside the
      lifecycle engine; the properties below return tuples
    - version guards every UPDATE so racing writers cannot lose an update
    """
    __tablename__ = "incidents"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    description = Column(String(2000), nullable=False)
    category = Column(
        SQLEnum(Category, name="incident_category", values_callable=enum_values, create_constraint=True),
        nullable=False,
        default=Category.OTHER,
        index=True
    )
    latitude = Column(Numeric(10, 8, asdecimal=False), nullable=False)
    longitude = Column(Numeric(11, 8, asdecimal=False), nullable=False)
    address = Column(String(500), nullable=True)
    status = Column(
        SQLEnum(IncidentStatus, name="incident_status", values_callable=enum_values, create_constraint=True),
        nullable=False,
        default=IncidentStatus.PENDING,
        index=True
    )
    reporter_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    deadline = Column(DateTime, nullable=True)

    _photos = Column("photos", JSON, nullable=False, default=list)
    _resolution_photos = Column("resolution_photos", JSON, nullable=False, default=list)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    reporter = relationship("User", back_populates="incidents")
    _timeline = relationship(
        TimelineEntry,
        order_by=[TimelineEntry.timestamp, TimelineEntry.id],
        cascade="save-update, merge"
    )

    @property
    def timeline(self):
        return tuple(self._timeline)

    @property
    def photos(self):
        return tuple(self._photos or ())

    @property
    def resolution_photos(self):
        return tuple(self._resolution_photos or ())
