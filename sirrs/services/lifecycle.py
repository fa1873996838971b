"""
Lifecycle engine that enforces the incident invariants.

This is the core enforcement mechanism - every status change and every
resolution photo MUST go through here. It is the only code that appends to an
incident's timeline.
"""
import logging
import math
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, NamedTuple, Optional, Set

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from sirrs.config import settings
from sirrs.models.domain import Incident
from sirrs.models.enums import Category, IncidentStatus
from sirrs.models.timeline import TimelineEntry
from sirrs.services.access import authorize_view, can_manage, is_scoped_to_own, role_of
from sirrs.services.categorizer import categorize
from sirrs.services.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 2000
ADDRESS_MAX_LENGTH = 500
NOTE_MAX_LENGTH = 500
COORDINATE_PRECISION = 8

REPORTED_NOTE = "Incident reported"


class CreatedIncident(NamedTuple):
    incident: Incident
    ai_suggestion: Optional[Category]  # None when the reporter chose the category


class IncidentPage(NamedTuple):
    incidents: List[Incident]
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size)


class LifecycleEngine:
    """
    Applies incident operations against a database session.

    Status transitions are unrestricted by default: any authority or admin may
    move an incident to any status from any status. Pass ``allowed_transitions``
    (current status -> set of permitted next statuses) to restrict them.
    """

    def __init__(
        self,
        db: Session,
        allowed_transitions: Optional[Dict[IncidentStatus, Set[IncidentStatus]]] = None,
        max_photos: Optional[int] = None,
        max_page_size: Optional[int] = None
    ):
        self.db = db
        self.allowed_transitions = allowed_transitions
        self.max_photos = max_photos if max_photos is not None else settings.MAX_PHOTOS_PER_UPLOAD
        self.max_page_size = max_page_size if max_page_size is not None else settings.MAX_PAGE_SIZE

    def create_incident(
        self,
        reporter_id: int,
        title: str,
        description: str,
        latitude,
        longitude,
        category=None,
        photos: Optional[Iterable[str]] = None,
        address: Optional[str] = None,
        deadline: Optional[datetime] = None
    ) -> CreatedIncident:
        """
        Create an incident in the pending state.

        Invariants:
        - All validation happens before anything is added to the session
        - The category is suggested from the description only when omitted
        - The timeline starts with exactly one pending entry authored by the reporter
        """
        self._require_text(title, "Title", TITLE_MAX_LENGTH)
        self._require_text(description, "Description", DESCRIPTION_MAX_LENGTH)
        lat = self._coordinate(latitude, "Latitude", 90)
        lng = self._coordinate(longitude, "Longitude", 180)
        photo_refs = self._photo_refs(photos)

        if address is not None:
            if not isinstance(address, str) or len(address) > ADDRESS_MAX_LENGTH:
                raise ValidationError(f"Address must be text of at most {ADDRESS_MAX_LENGTH} characters")
        if deadline is not None and not isinstance(deadline, datetime):
            raise ValidationError("Deadline must be a datetime")

        if category:
            final_category = self._coerce(Category, category, "category")
            ai_suggestion = None
        else:
            final_category = categorize(description)
            ai_suggestion = final_category

        now = datetime.utcnow()
        incident = Incident(
            title=title,
            description=description,
            category=final_category,
            latitude=lat,
            longitude=lng,
            address=address,
            status=IncidentStatus.PENDING,
            reporter_id=reporter_id,
            deadline=deadline,
            created_at=now,
            updated_at=now
        )
        incident._photos = photo_refs
        incident._resolution_photos = []
        incident._timeline.append(TimelineEntry(
            status=IncidentStatus.PENDING,
            note=REPORTED_NOTE,
            updated_by=reporter_id,
            timestamp=now
        ))

        self.db.add(incident)
        self._commit(incident)
        self.db.refresh(incident)

        logger.info(
            "Incident %s reported by user %s (category=%s, suggested=%s)",
            incident.id, reporter_id, final_category.value, ai_suggestion is not None
        )
        return CreatedIncident(incident, ai_suggestion)

    def transition_status(self, incident_id: int, actor, new_status, note: Optional[str] = None) -> Incident:
        """
        Move an incident to ``new_status`` and record it on the timeline.

        Invariants:
        - Only authority/admin actors, checked before the incident is even loaded
        - status, updated_at and the new timeline entry commit together or not at all
        - After the commit, status equals the status of the last timeline entry
        """
        self._require_manager(actor, "update incident status")
        status = self._coerce(IncidentStatus, new_status, "status")
        if note is not None and not isinstance(note, str):
            raise ValidationError("Note must be text")
        if note is not None and len(note) > NOTE_MAX_LENGTH:
            raise ValidationError(f"Note must be at most {NOTE_MAX_LENGTH} characters")

        incident = self._load(incident_id)

        if self.allowed_transitions is not None:
            allowed = self.allowed_transitions.get(incident.status, set())
            if status not in allowed:
                logger.warning(
                    "Refused transition of incident %s from %s to %s",
                    incident.id, incident.status.value, status.value
                )
                raise ValidationError(
                    f"REFUSAL: Cannot move incident from '{incident.status.value}' to '{status.value}'"
                )

        now = self._next_timestamp(incident)
        incident.status = status
        incident.updated_at = now
        incident._timeline.append(TimelineEntry(
            status=status,
            note=note or f"Status changed to {status.value}",
            updated_by=actor.id,
            timestamp=now
        ))

        self._commit(incident)
        self.db.refresh(incident)

        logger.info("Incident %s moved to %s by user %s", incident.id, status.value, actor.id)
        return incident

    def append_resolution_photos(self, incident_id: int, actor, photo_refs: Iterable[str]) -> Incident:
        """Append evidence of resolution. Leaves status and timeline untouched."""
        self._require_manager(actor, "upload resolution photos")
        refs = self._photo_refs(photo_refs)

        incident = self._load(incident_id)
        # Reassign rather than mutate so the JSON column is flagged dirty
        incident._resolution_photos = list(incident.resolution_photos) + refs
        incident.updated_at = datetime.utcnow()

        self._commit(incident)
        self.db.refresh(incident)

        logger.info("Added %d resolution photo(s) to incident %s", len(refs), incident.id)
        return incident

    def get_incident(self, incident_id: int, actor) -> Incident:
        """Load an incident the actor is allowed to see."""
        incident = self._load(incident_id)
        if not authorize_view(incident, actor):
            logger.warning("User %s refused view of incident %s", actor.id, incident.id)
            raise AuthorizationError("Not authorized to view this incident")
        return incident

    def list_incidents(
        self,
        actor,
        status=None,
        category=None,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> IncidentPage:
        """
        Newest-first page of incidents visible to the actor.

        Citizens only ever see their own reports, whatever the filters say.
        page below 1 is treated as 1; page_size is clamped to [1, max_page_size].
        A page past the last one is empty and never reaches the database offset.
        """
        query = self.db.query(Incident)

        if status:
            query = query.filter(Incident.status == self._coerce(IncidentStatus, status, "status"))
        if category:
            query = query.filter(Incident.category == self._coerce(Category, category, "category"))
        if is_scoped_to_own(actor):
            query = query.filter(Incident.reporter_id == actor.id)

        if page_size is None:
            page_size = settings.DEFAULT_PAGE_SIZE
        try:
            page = max(int(page), 1)
            page_size = min(max(int(page_size), 1), self.max_page_size)
        except (TypeError, ValueError):
            raise ValidationError("page and page size must be integers")

        total = query.count()
        offset = (page - 1) * page_size
        if offset >= total:
            return IncidentPage([], total, page, page_size)

        incidents = (
            query.order_by(Incident.created_at.desc(), Incident.id.desc())
            .offset(offset)
            .limit(page_size)
            .all()
        )
        return IncidentPage(incidents, total, page, page_size)

    def _load(self, incident_id: int) -> Incident:
        incident = self.db.query(Incident).filter(Incident.id == incident_id).first()
        if not incident:
            raise NotFoundError("Incident not found")
        return incident

    def _commit(self, incident: Incident) -> None:
        try:
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            logger.warning("Concurrent write detected on incident %s", incident.id)
            raise ConflictError("Incident was modified by another request; reload and retry")
        except Exception:
            self.db.rollback()
            raise

    def _require_manager(self, actor, action: str) -> None:
        if not can_manage(actor):
            logger.warning("User %s (%s) refused: %s", actor.id, actor.role, action)
            raise AuthorizationError(
                f"User role '{role_of(actor).value}' is not authorized to {action}"
            )

    def _next_timestamp(self, incident: Incident) -> datetime:
        """Now, nudged past the last entry so timeline order is strict."""
        now = datetime.utcnow()
        entries = incident._timeline
        if entries and now <= entries[-1].timestamp:
            now = entries[-1].timestamp + timedelta(microseconds=1)
        return now

    def _photo_refs(self, refs: Optional[Iterable[str]]) -> List[str]:
        if refs is None:
            return []
        if isinstance(refs, str):
            raise ValidationError("Photos must be a list of references")
        refs = list(refs)
        if len(refs) > self.max_photos:
            raise ValidationError(f"At most {self.max_photos} photos may be uploaded at once")
        for ref in refs:
            if not isinstance(ref, str) or not ref.strip():
                raise ValidationError("Photo references must be non-empty strings")
        return refs

    @staticmethod
    def _require_text(value, field: str, max_length: int) -> None:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{field} is required")
        if len(value) > max_length:
            raise ValidationError(f"{field} must be between 1 and {max_length} characters")

    @staticmethod
    def _coordinate(value, field: str, bound: int) -> float:
        if value is None or value == "" or isinstance(value, bool):
            raise ValidationError("Location coordinates are required")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field} must be a number")
        if not math.isfinite(number) or not -bound <= number <= bound:
            raise ValidationError(f"{field} must be between -{bound} and {bound}")
        return round(number, COORDINATE_PRECISION)

    @staticmethod
    def _coerce(enum_cls, value, field: str):
        if isinstance(value, enum_cls):
            return value
        try:
            return enum_cls(value)
        except ValueError:
            allowed = ", ".join(member.value for member in enum_cls)
            raise ValidationError(f"Invalid {field} '{value}'. Allowed values: {allowed}")
