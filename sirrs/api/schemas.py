"""Pydantic schemas for request/response validation.

Response field names follow the wire format existing clients consume
(camelCase), so they are spelled that way here rather than aliased.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel
from sirrs.models.enums import Category, IncidentStatus


# Requests. Field rules are enforced by the lifecycle engine so that every
# rejection comes back as the same 400 shape.
class IncidentCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None
    deadline: Optional[datetime] = None
    photos: List[str] = []


class StatusUpdate(BaseModel):
    status: Optional[str] = None
    note: Optional[str] = None


class ResolutionPhotosUpload(BaseModel):
    photos: List[str]


# Responses
class TimelineEntryResponse(BaseModel):
    status: IncidentStatus
    note: Optional[str]
    updatedBy: int
    timestamp: datetime


class ReporterSummary(BaseModel):
    name: str
    email: str


class ReporterDetail(ReporterSummary):
    phone: Optional[str] = None


class IncidentResponse(BaseModel):
    id: int
    title: str
    description: str
    category: Category
    photos: List[str]
    latitude: float
    longitude: float
    address: Optional[str]
    status: IncidentStatus
    reporterId: int
    deadline: Optional[datetime]
    timeline: List[TimelineEntryResponse]
    resolutionPhotos: List[str]
    createdAt: datetime
    updatedAt: datetime
    reporter: Optional[ReporterSummary] = None

    @classmethod
    def from_incident(cls, incident) -> "IncidentResponse":
        return cls(
            id=incident.id,
            title=incident.title,
            description=incident.description,
            category=incident.category,
            photos=list(incident.photos),
            latitude=incident.latitude,
            longitude=incident.longitude,
            address=incident.address,
            status=incident.status,
            reporterId=incident.reporter_id,
            deadline=incident.deadline,
            timeline=[
                TimelineEntryResponse(
                    status=entry.status,
                    note=entry.note,
                    updatedBy=entry.updated_by,
                    timestamp=entry.timestamp
                )
                for entry in incident.timeline
            ],
            resolutionPhotos=list(incident.resolution_photos),
            createdAt=incident.created_at,
            updatedAt=incident.updated_at,
            reporter=cls.reporter_block(incident.reporter)
        )

    @classmethod
    def reporter_block(cls, user) -> Optional[ReporterSummary]:
        if user is None:
            return None
        return ReporterSummary(name=user.name, email=user.email)


class IncidentDetailResponse(IncidentResponse):
    """Single-incident read; the reporter block also carries a phone number."""
    reporter: Optional[ReporterDetail] = None

    @classmethod
    def reporter_block(cls, user) -> Optional[ReporterDetail]:
        if user is None:
            return None
        return ReporterDetail(name=user.name, email=user.email, phone=user.phone)


class IncidentEnvelope(BaseModel):
    success: bool = True
    incident: IncidentResponse


class IncidentDetailEnvelope(BaseModel):
    success: bool = True
    incident: IncidentDetailResponse


class IncidentCreatedResponse(IncidentEnvelope):
    aiSuggestion: Optional[Category] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class IncidentListResponse(BaseModel):
    success: bool = True
    incidents: List[IncidentResponse]
    pagination: Pagination


class ResolutionPhotosResponse(IncidentEnvelope):
    photos: List[str]


# Error response
class ErrorResponse(BaseModel):
    """Response when the engine refuses an operation."""
    detail: str
