"""API routes for incident reporting and triage."""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from sirrs.config import settings
from sirrs.database import get_db
from sirrs.api.identity import get_current_actor
from sirrs.services.access import Actor
from sirrs.services.errors import (
    LifecycleError,
    ValidationError,
    AuthorizationError,
    NotFoundError,
    ConflictError
)
from sirrs.services.lifecycle import LifecycleEngine
from sirrs.api.schemas import (
    IncidentCreate,
    StatusUpdate,
    ResolutionPhotosUpload,
    IncidentResponse,
    IncidentEnvelope,
    IncidentDetailResponse,
    IncidentDetailEnvelope,
    IncidentCreatedResponse,
    IncidentListResponse,
    Pagination,
    ResolutionPhotosResponse,
    ErrorResponse
)

router = APIRouter()

ERROR_STATUS_CODES = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
}

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Validation failed"},
    403: {"model": ErrorResponse, "description": "Role or ownership refusal"},
    404: {"model": ErrorResponse, "description": "Incident not found"},
}


def _http_error(error: LifecycleError) -> HTTPException:
    return HTTPException(status_code=ERROR_STATUS_CODES[type(error)], detail=error.message)


@router.post("/incidents", response_model=IncidentCreatedResponse, status_code=status.HTTP_201_CREATED,
             responses=ERROR_RESPONSES)
def create_incident(
    incident_data: IncidentCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """
    Report a new incident in pending state.
    When no category is given, one is suggested from the description and echoed as aiSuggestion.
    """
    engine = LifecycleEngine(db)
    try:
        incident, ai_suggestion = engine.create_incident(
            reporter_id=actor.id,
            title=incident_data.title,
            description=incident_data.description,
            latitude=incident_data.lat,
            longitude=incident_data.lng,
            category=incident_data.category,
            photos=incident_data.photos,
            address=incident_data.address,
            deadline=incident_data.deadline
        )
    except LifecycleError as e:
        raise _http_error(e)

    return IncidentCreatedResponse(
        incident=IncidentResponse.from_incident(incident),
        aiSuggestion=ai_suggestion
    )


@router.get("/incidents", response_model=IncidentListResponse, responses=ERROR_RESPONSES)
def list_incidents(
    status: Optional[str] = None,
    category: Optional[str] = None,
    page: int = 1,
    limit: int = settings.DEFAULT_PAGE_SIZE,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """List incidents newest first. Citizens only see their own reports."""
    engine = LifecycleEngine(db)
    try:
        result = engine.list_incidents(actor, status=status, category=category, page=page, page_size=limit)
    except LifecycleError as e:
        raise _http_error(e)

    return IncidentListResponse(
        incidents=[IncidentResponse.from_incident(incident) for incident in result.incidents],
        pagination=Pagination(
            page=result.page,
            limit=result.page_size,
            total=result.total,
            pages=result.pages
        )
    )


@router.get("/incidents/{incident_id}", response_model=IncidentDetailEnvelope, responses=ERROR_RESPONSES)
def get_incident(
    incident_id: int,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Get a specific incident, if the caller may see it."""
    engine = LifecycleEngine(db)
    try:
        incident = engine.get_incident(incident_id, actor)
    except LifecycleError as e:
        raise _http_error(e)
    return IncidentDetailEnvelope(incident=IncidentDetailResponse.from_incident(incident))


@router.patch("/incidents/{incident_id}/status", response_model=IncidentEnvelope, responses={
    **ERROR_RESPONSES,
    409: {"model": ErrorResponse, "description": "Concurrent update, retry"}
})
def update_status(
    incident_id: int,
    status_data: StatusUpdate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """
    Change an incident's status (authority/admin only).
    Side effect: appends a timeline entry.
    """
    engine = LifecycleEngine(db)
    try:
        incident = engine.transition_status(incident_id, actor, status_data.status, note=status_data.note)
    except LifecycleError as e:
        raise _http_error(e)
    return IncidentEnvelope(incident=IncidentResponse.from_incident(incident))


@router.post("/incidents/{incident_id}/photos", response_model=ResolutionPhotosResponse, responses={
    **ERROR_RESPONSES,
    409: {"model": ErrorResponse, "description": "Concurrent update, retry"}
})
def upload_resolution_photos(
    incident_id: int,
    upload: ResolutionPhotosUpload,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db)
):
    """Attach resolution photos (authority/admin only). Status and timeline are unchanged."""
    engine = LifecycleEngine(db)
    try:
        incident = engine.append_resolution_photos(incident_id, actor, upload.photos)
    except LifecycleError as e:
        raise _http_error(e)
    return ResolutionPhotosResponse(
        photos=upload.photos,
        incident=IncidentResponse.from_incident(incident)
    )
