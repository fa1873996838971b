"""
Role-based visibility and mutation rules.

Each rule is a pure predicate over (actor, incident).
"""
from dataclasses import dataclass
from typing import Callable, Dict

from sirrs.models.enums import Role
from sirrs.services.errors import AuthorizationError


@dataclass(frozen=True)
class Actor:
    """An authenticated caller, as supplied by the identity layer."""
    id: int
    role: Role


def _owner_only(actor, incident) -> bool:
    return incident.reporter_id == actor.id


def _any_incident(actor, incident) -> bool:
    return True


VIEW_RULES: Dict[Role, Callable] = {
    Role.CITIZEN: _owner_only,
    Role.AUTHORITY: _any_incident,
    Role.ADMIN: _any_incident,
}

MANAGING_ROLES = frozenset({Role.AUTHORITY, Role.ADMIN})


def role_of(actor) -> Role:
    try:
        return Role(actor.role)
    except ValueError:
        raise AuthorizationError(f"Unknown role '{actor.role}'")


def authorize_view(incident, actor) -> bool:
    """True when the actor may read the incident."""
    return VIEW_RULES[role_of(actor)](actor, incident)


def can_manage(actor) -> bool:
    """True when the actor may change status or attach resolution photos."""
    return role_of(actor) in MANAGING_ROLES


def is_scoped_to_own(actor) -> bool:
    """Citizens only ever see their own incidents in listings."""
    return role_of(actor) == Role.CITIZEN
