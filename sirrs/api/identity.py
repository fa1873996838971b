"""Resolves the calling user from the X-User-Id header.

Credential checks happen upstream (gateway or auth service); by the time a
request reaches this API the header identifies an authenticated user.
"""
from typing import Optional
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from sirrs.database import get_db
from sirrs.models.domain import User
from sirrs.services.access import Actor


def get_current_actor(
    x_user_id: Optional[int] = Header(None),
    db: Session = Depends(get_db)
) -> Actor:
    if x_user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authorized to access this route")

    user = db.query(User).filter(User.id == x_user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    return Actor(id=user.id, role=user.role)
