"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from tradehub.config import settings
from tradehub.domain.exceptions import KYCRequiredError
from tradehub.infrastructure.clients.events import EventsClient
from tradehub.infrastructure.database.repositories import ProfileRepository
from tradehub.infrastructure.database.session import get_db


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Authenticated user id, forwarded by the auth proxy as X-User-ID"""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-ID header")
    return x_user_id


def require_admin(user_id: str = Depends(get_current_user_id)) -> str:
    if user_id not in settings.admin_user_ids:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user_id


def require_kyc(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> str:
    """Gate money movement behind an approved KYC when enabled"""
    if not settings.kyc_required:
        return user_id
    profile = ProfileRepository(db).get_by_user(user_id)
    if profile is None or profile.kyc_status != "approved":
        raise KYCRequiredError("Identity verification required")
    return user_id


def get_events_client() -> EventsClient:
    """Provide events webhook client instance"""
    return EventsClient()
