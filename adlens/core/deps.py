"""
Dependency injection for FastAPI
"""
import secrets
from typing import Generator, Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from adlens.core.config import settings
from adlens.core.database import SessionLocal
from adlens.models.user import User
from adlens.services.apify.client import ApifyClient, get_apify_client

# Cron callers send "Authorization: Bearer <CRON_SECRET>"
cron_bearer = HTTPBearer(auto_error=False)

ADMIN_PLAN = "admin"


def get_db() -> Generator:
    """Get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_provider() -> Generator[ApifyClient, None, None]:
    """Scrape provider client for one request"""
    client = get_apify_client()
    try:
        yield client
    finally:
        client.close()


def verify_cron_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(cron_bearer),
) -> None:
    """Reject cron calls without the shared secret (open when CRON_SECRET is unset)"""
    expected = settings.CRON_SECRET
    if not expected:
        return

    token = credentials.credentials if credentials else ""
    if not secrets.compare_digest(token.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_current_user(
    x_user_id: Optional[int] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the acting user from the X-User-Id header.

    Session authentication happens upstream; this only maps the id to a row.
    """
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )

    user = db.query(User).filter(User.id == x_user_id).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user",
        )
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Admin endpoints are limited to users on the admin plan"""
    if user.plan is None or user.plan.name != ADMIN_PLAN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Admin only",
        )
    return user
