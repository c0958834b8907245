"""Shared API dependencies."""
from collections.abc import Generator
import hmac

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.models.user import User
from app.services.notifications import NotificationDispatcher
from app.services.reminders import ReminderService

settings = get_settings()
bearer_scheme = HTTPBearer(auto_error=False)

__all__ = [
    "get_db",
    "get_current_user",
    "get_notification_dispatcher",
    "get_reminder_service",
    "require_admin_key",
]


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the caller from an identity-provider bearer token.
    
    Users are created on first sight from the token's ``sub``, ``email`` and
    ``name`` claims.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
    except JWTError:
        raise credentials_exception
    
    user_id: str | None = payload.get("sub")
    if not user_id:
        raise credentials_exception
    
    user = db.query(User).filter(User.id == user_id).first()
    if user is not None:
        return user
    
    email: str | None = payload.get("email")
    if not email:
        raise credentials_exception
    
    user = User(id=user_id, email=email, name=payload.get("name"))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise credentials_exception
    db.refresh(user)
    return user


def get_notification_dispatcher() -> Generator[NotificationDispatcher, None, None]:
    """Dependency that provides a dispatcher with its own HTTP client."""
    dispatcher = NotificationDispatcher.from_settings(settings)
    try:
        yield dispatcher
    finally:
        dispatcher.close()


def get_reminder_service(
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> ReminderService:
    return ReminderService(db, dispatcher)


def require_admin_key(x_admin_key: str | None = Header(None)) -> None:
    """Guard admin routes with the shared ADMIN_API_KEY."""
    if not settings.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin endpoints are disabled",
        )
    if not x_admin_key or not hmac.compare_digest(x_admin_key, settings.admin_api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin key",
        )
