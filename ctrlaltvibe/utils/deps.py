from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ctrlaltvibe.core.cache import TaggedCache
from ctrlaltvibe.core.database import get_db
from ctrlaltvibe.core.performance import PerformanceMonitor
from ctrlaltvibe.core.security import decode_access_token
from ctrlaltvibe.crud.user import user as user_crud
from ctrlaltvibe.models.user import User
from ctrlaltvibe.realtime.registry import ConnectionRegistry, NotificationDelivery
from ctrlaltvibe.schemas.token import TokenPayload

http_bearer = HTTPBearer()
optional_bearer = HTTPBearer(auto_error=False)

__all__ = [
    "get_db",
    "get_cache",
    "get_connection_registry",
    "get_notification_delivery",
    "get_performance_monitor",
    "get_current_user",
    "get_optional_user",
    "get_current_admin",
]

def get_cache(request: Request) -> TaggedCache:
    return request.app.state.cache

def get_connection_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.connection_registry

def get_notification_delivery(request: Request) -> NotificationDelivery:
    return request.app.state.connection_registry

def get_performance_monitor(request: Request) -> PerformanceMonitor:
    return request.app.state.performance_monitor

def _user_from_token(db: Session, token: str) -> User:
    try:
        token_data = TokenPayload(**decode_access_token(token))
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    user = user_crud.get(db, id=token_data.user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )
    return user

def get_current_user(
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials = Depends(http_bearer)
) -> User:
    return _user_from_token(db, credentials.credentials)

def get_optional_user(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_bearer)
) -> Optional[User]:
    """Viewer identity for personalised reads. A bad token is an error, no token is anonymous."""
    if credentials is None:
        return None
    return _user_from_token(db, credentials.credentials)

def get_current_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required"
        )
    return user
