"""FastAPI dependencies resolving the objects created by ``main.create_app``."""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth import decode_auth_token
from config import Settings
from document_store import DocumentStore
from error_handler import InvalidTokenError, NotFoundError
from health_service import HealthService

http_bearer = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_health_service(request: Request) -> HealthService:
    return request.app.state.health_service


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    settings: Settings = Depends(get_settings),
    store: DocumentStore = Depends(get_store),
) -> dict:
    """Resolve the user record named by the bearer token."""
    if credentials is None:
        raise InvalidTokenError("Missing authentication credentials")

    claims = decode_auth_token(credentials.credentials, settings.jwt_secret)
    user_id = claims.get("_id")
    if not user_id:
        raise InvalidTokenError("Token does not name a user")

    user = store.find_one("User", {"id": user_id})
    if user is None:
        raise NotFoundError("User", str(user_id))
    return user
