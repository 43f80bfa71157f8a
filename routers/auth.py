"""Authentication endpoints: login, token issuance and current user."""
import logging
import secrets
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from auth import TOKEN_LIFETIME, generate_auth_token, verify_password
from config import Settings
from dependencies import get_current_user, get_settings, get_store
from document_store import DocumentStore
from error_handler import NotFoundError
from response_helpers import create_error_response, create_success_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

SESSION_LIFETIME = timedelta(days=7)


class LoginRequest(BaseModel):
    email: str
    password: str


def _signing_unavailable() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=create_error_response(
            "Token signing is not configured", status.HTTP_503_SERVICE_UNAVAILABLE
        ),
    )


def _token_body(token: str) -> dict:
    return {
        "accessToken": token,
        "tokenType": "bearer",
        "expiresIn": int(TOKEN_LIFETIME.total_seconds()),
    }


@router.post("/auth/login")
def login(
    payload: LoginRequest,
    request: Request,
    settings: Settings = Depends(get_settings),
    store: DocumentStore = Depends(get_store),
):
    """Authenticate by email and password, open a session and return tokens."""
    invalid = HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    contact = store.find_one("UserContact", {"email": payload.email.strip()})
    if contact is None:
        raise invalid
    user = store.find_one("User", {"contact": contact["id"]})
    if user is None:
        raise invalid
    password = store.find_one("UserPassword", {"id": user["password"]})
    if password is None or not verify_password(payload.password, password["password"]):
        raise invalid

    if user["blocked"]:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is blocked")

    token = generate_auth_token(user["id"], settings.jwt_secret)
    if token is None:
        return _signing_unavailable()

    session = store.insert("Session", {
        "userId": user["id"],
        "refreshToken": secrets.token_urlsafe(48),
        "userAgent": (request.headers.get("user-agent") or "")[:500] or None,
        "ipAddress": request.client.host[:45] if request.client else None,
        "expiresAt": datetime.utcnow() + SESSION_LIFETIME,
    })
    logger.info(f"User {user['id']} logged in, session {session['id']}")

    body = _token_body(token)
    body["refreshToken"] = session["refreshToken"]
    body["user"] = {
        "id": user["id"],
        "email": contact["email"],
        "firstName": contact["firstName"],
        "lastName": contact["lastName"],
    }
    return create_success_response(body, "Login successful")


@router.post("/users/{user_id}/token")
def issue_token(
    user_id: str,
    settings: Settings = Depends(get_settings),
    store: DocumentStore = Depends(get_store),
):
    """Issue a bearer token for a stored user."""
    user = store.find_one("User", {"id": user_id})
    if user is None:
        raise NotFoundError("User", user_id)

    token = generate_auth_token(user["id"], settings.jwt_secret)
    if token is None:
        return _signing_unavailable()
    return create_success_response(_token_body(token), "Token issued")


@router.get("/auth/me")
def read_current_user(current_user: dict = Depends(get_current_user)):
    return create_success_response(current_user)
