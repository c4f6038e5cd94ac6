import logging
import jwt
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session
from typify.db import get_db
from typify.models import User
from typify.schemas import ProviderUser, LoginOut, UserOut
from typify.security.auth import (
    bearer_token, clear_auth_cookie, create_user_token, decode_token, optional_user, set_auth_cookie,
    verify_google_id_token,
)
from typify.services.accounts import upsert_provider_user
from typing import Any

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

@router.post("/api/auth/login", response_model=LoginOut)
def login(
    payload: ProviderUser,
    response: Response,
    db: Session = Depends(get_db)
):
    """Exchanges a Google ID token for a session token."""
    if not payload.credential:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing ID token")
    try:
        claims = verify_google_id_token(payload.credential)
    except jwt.PyJWTError as e:
        logger.warning(f"Rejected ID token: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid ID token")

    provider_id, email = claims.get("sub"), claims.get("email")
    name = claims.get("name") or payload.name
    if not provider_id or not email or not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid user data")
    # Body fields are hints only; they may not point at a different identity
    if (payload.id and payload.id != provider_id) or (payload.email and payload.email.lower() != email.lower()):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid user data")
    if claims.get("email_verified") not in (True, "true"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Email not verified")

    user, _ = upsert_provider_user(
        db,
        provider_id=provider_id,
        email=email,
        name=name,
        avatar_url=claims.get("picture") or payload.picture,
        given_name=claims.get("given_name") or payload.given_name,
        email_verified=True,
    )
    token = create_user_token(user)
    set_auth_cookie(response, token)
    return LoginOut(user=UserOut.model_validate(user), token=token)

@router.get("/api/auth/me", response_model=UserOut)
def me(request: Request, db: Session = Depends(get_db)):
    token = bearer_token(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No valid authorization header")

    try:
        payload = decode_token(token)
        user_id = int(payload.get("userId") or payload.get("sub"))
    except (jwt.PyJWTError, TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user

@router.get("/auth/session")
def session(user: User | None = Depends(optional_user)) -> dict[str, Any]:
    return {"user": UserOut.model_validate(user).model_dump(mode="json") if user else None}

@router.post("/auth/logout")
def logout(response: Response) -> dict[str, str]:
    clear_auth_cookie(response)
    return {"message": "Logged out successfully"}
