from datetime import datetime, timedelta, timezone as dt_timezone
import jwt
from fastapi import Request, HTTPException, Depends, Response, status
from sqlalchemy.orm import Session
from typify.db import get_db
from typify.models import User
from typify.config import settings

ALGORITHM = "HS256"
COOKIE_NAME = "access_token"

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")

google_jwks = jwt.PyJWKClient(GOOGLE_CERTS_URL)

def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(dt_timezone.utc) + expires_delta
    else:
        expire = datetime.now(dt_timezone.utc) + timedelta(days=settings.access_token_days)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)

def create_user_token(user: User) -> str:
    """Session token for a user; `userId` matches what the dashboard client expects."""
    return create_access_token(data={"sub": str(user.id), "userId": user.id, "email": user.email})

def decode_token(token: str) -> dict:
    """Raises jwt.PyJWTError on a bad or expired token."""
    return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])

def verify_google_id_token(credential: str) -> dict:
    """
    Checks a Google ID token against Google's published keys and returns its claims.
    Raises jwt.PyJWTError when the token does not check out.
    """
    if not settings.google_client_id:
        raise jwt.InvalidAudienceError("Google Client ID not configured")
    signing_key = google_jwks.get_signing_key_from_jwt(credential)
    claims = jwt.decode(credential, signing_key.key, algorithms=["RS256"], audience=settings.google_client_id)
    if claims.get("iss") not in GOOGLE_ISSUERS:
        raise jwt.InvalidIssuerError("Invalid issuer")
    return claims

def bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):]
    return None

def token_user_id(request: Request) -> int | None:
    """User id claimed by the request token, unverified against the DB. Used for log context only."""
    token = request.cookies.get(COOKIE_NAME) or bearer_token(request)
    if not token:
        return None
    try:
        payload = decode_token(token)
        return int(payload.get("sub") or payload.get("userId"))
    except (jwt.PyJWTError, TypeError, ValueError):
        return None

def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        max_age=settings.access_token_days * 24 * 60 * 60,
        path="/"
    )

def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key=COOKIE_NAME,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/"
    )

def get_current_user(
    request: Request,
    db: Session = Depends(get_db)
) -> User | None:
    # HTTP-only cookie first, then Bearer header
    token = request.cookies.get(COOKIE_NAME) or bearer_token(request)
    if not token:
        return None

    try:
        payload = decode_token(token)
        user_id = payload.get("sub") or payload.get("userId")
        if user_id is None:
            return None
    except jwt.PyJWTError:
        return None

    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user or not user.is_active:
        return None

    return user

def require_user(user: User | None = Depends(get_current_user)) -> User:
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user

def optional_user(user: User | None = Depends(get_current_user)) -> User | None:
    return user
