"""
Server side of the popup sign-in handshake.

The parent window opens a handshake, sends the popup through the provider,
and then polls the handshake until the callback marks it completed. A
handshake only moves out of `pending` once; every other state is terminal.
"""
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from typify.config import settings
from typify.models import LoginHandshake
from typify.logging_setup import log_event

PENDING = "pending"
COMPLETED = "completed"
FAILED = "failed"
CANCELLED = "cancelled"
EXPIRED = "expired"

TERMINAL_STATES = {COMPLETED, FAILED, CANCELLED, EXPIRED}

class HandshakeError(Exception):
    pass

class HandshakeNotFound(HandshakeError):
    pass

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

def _as_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)

def start_handshake(db: Session) -> LoginHandshake:
    handshake = LoginHandshake(
        id=secrets.token_urlsafe(24),
        status=PENDING,
        created_at=_utcnow(),
    )
    db.add(handshake)
    db.commit()
    db.refresh(handshake)
    log_event("oauth_handshake_start", handshake_id=handshake.id)
    return handshake

def get_handshake(db: Session, handshake_id: str, timeout_seconds: int | None = None) -> LoginHandshake:
    """Load a handshake, expiring it first if it sat pending past the timeout."""
    handshake = db.get(LoginHandshake, handshake_id)
    if not handshake:
        raise HandshakeNotFound(handshake_id)

    timeout = timeout_seconds if timeout_seconds is not None else settings.oauth_popup_timeout_seconds
    if handshake.status == PENDING and _utcnow() - _as_utc(handshake.created_at) > timedelta(seconds=timeout):
        handshake.status = EXPIRED
        handshake.error = "Login timed out."
        db.commit()
        log_event("oauth_handshake_expired", level="warning", handshake_id=handshake.id)
    return handshake

def _finish(db: Session, handshake_id: str, status: str, *, user_id: int | None = None, error: str | None = None) -> LoginHandshake:
    handshake = get_handshake(db, handshake_id)
    if handshake.status in TERMINAL_STATES:
        # Late signals (popup closed after success, duplicate callbacks) are ignored
        return handshake

    handshake.status = status
    handshake.user_id = user_id
    handshake.error = error
    handshake.completed_at = _utcnow()
    db.commit()
    db.refresh(handshake)
    log_event(f"oauth_handshake_{status}", handshake_id=handshake.id, user_id=user_id)
    return handshake

def complete_handshake(db: Session, handshake_id: str, user_id: int) -> LoginHandshake:
    return _finish(db, handshake_id, COMPLETED, user_id=user_id)

def fail_handshake(db: Session, handshake_id: str, error: str) -> LoginHandshake:
    return _finish(db, handshake_id, FAILED, error=error)

def cancel_handshake(db: Session, handshake_id: str) -> LoginHandshake:
    return _finish(db, handshake_id, CANCELLED, error="Login was cancelled.")

def purge_stale_handshakes(db: Session, older_than: timedelta = timedelta(days=1)) -> int:
    cutoff = _utcnow() - older_than
    count = db.query(LoginHandshake).filter(LoginHandshake.created_at < cutoff).delete(synchronize_session=False)
    db.commit()
    return count
