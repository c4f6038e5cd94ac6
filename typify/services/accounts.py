from sqlalchemy import func
from sqlalchemy.orm import Session

from typify.config import settings
from typify.models import User, PLAN_LIMITS
from typify.logging_setup import log_event

def display_name(name: str | None, email: str, given_name: str | None = None) -> str:
    if name and name.strip():
        return name.strip()
    if given_name and given_name.strip():
        return given_name.strip()
    return email.split("@")[0]

def is_superadmin_email(email: str) -> bool:
    return bool(settings.superadmin_email) and email.lower() == settings.superadmin_email.lower()

def upsert_provider_user(
    db: Session,
    *,
    provider_id: str | None,
    email: str,
    name: str | None = None,
    avatar_url: str | None = None,
    given_name: str | None = None,
    email_verified: bool = False,
) -> tuple[User, bool]:
    """
    Match a signed-in identity to a profile row, creating it on first login.
    The superadmin flag is only granted for a provider-verified email.
    Returns (user, created).
    """
    email = email.strip()
    grant_admin = email_verified and is_superadmin_email(email)
    query = db.query(User)
    if provider_id:
        query = query.filter((User.google_id == provider_id) | (func.lower(User.email) == email.lower()))
    else:
        query = query.filter(func.lower(User.email) == email.lower())
    user = query.first()

    if not user:
        user = User(
            email=email,
            name=display_name(name, email, given_name),
            avatar_url=avatar_url,
            google_id=provider_id,
            plan="free",
            monthly_posts_used=0,
            monthly_posts_limit=PLAN_LIMITS["free"],
            onboarding_completed=False,
            language=settings.default_language,
            timezone=settings.timezone,
            notification_prefs={},
            is_superadmin=grant_admin,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        log_event("user_created", user_id=user.id)
        return user, True

    # Returning user: link the provider id if matched via email, refresh profile fields
    if provider_id and not user.google_id:
        user.google_id = provider_id
    if name and name.strip():
        user.name = name.strip()
    if avatar_url:
        user.avatar_url = avatar_url
    if grant_admin:
        user.is_superadmin = True
    db.commit()
    db.refresh(user)
    log_event("user_signed_in", user_id=user.id)
    return user, False

def post_login_redirect(user: User) -> str:
    return "/dashboard" if user.onboarding_completed else "/dashboard/onboarding"

def bootstrap_superadmin(db: Session) -> None:
    """Promote the configured superadmin if they have already signed in."""
    if not settings.superadmin_email:
        return
    user = db.query(User).filter(func.lower(User.email) == settings.superadmin_email.lower()).first()
    if user and not user.is_superadmin:
        user.is_superadmin = True
        db.commit()
        log_event("superadmin_promoted", user_id=user.id)
