from datetime import datetime, timezone
import logging
import pytz
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session
from typing import Any
from typify.db import get_db
from typify.models import User, UserPost, GeneratedContent, ScheduledPost, Subscription
from typify.schemas import (
    GenerationForm, GeneratedItemOut, PostOut, PostUpdate, ScheduledPostOut, ScheduleUpdate,
    UsageOut, NotificationPrefs, SettingsUpdate, DeleteAccountIn,
)
from typify.security.auth import require_user, clear_auth_cookie
from typify.services.llm import generate_posts, GenerationError, fit_to_platform
from typify.services.onboarding import platform_locked
from typify.services.usage import (
    usage_summary, analytics_summary, track_usage, refresh_monthly_counter, can_generate, ANALYTICS_RANGES,
)
from typify.utils.formatting import is_valid_timezone
from typify.i18n import set_language_cookie
from typify.logging_setup import log_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

SCHEDULE_FILTERS = {"all", "scheduled", "paused", "published", "failed"}

def _utcnow():
    return datetime.now(timezone.utc)

def _to_utc(dt: datetime, tz_name: str) -> datetime:
    """Naive datetimes from the form are wall-clock times in the user's timezone."""
    if dt.tzinfo is None:
        dt = pytz.timezone(tz_name).localize(dt)
    return dt.astimezone(pytz.utc)

def _schedule_out(entry: ScheduledPost) -> ScheduledPostOut:
    return ScheduledPostOut(
        id=entry.id,
        content_id=entry.content_id,
        content=entry.content.content,
        platform=entry.platform,
        scheduled_for=entry.scheduled_at,
        status=entry.status,
        hashtags=entry.content.hashtags or [],
        error_message=entry.error_message,
        created_at=entry.created_at,
    )

def _own_post(db: Session, user: User, post_id: int) -> UserPost:
    post = db.query(UserPost).filter(UserPost.id == post_id, UserPost.user_id == user.id).first()
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post

def _own_schedule_entry(db: Session, user: User, entry_id: int) -> ScheduledPost:
    entry = db.query(ScheduledPost).filter(ScheduledPost.id == entry_id, ScheduledPost.user_id == user.id).first()
    if not entry:
        raise HTTPException(status_code=404, detail="Scheduled post not found")
    return entry

# --- Usage & analytics ---

@router.get("/usage", response_model=UsageOut)
def get_usage(user: User = Depends(require_user), db: Session = Depends(get_db)):
    return usage_summary(db, user)

@router.get("/analytics")
def get_analytics(
    range: str = Query("7d"),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    if range not in ANALYTICS_RANGES:
        raise HTTPException(status_code=400, detail=f"range must be one of {', '.join(ANALYTICS_RANGES)}")
    return analytics_summary(db, user, range)

# --- Generation ---

@router.post("/generate")
def generate(
    form: GenerationForm,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    refresh_monthly_counter(db, user)
    if not can_generate(user):
        raise HTTPException(status_code=403, detail="usage limit reached")

    if platform_locked(user) and form.platform != user.selected_platform:
        form = form.model_copy(update={"platform": user.selected_platform})

    profile = {
        "industry": user.selected_industry,
        "tone": user.selected_tone,
        "topics": user.selected_topics or [],
    }
    try:
        items = generate_posts(form, profile)
    except GenerationError as e:
        log_event("generation_failed", level="error", user_id=user.id, error=str(e))
        raise HTTPException(status_code=502, detail=str(e))

    scheduled_at = _to_utc(form.scheduled_for, user.timezone) if form.scheduled_for else None
    rows = []
    for item in items:
        row = GeneratedContent(
            user_id=user.id,
            content=item["content"],
            hashtags=item["hashtags"],
            platform=form.platform,
            status="scheduled" if scheduled_at else "draft",
            topic=form.topic,
            scheduled_at=scheduled_at,
        )
        db.add(row)
        rows.append(row)
    db.flush()

    if scheduled_at:
        for row in rows:
            db.add(ScheduledPost(
                user_id=user.id,
                content_id=row.id,
                platform=form.platform,
                scheduled_at=scheduled_at,
                status="scheduled",
            ))

    track_usage(db, user, "post_created", "generated_content", str(rows[0].id), {
        "platform": form.platform,
        "tone": form.tone,
        "count": len(rows),
        "scheduled": bool(scheduled_at),
    })
    user.monthly_posts_used = (user.monthly_posts_used or 0) + 1
    db.commit()
    for row in rows:
        db.refresh(row)

    log_event("content_generated", user_id=user.id, platform=form.platform, count=len(rows))
    return {"content": [GeneratedItemOut.model_validate(r).model_dump(mode="json") for r in rows]}

# --- Posts ---

@router.get("/posts")
def list_posts(
    limit: int = 5,
    offset: int = 0,
    status: str | None = None,
    q: str | None = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    limit = max(1, min(limit, 100))
    query = db.query(UserPost).filter(UserPost.user_id == user.id)
    if status:
        query = query.filter(UserPost.status == status)
    if q:
        query = query.filter(UserPost.content.ilike(f"%{q.strip()}%"))
    posts = query.order_by(UserPost.created_at.desc(), UserPost.id.desc()).offset(max(offset, 0)).limit(limit).all()
    return {"posts": [PostOut.model_validate(p).model_dump(mode="json") for p in posts]}

@router.patch("/posts/{post_id}", response_model=PostOut)
def update_post(
    post_id: int,
    payload: PostUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    post = _own_post(db, user, post_id)
    updates = payload.model_dump(exclude_unset=True)
    if "content" in updates and not (updates["content"] or "").strip():
        raise HTTPException(status_code=400, detail="Content cannot be empty")
    if "content" in updates:
        updates["content"] = fit_to_platform(updates["content"].strip(), post.platform)
    for key, value in updates.items():
        setattr(post, key, value)
    db.commit()
    db.refresh(post)
    return post

@router.delete("/posts/{post_id}")
def delete_post(post_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    post = _own_post(db, user, post_id)
    db.delete(post)
    db.commit()
    return {"status": "deleted", "id": post_id}

# --- Schedule ---

@router.get("/schedule")
def list_schedule(
    status: str = "all",
    q: str | None = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    if status not in SCHEDULE_FILTERS:
        raise HTTPException(status_code=400, detail=f"Unknown status filter: {status}")

    query = db.query(ScheduledPost).join(GeneratedContent, ScheduledPost.content_id == GeneratedContent.id)\
        .filter(ScheduledPost.user_id == user.id)
    if status != "all":
        query = query.filter(ScheduledPost.status == status)
    if q:
        query = query.filter(GeneratedContent.content.ilike(f"%{q.strip()}%"))
    entries = query.order_by(ScheduledPost.scheduled_at.asc()).all()
    return {"posts": [_schedule_out(e).model_dump(mode="json") for e in entries]}

def _transition(db: Session, user: User, entry_id: int, from_status: str, to_status: str) -> ScheduledPostOut:
    entry = _own_schedule_entry(db, user, entry_id)
    if entry.status != from_status:
        raise HTTPException(status_code=409, detail=f"Cannot move a {entry.status} post to {to_status}")
    entry.status = to_status
    db.commit()
    db.refresh(entry)
    log_event("schedule_status_changed", user_id=user.id, entry_id=entry.id, status=to_status)
    return _schedule_out(entry)

@router.post("/schedule/{entry_id}/pause", response_model=ScheduledPostOut)
def pause_scheduled(entry_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return _transition(db, user, entry_id, "scheduled", "paused")

@router.post("/schedule/{entry_id}/resume", response_model=ScheduledPostOut)
def resume_scheduled(entry_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return _transition(db, user, entry_id, "paused", "scheduled")

@router.patch("/schedule/{entry_id}", response_model=ScheduledPostOut)
def update_scheduled(
    entry_id: int,
    payload: ScheduleUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    entry = _own_schedule_entry(db, user, entry_id)
    if entry.status not in ("scheduled", "paused"):
        raise HTTPException(status_code=409, detail=f"Cannot edit a {entry.status} post")

    if payload.scheduled_for is not None:
        entry.scheduled_at = _to_utc(payload.scheduled_for, user.timezone)
        entry.content.scheduled_at = entry.scheduled_at
    if payload.content is not None:
        text = payload.content.strip()
        if not text:
            raise HTTPException(status_code=400, detail="Content cannot be empty")
        entry.content.content = fit_to_platform(text, entry.platform)
    db.commit()
    db.refresh(entry)
    return _schedule_out(entry)

@router.delete("/schedule/{entry_id}")
def delete_scheduled(entry_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    entry = _own_schedule_entry(db, user, entry_id)
    db.delete(entry)
    db.commit()
    return {"status": "deleted", "id": entry_id}

# --- Settings ---

def _settings_out(db: Session, user: User) -> dict[str, Any]:
    active = db.query(Subscription).filter(
        Subscription.user_id == user.id,
        Subscription.status.in_(("active", "trial")),
    ).order_by(Subscription.current_period_end.desc()).first()
    return {
        "profile": {
            "name": user.name,
            "email": user.email,
            "avatar_url": user.avatar_url,
            "timezone": user.timezone,
            "language": user.language,
        },
        "notifications": NotificationPrefs(**(user.notification_prefs or {})).model_dump(),
        "billing": {
            "plan": user.plan,
            "postsUsed": user.monthly_posts_used,
            "postsLimit": user.monthly_posts_limit,
            "subscriptionStatus": active.status if active else None,
            "currentPeriodEnd": active.current_period_end.isoformat() if active else None,
        },
    }

@router.get("/settings")
def get_settings(user: User = Depends(require_user), db: Session = Depends(get_db)) -> dict[str, Any]:
    return _settings_out(db, user)

@router.patch("/settings")
def update_settings(
    payload: SettingsUpdate,
    response: Response,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    if payload.name is not None:
        if not payload.name.strip():
            raise HTTPException(status_code=400, detail="Name cannot be empty")
        user.name = payload.name.strip()
    if payload.timezone is not None:
        if not is_valid_timezone(payload.timezone):
            raise HTTPException(status_code=400, detail=f"Unknown timezone: {payload.timezone}")
        user.timezone = payload.timezone
    if payload.language is not None:
        user.language = payload.language
        set_language_cookie(response, payload.language)
    if payload.notifications is not None:
        user.notification_prefs = payload.notifications.model_dump()
    db.commit()
    db.refresh(user)
    log_event("settings_updated", user_id=user.id)
    return _settings_out(db, user)

@router.post("/settings/delete")
def delete_account(
    payload: DeleteAccountIn,
    response: Response,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
) -> dict[str, str]:
    if payload.confirm != "DELETE":
        raise HTTPException(status_code=400, detail="Type DELETE to confirm account deletion")
    user_id = user.id
    db.delete(user)
    db.commit()
    clear_auth_cookie(response)
    log_event("account_deleted", user_id=user_id)
    return {"status": "deleted"}
