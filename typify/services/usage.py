import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from typify.models import User, UserPost, UsageLog
from typify.utils.formatting import month_start, next_month_start, week_start

logger = logging.getLogger(__name__)

ANALYTICS_RANGES = {"7d": 7, "30d": 30, "90d": 90}

def can_generate(user: User) -> bool:
    return user.monthly_posts_used < user.monthly_posts_limit

def track_usage(db: Session, user: User, action: str, resource_type: str, resource_id: str | None = None, metadata: dict | None = None) -> UsageLog:
    """Adds a usage row to the session; the caller commits."""
    log = UsageLog(
        user_id=user.id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        log_metadata=metadata or {},
    )
    db.add(log)
    return log

def monthly_usage_count(db: Session, user: User, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    return db.query(func.count(UsageLog.id)).filter(
        UsageLog.user_id == user.id,
        UsageLog.action == "post_created",
        UsageLog.created_at >= month_start(now),
    ).scalar() or 0

def refresh_monthly_counter(db: Session, user: User, now: datetime | None = None) -> int:
    """Recount this month's generations so the counter resets on the 1st."""
    used = monthly_usage_count(db, user, now)
    if used != user.monthly_posts_used:
        user.monthly_posts_used = used
        db.commit()
    return used

def default_usage(user: User, now: datetime | None = None) -> dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    return {
        "thisMonth": 0,
        "thisWeek": 0,
        "engagement": 0,
        "nextReset": next_month_start(now),
        "postsUsed": user.monthly_posts_used or 0,
        "postsLimit": user.monthly_posts_limit,
        "planType": user.plan,
    }

def usage_summary(db: Session, user: User, now: datetime | None = None) -> dict[str, Any]:
    """Published-post counters for the dashboard header. Falls back to zeros on DB failure."""
    now = now or datetime.now(timezone.utc)
    stats = default_usage(user, now)

    published = db.query(func.count(UserPost.id)).filter(
        UserPost.user_id == user.id,
        UserPost.status == "published",
    )
    try:
        stats["postsUsed"] = refresh_monthly_counter(db, user, now)
        stats["thisMonth"] = published.filter(UserPost.created_at >= month_start(now)).scalar() or 0
        stats["thisWeek"] = published.filter(UserPost.created_at >= week_start(now)).scalar() or 0
        avg = db.query(func.avg(UserPost.engagement_score)).filter(
            UserPost.user_id == user.id,
            UserPost.engagement_score.isnot(None),
        ).scalar()
        stats["engagement"] = round(avg or 0)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Usage stats unavailable for user {user.id}, using defaults: {e}")
        return default_usage(user, now)
    return stats

def analytics_summary(db: Session, user: User, range_key: str = "7d", now: datetime | None = None) -> dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    days = ANALYTICS_RANGES.get(range_key, 7)
    since = (now - timedelta(days=days - 1)).replace(hour=0, minute=0, second=0, microsecond=0)

    posts = db.query(UserPost).filter(
        UserPost.user_id == user.id,
        UserPost.status == "published",
        UserPost.created_at >= since,
    ).all()

    daily = {(since + timedelta(days=i)).date().isoformat(): 0 for i in range(days)}
    for p in posts:
        stamp = p.published_at or p.created_at
        key = stamp.date().isoformat()
        if key in daily:
            daily[key] += 1

    scored = [p.engagement_score for p in posts if p.engagement_score is not None]
    top = sorted(
        (p for p in posts if p.engagement_score is not None),
        key=lambda p: p.engagement_score,
        reverse=True,
    )[:5]

    return {
        "range": range_key if range_key in ANALYTICS_RANGES else "7d",
        "totalPosts": len(posts),
        "daily": [{"date": d, "posts": c} for d, c in daily.items()],
        "likes": sum(p.likes_count or 0 for p in posts),
        "replies": sum(p.replies_count or 0 for p in posts),
        "retweets": sum(p.retweets_count or 0 for p in posts),
        "engagement": round(sum(scored) / len(scored), 1) if scored else 0,
        "topPosts": [
            {"id": p.id, "content": p.content, "platform": p.platform, "engagement": p.engagement_score}
            for p in top
        ],
    }
