from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from typify.models import User
from typify.logging_setup import log_event

PLATFORM_LOCK_DAYS = 7
MAX_TOPICS = 5

INDUSTRIES = [
    {"id": "marketer", "name": "Marketer", "description": "Marketing & Growth"},
    {"id": "developer", "name": "Developer", "description": "Tech & Engineering"},
    {"id": "entrepreneur", "name": "Entrepreneur", "description": "Startup & Business"},
    {"id": "creator", "name": "Creator", "description": "Content & Design"},
    {"id": "other", "name": "Other", "description": "General Purpose"},
]

TONES = [
    {"id": "professional", "name": "Professional", "description": "Formal and authoritative"},
    {"id": "friendly", "name": "Friendly", "description": "Warm and approachable"},
    {"id": "inspirational", "name": "Inspirational", "description": "Motivating and uplifting"},
    {"id": "casual", "name": "Casual", "description": "Relaxed and conversational"},
    {"id": "witty", "name": "Witty", "description": "Clever and humorous"},
]

TOPICS_BY_INDUSTRY = {
    "marketer": [
        {"id": "growth", "name": "Growth Hacking"},
        {"id": "analytics", "name": "Analytics & Data"},
        {"id": "social", "name": "Social Media"},
        {"id": "content", "name": "Content Marketing"},
        {"id": "seo", "name": "SEO & SEM"},
        {"id": "branding", "name": "Branding"},
    ],
    "developer": [
        {"id": "webdev", "name": "Web Development"},
        {"id": "ai", "name": "AI & Machine Learning"},
        {"id": "opensource", "name": "Open Source"},
        {"id": "coding", "name": "Coding Tips"},
        {"id": "devops", "name": "DevOps"},
        {"id": "tech", "name": "Tech News"},
    ],
    "entrepreneur": [
        {"id": "startup", "name": "Startup Life"},
        {"id": "leadership", "name": "Leadership"},
        {"id": "funding", "name": "Funding & Investment"},
        {"id": "productivity", "name": "Productivity"},
        {"id": "networking", "name": "Networking"},
        {"id": "growth", "name": "Business Growth"},
    ],
    "creator": [
        {"id": "design", "name": "Design Trends"},
        {"id": "creativity", "name": "Creative Process"},
        {"id": "tools", "name": "Tools & Resources"},
        {"id": "inspiration", "name": "Inspiration"},
        {"id": "portfolio", "name": "Portfolio & Work"},
        {"id": "community", "name": "Community"},
    ],
    "other": [
        {"id": "business", "name": "Business"},
        {"id": "technology", "name": "Technology"},
        {"id": "lifestyle", "name": "Lifestyle"},
        {"id": "education", "name": "Education"},
        {"id": "news", "name": "News & Trends"},
        {"id": "personal", "name": "Personal Growth"},
    ],
}

PLATFORMS = [
    {"id": "twitter", "name": "X (Twitter)", "limit": 280},
    {"id": "threads", "name": "Threads", "limit": 500},
]

class OnboardingError(ValueError):
    pass

def options() -> dict:
    return {
        "industries": INDUSTRIES,
        "tones": TONES,
        "topics": TOPICS_BY_INDUSTRY,
        "platforms": PLATFORMS,
        "maxTopics": MAX_TOPICS,
        "platformLockDays": PLATFORM_LOCK_DAYS,
    }

def validate_choices(industry: str, tone: str, topics: list[str], platform: str) -> list[str]:
    """Checks each wizard step; returns the de-duplicated topic list."""
    if industry not in {i["id"] for i in INDUSTRIES}:
        raise OnboardingError(f"Unknown industry: {industry}")
    if tone not in {t["id"] for t in TONES}:
        raise OnboardingError(f"Unknown tone: {tone}")
    if platform not in {p["id"] for p in PLATFORMS}:
        raise OnboardingError(f"Unknown platform: {platform}")

    unique = list(dict.fromkeys(topics))
    if not 1 <= len(unique) <= MAX_TOPICS:
        raise OnboardingError(f"Select between 1 and {MAX_TOPICS} topics")
    allowed = {t["id"] for t in TOPICS_BY_INDUSTRY[industry]}
    unknown = [t for t in unique if t not in allowed]
    if unknown:
        raise OnboardingError(f"Topics not available for {industry}: {', '.join(unknown)}")
    return unique

def complete_onboarding(db: Session, user: User, *, industry: str, tone: str, topics: list[str], platform: str,
                        now: datetime | None = None) -> User:
    if user.onboarding_completed:
        raise OnboardingError("Onboarding already completed")

    topics = validate_choices(industry, tone, topics, platform)
    now = now or datetime.now(timezone.utc)

    user.selected_industry = industry
    user.selected_tone = tone
    user.selected_topics = topics
    user.selected_platform = platform
    user.platform_locked_until = now + timedelta(days=PLATFORM_LOCK_DAYS)
    user.onboarding_completed = True
    db.commit()
    db.refresh(user)
    log_event("onboarding_completed", user_id=user.id, industry=industry, platform=platform)
    return user

def platform_locked(user: User, now: datetime | None = None) -> bool:
    if not user.platform_locked_until or not user.selected_platform:
        return False
    now = now or datetime.now(timezone.utc)
    locked_until = user.platform_locked_until
    if locked_until.tzinfo is None:
        locked_until = locked_until.replace(tzinfo=timezone.utc)
    return locked_until > now
