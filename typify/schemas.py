from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Literal

Platform = Literal["twitter", "threads"]

class ProviderUser(BaseModel):
    """
    Login payload from the client. `credential` is the Google ID token; the other
    fields are optional hints that must agree with its claims.
    """
    credential: str | None = None
    id: str | None = None
    email: str | None = None
    name: str | None = None
    picture: str | None = None
    given_name: str | None = None
    family_name: str | None = None

class UserOut(BaseModel):
    id: int
    email: str
    name: str
    avatar_url: str | None = None
    plan: str
    monthly_posts_used: int
    monthly_posts_limit: int
    onboarding_completed: bool
    selected_industry: str | None = None
    selected_tone: str | None = None
    selected_topics: list[str] | None = None
    selected_platform: str | None = None
    platform_locked_until: datetime | None = None
    language: str
    timezone: str
    is_superadmin: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True

class LoginOut(BaseModel):
    user: UserOut
    token: str

class HandshakeOut(BaseModel):
    handshake_id: str
    authorization_url: str
    poll_interval: int
    timeout: int

class HandshakeStatusOut(BaseModel):
    handshake_id: str
    status: str
    error: str | None = None
    redirect_url: str | None = None
    user: UserOut | None = None

class OnboardingIn(BaseModel):
    industry: str
    tone: str
    topics: list[str]
    platform: Platform

class GenerationForm(BaseModel):
    topic: str
    tone: Literal["professional", "casual", "friendly", "humorous", "serious", "inspiring"] = "professional"
    platform: Platform = "twitter"
    length: Literal["short", "medium", "long"] = "medium"
    include_hashtags: bool = Field(default=True, alias="includeHashtags")
    include_emojis: bool = Field(default=False, alias="includeEmojis")
    target_audience: str = Field(default="", alias="targetAudience")
    call_to_action: str = Field(default="", alias="callToAction")
    scheduled_for: datetime | None = Field(default=None, alias="scheduledFor")

    class Config:
        populate_by_name = True

    @field_validator("topic")
    @classmethod
    def topic_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("topic must not be empty")
        return v

    @field_validator("scheduled_for", mode="before")
    @classmethod
    def blank_schedule_is_none(cls, v):
        return v or None

class GeneratedItemOut(BaseModel):
    id: int
    content: str
    platform: str
    hashtags: list[str] = Field(default_factory=list)
    created_at: datetime | None = None

    class Config:
        from_attributes = True

class PostOut(BaseModel):
    id: int
    content: str
    platform: str
    status: str
    hashtags: list[str] | None = None
    scheduled_for: datetime | None = None
    published_at: datetime | None = None
    engagement_score: float | None = None
    likes_count: int = 0
    replies_count: int = 0
    retweets_count: int = 0
    created_at: datetime | None = None

    class Config:
        from_attributes = True

class PostUpdate(BaseModel):
    content: str | None = None
    hashtags: list[str] | None = None
    status: Literal["draft", "scheduled", "published", "failed"] | None = None
    scheduled_for: datetime | None = None

class ScheduledPostOut(BaseModel):
    id: int
    content_id: int
    content: str
    platform: str
    scheduled_for: datetime
    status: str
    hashtags: list[str] = Field(default_factory=list)
    error_message: str | None = None
    created_at: datetime | None = None

class ScheduleUpdate(BaseModel):
    scheduled_for: datetime | None = None
    content: str | None = None

class UsageOut(BaseModel):
    thisMonth: int
    thisWeek: int
    engagement: int
    nextReset: datetime
    postsUsed: int
    postsLimit: int
    planType: str

class NotificationPrefs(BaseModel):
    email: bool = True
    postPublished: bool = True
    postFailed: bool = True
    weeklyReport: bool = False
    monthlyReport: bool = True

class SettingsUpdate(BaseModel):
    name: str | None = None
    timezone: str | None = None
    language: Literal["ko", "en"] | None = None
    notifications: NotificationPrefs | None = None

class DeleteAccountIn(BaseModel):
    confirm: str

class LanguageIn(BaseModel):
    language: Literal["ko", "en"]

