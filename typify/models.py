# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, ForeignKey, Boolean, Float
from sqlalchemy.orm import declarative_base, relationship, validates
from sqlalchemy.sql import func

Base = declarative_base()

PLAN_LIMITS = {
    "free": 10,
    "basic": 100,
    "pro": 500,
}

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    avatar_url = Column(Text, nullable=True)
    google_id = Column(String, unique=True, index=True, nullable=True)

    plan = Column(String, nullable=False, default="free") # free, basic, pro
    monthly_posts_used = Column(Integer, nullable=False, default=0)
    monthly_posts_limit = Column(Integer, nullable=False, default=PLAN_LIMITS["free"])

    # Onboarding wizard
    onboarding_completed = Column(Boolean, nullable=False, default=False)
    selected_industry = Column(String, nullable=True)
    selected_tone = Column(String, nullable=True)
    selected_topics = Column(JSON, nullable=True) # list of topic ids
    selected_platform = Column(String, nullable=True) # twitter, threads
    platform_locked_until = Column(DateTime(timezone=True), nullable=True)

    language = Column(String, nullable=False, default="ko")
    timezone = Column(String, nullable=False, default="Asia/Seoul")
    notification_prefs = Column(JSON, nullable=False, default=dict)

    is_active = Column(Boolean, nullable=False, default=True)
    is_superadmin = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    posts = relationship("UserPost", back_populates="user", cascade="all, delete-orphan")
    generated_content = relationship("GeneratedContent", back_populates="user", cascade="all, delete-orphan")
    scheduled_posts = relationship("ScheduledPost", back_populates="user", cascade="all, delete-orphan")
    subscriptions = relationship("Subscription", back_populates="user", cascade="all, delete-orphan")
    usage_logs = relationship("UsageLog", back_populates="user", cascade="all, delete-orphan")

    @validates("plan")
    def _sync_plan_limit(self, key, plan):
        # Plan changes reset the quota; assign monthly_posts_limit afterwards to override
        if plan in PLAN_LIMITS:
            self.monthly_posts_limit = PLAN_LIMITS[plan]
        return plan

class UserPost(Base):
    __tablename__ = "user_posts"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    content = Column(Text, nullable=False)
    platform = Column(String, nullable=False, default="twitter") # twitter, threads
    status = Column(String, nullable=False, default="draft", index=True) # draft, scheduled, published, failed
    hashtags = Column(JSON, nullable=True)
    platform_post_id = Column(String, nullable=True)

    scheduled_for = Column(DateTime(timezone=True), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)

    engagement_score = Column(Float, nullable=True)
    likes_count = Column(Integer, nullable=False, default=0)
    replies_count = Column(Integer, nullable=False, default=0)
    retweets_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", back_populates="posts")

class GeneratedContent(Base):
    __tablename__ = "generated_content"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    content = Column(Text, nullable=False)
    hashtags = Column(JSON, nullable=False, default=list)
    platform = Column(String, nullable=False) # twitter, threads
    status = Column(String, nullable=False, default="draft") # draft, scheduled, published
    topic = Column(String, nullable=True)

    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", back_populates="generated_content")
    schedule_entries = relationship("ScheduledPost", back_populates="content", cascade="all, delete-orphan")

class ScheduledPost(Base):
    __tablename__ = "scheduled_posts"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content_id = Column(Integer, ForeignKey("generated_content.id", ondelete="CASCADE"), nullable=False)

    platform = Column(String, nullable=False)
    scheduled_at = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(String, nullable=False, default="scheduled") # scheduled, paused, published, failed
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", back_populates="scheduled_posts")
    content = relationship("GeneratedContent", back_populates="schedule_entries")

class Subscription(Base):
    __tablename__ = "subscriptions"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    plan = Column(String, nullable=False) # basic, pro
    status = Column(String, nullable=False, default="trial") # active, inactive, canceled, trial
    current_period_start = Column(DateTime(timezone=True), nullable=False)
    current_period_end = Column(DateTime(timezone=True), nullable=False)
    payment_provider = Column(String, nullable=False, default="lemonsqueezy")
    provider_subscription_id = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="subscriptions")

class UsageLog(Base):
    __tablename__ = "usage_logs"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    action = Column(String, nullable=False, index=True) # post_created, ...
    resource_type = Column(String, nullable=False)
    resource_id = Column(String, nullable=True)
    # "metadata" is reserved on declarative classes
    log_metadata = Column("metadata", JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    user = relationship("User", back_populates="usage_logs")

class LoginHandshake(Base):
    __tablename__ = "login_handshakes"
    id = Column(String, primary_key=True) # random url-safe token
    status = Column(String, nullable=False, default="pending") # pending, completed, failed, cancelled, expired
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    error = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
