import re
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from typify.models import User, UserPost, GeneratedContent, ScheduledPost, Subscription, UsageLog

def _post(db, user, **overrides):
    values = {"user_id": user.id, "content": "hello world", "platform": "twitter", "status": "published"}
    values.update(overrides)
    post = UserPost(**values)
    db.add(post)
    db.commit()
    db.refresh(post)
    return post

def _scheduled(db, user, text="queued post", status="scheduled", at=None):
    content = GeneratedContent(user_id=user.id, content=text, hashtags=["#q"], platform="twitter", status="scheduled")
    db.add(content)
    db.flush()
    entry = ScheduledPost(
        user_id=user.id,
        content_id=content.id,
        platform="twitter",
        scheduled_at=at or datetime.now(timezone.utc) + timedelta(days=1),
        status=status,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry

# --- Usage ---

def test_usage_summary(client, db, user, headers):
    _post(db, user, engagement_score=40)
    _post(db, user, engagement_score=61)
    _post(db, user, status="draft")
    db.add(UsageLog(user_id=user.id, action="post_created", resource_type="generated_content"))
    db.commit()

    body = client.get("/api/dashboard/usage", headers=headers).json()
    assert body["thisMonth"] == 2
    assert body["thisWeek"] == 2
    assert body["engagement"] == 50
    assert body["postsUsed"] == 1
    assert body["postsLimit"] == 10
    assert body["planType"] == "free"
    next_reset = datetime.fromisoformat(body["nextReset"])
    assert next_reset.day == 1 and next_reset > datetime.now(timezone.utc)

def test_usage_falls_back_to_defaults_on_db_error(client, user, headers):
    with patch("typify.services.usage.refresh_monthly_counter", side_effect=OperationalError("SELECT", {}, Exception("gone"))):
        res = client.get("/api/dashboard/usage", headers=headers)
    assert res.status_code == 200
    body = res.json()
    assert body["thisMonth"] == 0
    assert body["engagement"] == 0
    assert body["postsLimit"] == 10

def test_monthly_counter_resets_with_new_month(client, db, make_user, auth_for):
    stale = make_user(monthly_posts_used=7)
    last_month = datetime.now(timezone.utc).replace(day=1) - timedelta(days=3)
    db.add(UsageLog(user_id=stale.id, action="post_created", resource_type="generated_content", created_at=last_month))
    db.commit()

    body = client.get("/api/dashboard/usage", headers=auth_for(stale)).json()
    assert body["postsUsed"] == 0

def test_plan_change_resets_limit(db, user):
    assert User(email="x@example.com", name="X", plan="basic").monthly_posts_limit == 100

    user.plan = "pro"
    db.commit()
    db.refresh(user)
    assert user.monthly_posts_limit == 500

    # An explicit quota set after the plan wins
    user.monthly_posts_limit = 25
    db.commit()
    assert user.monthly_posts_limit == 25

def test_usage_requires_login(client):
    assert client.get("/api/dashboard/usage").status_code == 401

# --- Posts ---

def test_list_posts_newest_first_with_filters(client, db, user, headers, make_user):
    _post(db, user, content="older launch note", created_at=datetime.now(timezone.utc) - timedelta(days=2))
    _post(db, user, content="newer draft", status="draft")
    _post(db, make_user(), content="someone else's launch")

    posts = client.get("/api/dashboard/posts", headers=headers).json()["posts"]
    assert [p["content"] for p in posts] == ["newer draft", "older launch note"]

    posts = client.get("/api/dashboard/posts?status=draft", headers=headers).json()["posts"]
    assert [p["content"] for p in posts] == ["newer draft"]

    posts = client.get("/api/dashboard/posts?q=LAUNCH", headers=headers).json()["posts"]
    assert [p["content"] for p in posts] == ["older launch note"]

def test_list_posts_clamps_limit(client, db, user, headers):
    for i in range(3):
        _post(db, user, content=f"post {i}")
    assert len(client.get("/api/dashboard/posts?limit=0", headers=headers).json()["posts"]) == 1
    assert len(client.get("/api/dashboard/posts?limit=500", headers=headers).json()["posts"]) == 3
    assert len(client.get("/api/dashboard/posts?limit=2&offset=2", headers=headers).json()["posts"]) == 1

def test_update_and_delete_own_post(client, db, user, headers):
    post = _post(db, user, status="draft")
    res = client.patch(f"/api/dashboard/posts/{post.id}", json={"content": "edited"}, headers=headers)
    assert res.status_code == 200
    assert res.json()["content"] == "edited"
    assert res.json()["status"] == "draft"

    assert client.patch(f"/api/dashboard/posts/{post.id}", json={"content": "  "}, headers=headers).status_code == 400

    assert client.delete(f"/api/dashboard/posts/{post.id}", headers=headers).status_code == 200
    assert db.query(UserPost).count() == 0

def test_post_edits_fit_the_platform(client, db, user, headers):
    tweet = _post(db, user, status="draft")
    res = client.patch(f"/api/dashboard/posts/{tweet.id}", json={"content": "y" * 400}, headers=headers)
    assert res.status_code == 200
    assert len(res.json()["content"]) == 280

    thread = _post(db, user, platform="threads", status="draft")
    res = client.patch(f"/api/dashboard/posts/{thread.id}", json={"content": "  " + "z" * 600}, headers=headers)
    assert res.json()["content"] == "z" * 500
    db.refresh(thread)
    assert len(thread.content) == 500

def test_other_users_posts_are_not_found(client, db, make_user, headers):
    foreign = _post(db, make_user())
    assert client.patch(f"/api/dashboard/posts/{foreign.id}", json={"content": "x"}, headers=headers).status_code == 404
    assert client.delete(f"/api/dashboard/posts/{foreign.id}", headers=headers).status_code == 404
    assert db.query(UserPost).count() == 1

# --- Schedule ---

def test_schedule_list_filters_and_orders(client, db, user, headers):
    later = _scheduled(db, user, "Later post", at=datetime.now(timezone.utc) + timedelta(days=3))
    sooner = _scheduled(db, user, "Sooner post", at=datetime.now(timezone.utc) + timedelta(hours=2))
    _scheduled(db, user, "Paused post", status="paused")

    posts = client.get("/api/dashboard/schedule", headers=headers).json()["posts"]
    assert len(posts) == 3
    assert posts[0]["id"] == sooner.id

    posts = client.get("/api/dashboard/schedule?status=scheduled", headers=headers).json()["posts"]
    assert [p["id"] for p in posts] == [sooner.id, later.id]
    assert posts[0]["content"] == "Sooner post"
    assert posts[0]["hashtags"] == ["#q"]

    posts = client.get("/api/dashboard/schedule?q=paused", headers=headers).json()["posts"]
    assert [p["content"] for p in posts] == ["Paused post"]

    assert client.get("/api/dashboard/schedule?status=bogus", headers=headers).status_code == 400

def test_pause_and_resume(client, db, user, headers):
    entry = _scheduled(db, user)
    res = client.post(f"/api/dashboard/schedule/{entry.id}/pause", headers=headers)
    assert res.status_code == 200
    assert res.json()["status"] == "paused"

    assert client.post(f"/api/dashboard/schedule/{entry.id}/pause", headers=headers).status_code == 409

    res = client.post(f"/api/dashboard/schedule/{entry.id}/resume", headers=headers)
    assert res.json()["status"] == "scheduled"
    assert client.post(f"/api/dashboard/schedule/{entry.id}/resume", headers=headers).status_code == 409

def test_update_and_delete_schedule_entry(client, db, user, headers):
    entry = _scheduled(db, user)
    new_time = (datetime.now(timezone.utc) + timedelta(days=5)).replace(microsecond=0)
    res = client.patch(
        f"/api/dashboard/schedule/{entry.id}",
        json={"scheduled_for": new_time.isoformat(), "content": "y" * 400},
        headers=headers,
    )
    assert res.status_code == 200
    assert len(res.json()["content"]) == 280
    db.refresh(entry)
    assert entry.scheduled_at.replace(tzinfo=timezone.utc) == new_time

    published = _scheduled(db, user, status="published")
    assert client.patch(f"/api/dashboard/schedule/{published.id}", json={"content": "x"}, headers=headers).status_code == 409

    assert client.delete(f"/api/dashboard/schedule/{entry.id}", headers=headers).status_code == 200
    assert db.get(ScheduledPost, entry.id) is None

def test_schedule_entries_of_other_users_are_hidden(client, db, make_user, headers):
    foreign = _scheduled(db, make_user())
    assert client.get("/api/dashboard/schedule", headers=headers).json()["posts"] == []
    assert client.post(f"/api/dashboard/schedule/{foreign.id}/pause", headers=headers).status_code == 404

# --- Analytics ---

def test_analytics_totals(client, db, user, headers):
    _post(db, user, likes_count=1200, replies_count=3, retweets_count=4, engagement_score=80)
    _post(db, user, likes_count=10, engagement_score=20)
    _post(db, user, status="draft", likes_count=999)

    body = client.get("/api/dashboard/analytics?range=30d", headers=headers).json()
    assert body["range"] == "30d"
    assert body["totalPosts"] == 2
    assert body["likes"] == 1210
    assert body["replies"] == 3
    assert body["retweets"] == 4
    assert body["engagement"] == 50
    assert len(body["daily"]) == 30
    assert sum(d["posts"] for d in body["daily"]) == 2
    assert body["topPosts"][0]["engagement"] == 80

    assert client.get("/api/dashboard/analytics?range=1y", headers=headers).status_code == 400

# --- Settings ---

def test_get_settings_includes_billing(client, db, user, headers):
    end = datetime.now(timezone.utc) + timedelta(days=20)
    db.add(Subscription(
        user_id=user.id, plan="basic", status="active",
        current_period_start=datetime.now(timezone.utc) - timedelta(days=10), current_period_end=end,
    ))
    db.commit()

    body = client.get("/api/dashboard/settings", headers=headers).json()
    assert body["profile"]["email"] == user.email
    assert body["notifications"]["email"] is True
    assert body["billing"]["plan"] == "free"
    assert body["billing"]["subscriptionStatus"] == "active"
    assert body["billing"]["currentPeriodEnd"] is not None

def test_update_settings(client, db, user, headers):
    res = client.patch("/api/dashboard/settings", json={
        "name": "Renamed",
        "timezone": "Asia/Seoul",
        "language": "ko",
        "notifications": {"email": False, "weeklyReport": True},
    }, headers=headers)
    assert res.status_code == 200
    body = res.json()
    assert body["profile"]["name"] == "Renamed"
    assert body["profile"]["timezone"] == "Asia/Seoul"
    assert body["notifications"]["email"] is False
    assert body["notifications"]["weeklyReport"] is True
    assert "typify-language=ko" in res.headers["set-cookie"]

    db.refresh(user)
    assert user.language == "ko"

def test_update_settings_rejects_bad_values(client, headers):
    assert client.patch("/api/dashboard/settings", json={"timezone": "Nowhere/Land"}, headers=headers).status_code == 400
    assert client.patch("/api/dashboard/settings", json={"name": " "}, headers=headers).status_code == 400
    assert client.patch("/api/dashboard/settings", json={"language": "fr"}, headers=headers).status_code == 422

def test_delete_account(client, db, user, headers):
    _post(db, user)
    _scheduled(db, user)
    assert client.post("/api/dashboard/settings/delete", json={"confirm": "delete"}, headers=headers).status_code == 400

    res = client.post("/api/dashboard/settings/delete", json={"confirm": "DELETE"}, headers=headers)
    assert res.status_code == 200
    db.expire_all()
    assert db.query(User).count() == 0
    assert db.query(UserPost).count() == 0
    assert db.query(ScheduledPost).count() == 0

# --- Pages ---

@pytest.mark.parametrize("path", [
    "/dashboard", "/dashboard/generate", "/dashboard/posts", "/dashboard/schedule",
    "/dashboard/analytics", "/dashboard/settings",
])
def test_dashboard_pages_render(client, headers, path):
    res = client.get(path, headers=headers)
    assert res.status_code == 200
    assert "TYPIFY" in res.text
    assert re.search(r"\[\[[a-zA-Z0-9_.]+\]\]", res.text) is None

def test_dashboard_pages_redirect_anonymous(client):
    res = client.get("/dashboard", follow_redirects=False)
    assert res.status_code == 303
    assert res.headers["location"] == "/login"
