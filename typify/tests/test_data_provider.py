from datetime import datetime, timezone

import pytest

from typify.models import UsageLog, User, UserPost
from typify.services.data_provider import (
    DataProvider, DataProviderError, InvalidField, RecordNotFound, UnknownResource, serialize,
)

@pytest.fixture
def provider(db):
    return DataProvider(db)

@pytest.fixture
def posts(db, user):
    rows = []
    for i, status in enumerate(["draft", "published", "draft", "published", "draft"]):
        row = UserPost(user_id=user.id, content=f"post {i}", status=status, likes_count=i * 10)
        db.add(row)
        rows.append(row)
    db.commit()
    return rows

def test_get_list_paginates_and_sorts(provider, posts):
    rows, total = provider.get_list("user_posts", page=1, per_page=2, sort_field="likes_count", sort_order="DESC")
    assert total == 5
    assert [r.content for r in rows] == ["post 4", "post 3"]

    rows, total = provider.get_list("user_posts", page=3, per_page=2)
    assert total == 5
    assert [r.content for r in rows] == ["post 4"]

def test_get_list_filters(provider, posts):
    rows, total = provider.get_list("user_posts", filters={"status": "draft", "content": ""})
    assert total == 3
    assert {r.status for r in rows} == {"draft"}

    rows, total = provider.get_list("user_posts", filters={"id": [posts[0].id, posts[1].id]})
    assert total == 2

def test_unknown_resource_and_field(provider, posts):
    with pytest.raises(UnknownResource):
        provider.get_list("login_handshakes")
    with pytest.raises(InvalidField):
        provider.get_list("user_posts", sort_field="nope")
    with pytest.raises(InvalidField):
        provider.get_list("user_posts", filters={"nope": 1})

def test_get_one_and_many(provider, posts):
    assert provider.get_one("user_posts", posts[2].id).content == "post 2"
    with pytest.raises(RecordNotFound):
        provider.get_one("user_posts", 9999)

    many = provider.get_many("user_posts", [posts[0].id, posts[4].id, 9999])
    assert sorted(r.id for r in many) == sorted([posts[0].id, posts[4].id])
    assert provider.get_many("user_posts", []) == []

def test_get_many_reference(provider, posts, make_user, db):
    other = make_user()
    db.add(UserPost(user_id=other.id, content="elsewhere"))
    db.commit()

    rows, total = provider.get_many_reference("user_posts", "user_id", other.id)
    assert total == 1
    assert rows[0].content == "elsewhere"

def test_create_update_delete(provider, user):
    row = provider.create("user_posts", {"user_id": user.id, "content": "fresh", "id": 555})
    assert row.id != 555
    assert row.status == "draft"

    updated = provider.update("user_posts", row.id, {"status": "scheduled", "scheduled_for": "2030-01-02T03:04:05Z"})
    assert updated.status == "scheduled"
    assert updated.scheduled_for.replace(tzinfo=timezone.utc) == datetime(2030, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    assert provider.delete("user_posts", row.id) == {"id": row.id}
    with pytest.raises(RecordNotFound):
        provider.get_one("user_posts", row.id)

def test_bulk_update_and_delete(provider, posts, db):
    ids = [posts[0].id, posts[2].id]
    assert provider.update_many("user_posts", ids, {"status": "failed"}) == ids
    db.expire_all()
    assert db.query(UserPost).filter(UserPost.status == "failed").count() == 2

    assert provider.delete_many("user_posts", ids) == ids
    assert db.query(UserPost).count() == 3

def test_integrity_errors_surface(provider, user, db):
    with pytest.raises(DataProviderError):
        provider.create("users", {"email": user.email, "name": "Dup"})
    # Session stays usable after the rollback
    assert db.query(User).count() == 1

def test_usage_logs_expose_metadata_column(provider, user, db):
    db.add(UsageLog(user_id=user.id, action="post_created", resource_type="generated_content", log_metadata={"count": 3}))
    db.commit()

    rows, _ = provider.get_list("usage_logs", filters={"action": "post_created"})
    out = serialize(rows[0])
    assert out["metadata"] == {"count": 3}
    assert "log_metadata" not in out
    assert isinstance(out["created_at"], str)

    updated = provider.update("usage_logs", rows[0].id, {"metadata": {"count": 4}})
    assert updated.log_metadata == {"count": 4}

def test_counts(provider, posts):
    counts = provider.counts()
    assert counts["users"] == 1
    assert counts["user_posts"] == 5
    assert counts["scheduled_posts"] == 0

def test_bad_dates_are_invalid_fields(provider, posts):
    with pytest.raises(InvalidField, match="scheduled_for"):
        provider.update("user_posts", posts[0].id, {"scheduled_for": "next tuesday"})
    with pytest.raises(InvalidField):
        provider.create("user_posts", {"user_id": posts[0].user_id, "content": "x", "published_at": "2026-13-40"})

    updated = provider.update("user_posts", posts[0].id, {"scheduled_for": "2026-10-19T09:30:00Z"})
    assert updated.scheduled_for.replace(tzinfo=timezone.utc) == datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)

def test_unbindable_filter_values_surface(provider, posts, db):
    with pytest.raises(DataProviderError):
        provider.get_list("user_posts", filters={"content": {"like": "post"}})
    with pytest.raises(DataProviderError):
        provider.get_many_reference("user_posts", "status", {"nested": True})
    # Session stays usable after the rollback
    assert db.query(UserPost).count() == 5

def test_list_filters_match_any_listed_value(provider, posts):
    rows, total = provider.get_list("user_posts", filters={"status": ["draft", "failed"]})
    assert total == 3
    assert {r.status for r in rows} == {"draft"}

def test_get_list_offset_overrides_page(provider, posts):
    rows, total = provider.get_list("user_posts", per_page=5, sort_field="id", sort_order="ASC", offset=3)
    assert total == 5
    assert [r.content for r in rows] == ["post 3", "post 4"]

    rows, _ = provider.get_list("user_posts", per_page=2, sort_field="id", sort_order="ASC", offset=1)
    assert [r.content for r in rows] == ["post 1", "post 2"]
