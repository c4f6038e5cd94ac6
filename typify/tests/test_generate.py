import json
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from openai import OpenAIError

from typify.models import GeneratedContent, ScheduledPost, UsageLog
from typify.schemas import GenerationForm
from typify.services import llm
from typify.services.llm import GenerationError, generate_posts

def _completion(payload) -> MagicMock:
    content = payload if isinstance(payload, str) else json.dumps(payload)
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response

def _client_returning(payload) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create.return_value = _completion(payload)
    return client

POSTS = {"posts": [
    {"content": "Ship small, ship often.", "hashtags": ["#dev", "shipping"]},
    {"content": "x" * 600, "hashtags": []},
]}

# --- Service ---

def test_generate_posts_parses_and_truncates():
    form = GenerationForm(topic="Release cadence", platform="twitter")
    with patch("typify.services.llm.get_client", return_value=_client_returning(POSTS)):
        items = generate_posts(form)
    assert items[0] == {"content": "Ship small, ship often.", "hashtags": ["#dev", "#shipping"]}
    assert len(items[1]["content"]) == 280

    form = GenerationForm(topic="Release cadence", platform="threads", includeHashtags=False)
    with patch("typify.services.llm.get_client", return_value=_client_returning(POSTS)):
        items = generate_posts(form)
    assert len(items[1]["content"]) == 500
    assert items[0]["hashtags"] == []

def test_generate_posts_sends_json_request():
    client = _client_returning(POSTS)
    form = GenerationForm(topic="Coffee", tone="humorous", targetAudience="founders", callToAction="Follow me")
    with patch("typify.services.llm.get_client", return_value=client):
        generate_posts(form, {"industry": "entrepreneur", "topics": ["startup"], "tone": "witty"})

    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}
    prompt = kwargs["messages"][1]["content"]
    assert "Coffee" in prompt
    assert "founders" in prompt
    assert "Follow me" in prompt
    assert "entrepreneur" in prompt

@pytest.mark.parametrize("payload", ["not json", {"posts": "nope"}, {"posts": [{"content": "  "}]}, {"other": []}])
def test_generate_posts_rejects_bad_payloads(payload):
    with patch("typify.services.llm.get_client", return_value=_client_returning(payload)):
        with pytest.raises(GenerationError):
            generate_posts(GenerationForm(topic="x"))

def test_generate_posts_wraps_api_errors():
    client = MagicMock()
    client.chat.completions.create.side_effect = OpenAIError("boom")
    with patch("typify.services.llm.get_client", return_value=client):
        with pytest.raises(GenerationError):
            generate_posts(GenerationForm(topic="x"))

def test_missing_api_key(monkeypatch):
    monkeypatch.setattr(llm.settings, "openai_api_key", None)
    with pytest.raises(GenerationError):
        llm.get_client()

def test_blank_topic_is_invalid():
    with pytest.raises(ValueError):
        GenerationForm(topic="   ")

# --- Route ---

ITEMS = [
    {"content": "First draft", "hashtags": ["#a"]},
    {"content": "Second draft", "hashtags": []},
]

def test_generate_stores_content_and_counts_usage(client, db, user, headers):
    with patch("typify.routes.dashboard.generate_posts", return_value=ITEMS):
        res = client.post("/api/dashboard/generate", json={"topic": "Launch", "platform": "twitter"}, headers=headers)
    assert res.status_code == 200
    content = res.json()["content"]
    assert [c["content"] for c in content] == ["First draft", "Second draft"]
    assert content[0]["hashtags"] == ["#a"]
    assert content[0]["platform"] == "twitter"

    assert db.query(GeneratedContent).filter(GeneratedContent.user_id == user.id).count() == 2
    assert db.query(ScheduledPost).count() == 0
    log = db.query(UsageLog).one()
    assert log.action == "post_created"
    assert log.log_metadata["count"] == 2
    db.refresh(user)
    assert user.monthly_posts_used == 1

def test_generate_with_schedule_creates_entries(client, db, user, headers):
    when = (datetime.now(timezone.utc) + timedelta(days=1)).replace(microsecond=0)
    with patch("typify.routes.dashboard.generate_posts", return_value=ITEMS):
        res = client.post("/api/dashboard/generate", json={"topic": "Launch", "scheduledFor": when.isoformat()}, headers=headers)
    assert res.status_code == 200

    entries = db.query(ScheduledPost).all()
    assert len(entries) == 2
    assert {e.status for e in entries} == {"scheduled"}
    assert entries[0].scheduled_at.replace(tzinfo=timezone.utc) == when
    assert {c.status for c in db.query(GeneratedContent).all()} == {"scheduled"}

def test_generate_blocked_at_usage_limit(client, db, make_user, auth_for):
    capped = make_user(monthly_posts_limit=2)
    for _ in range(2):
        db.add(UsageLog(user_id=capped.id, action="post_created", resource_type="generated_content"))
    db.commit()

    with patch("typify.routes.dashboard.generate_posts", return_value=ITEMS) as gen:
        res = client.post("/api/dashboard/generate", json={"topic": "Launch"}, headers=auth_for(capped))
    assert res.status_code == 403
    assert res.json()["detail"] == "usage limit reached"
    gen.assert_not_called()
    assert db.query(GeneratedContent).count() == 0

def test_generate_forces_locked_platform(client, make_user, auth_for):
    locked = make_user(selected_platform="threads", platform_locked_until=datetime.now(timezone.utc) + timedelta(days=3))
    with patch("typify.routes.dashboard.generate_posts", return_value=ITEMS) as gen:
        res = client.post("/api/dashboard/generate", json={"topic": "Launch", "platform": "twitter"}, headers=auth_for(locked))
    assert res.status_code == 200
    assert gen.call_args.args[0].platform == "threads"
    assert {c["platform"] for c in res.json()["content"]} == {"threads"}

def test_generation_failure_stores_nothing(client, db, user, headers):
    with patch("typify.routes.dashboard.generate_posts", side_effect=GenerationError("upstream down")):
        res = client.post("/api/dashboard/generate", json={"topic": "Launch"}, headers=headers)
    assert res.status_code == 502
    assert res.json()["detail"] == "upstream down"
    assert db.query(GeneratedContent).count() == 0
    assert db.query(UsageLog).count() == 0
    db.refresh(user)
    assert user.monthly_posts_used == 0

def test_generate_validates_form(client, headers):
    assert client.post("/api/dashboard/generate", json={"topic": ""}, headers=headers).status_code == 422
    assert client.post("/api/dashboard/generate", json={"topic": "x", "platform": "myspace"}, headers=headers).status_code == 422
    assert client.post("/api/dashboard/generate", json={"topic": "x"}).status_code == 401

def test_reported_limit_is_the_enforced_limit(client, db, make_user, auth_for):
    trial = make_user(plan="pro", monthly_posts_limit=10)
    for _ in range(10):
        db.add(UsageLog(user_id=trial.id, action="post_created", resource_type="generated_content"))
    db.commit()

    usage = client.get("/api/dashboard/usage", headers=auth_for(trial)).json()
    assert usage["planType"] == "pro"
    assert usage["postsLimit"] == 10
    assert usage["postsUsed"] == 10

    with patch("typify.routes.dashboard.generate_posts", return_value=ITEMS) as gen:
        res = client.post("/api/dashboard/generate", json={"topic": "Launch"}, headers=auth_for(trial))
    assert res.status_code == 403
    gen.assert_not_called()
