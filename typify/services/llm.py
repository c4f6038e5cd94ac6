from typing import Any
import json
import logging
from openai import OpenAI, OpenAIError
from typify.config import settings
from typify.logging_setup import log_event

logger = logging.getLogger(__name__)

PLATFORM_LIMITS = {
    "twitter": 280,
    "threads": 500,
}

def fit_to_platform(text: str, platform: str) -> str:
    return text[:PLATFORM_LIMITS.get(platform, PLATFORM_LIMITS["threads"])]

TONE_HINTS = {
    "professional": "a professional, authoritative tone",
    "casual": "a relaxed, conversational tone",
    "friendly": "a warm and approachable tone",
    "humorous": "a light, witty and humorous tone",
    "serious": "a serious, measured tone",
    "inspiring": "a motivating and uplifting tone",
}

LENGTH_HINTS = {
    "short": "one or two short sentences",
    "medium": "three to four sentences",
    "long": "use most of the platform's character limit",
}

class GenerationError(Exception):
    pass

def get_client():
    if not settings.openai_api_key:
        raise GenerationError("OPENAI_API_KEY is missing. Please set it in your environment or .env file.")
    return OpenAI(api_key=settings.openai_api_key)

def build_prompt(form, profile: dict[str, Any] | None = None) -> str:
    profile = profile or {}
    limit = PLATFORM_LIMITS[form.platform]

    lines = [
        f"Topic: {form.topic}",
        f"Platform: {'X (Twitter)' if form.platform == 'twitter' else 'Threads'} (max {limit} characters per post)",
        f"Tone: {TONE_HINTS.get(form.tone, 'an engaging tone')}",
        f"Length: {LENGTH_HINTS.get(form.length, 'balanced length')}",
    ]
    if form.target_audience:
        lines.append(f"Target audience: {form.target_audience}")
    if form.call_to_action:
        lines.append(f"End with this call to action: {form.call_to_action}")
    if profile.get("industry"):
        lines.append(f"Author industry: {profile['industry']}")
    if profile.get("topics"):
        lines.append(f"Author's usual topics: {', '.join(profile['topics'])}")
    lines.append("Include 2-4 relevant hashtags." if form.include_hashtags else "Do not include hashtags.")
    lines.append("Use a few fitting emojis." if form.include_emojis else "Do not use emojis.")

    brief = "\n".join(f"- {line}" for line in lines)
    return f"""
    Write 3 alternative social media posts.
    {brief}

    Return JSON:
    {{
        "posts": [
            {{"content": "post text without hashtags", "hashtags": ["#tag1", "#tag2"]}}
        ]
    }}
    """

def _clean_items(raw: Any, platform: str, include_hashtags: bool) -> list[dict[str, Any]]:
    if not isinstance(raw, dict) or not isinstance(raw.get("posts"), list):
        raise GenerationError("Generation API returned an unexpected payload.")

    items = []
    for entry in raw["posts"]:
        if not isinstance(entry, dict):
            continue
        content = str(entry.get("content") or "").strip()
        if not content:
            continue
        hashtags = []
        if include_hashtags:
            hashtags = [
                t if t.startswith("#") else f"#{t}"
                for t in (str(h).strip() for h in entry.get("hashtags") or [])
                if t
            ]
        items.append({"content": fit_to_platform(content, platform), "hashtags": hashtags})

    if not items:
        raise GenerationError("Generation API returned no usable posts.")
    return items

def generate_posts(form, profile: dict[str, Any] | None = None) -> list[dict[str, Any]]:
    """Calls the generation API for a dashboard form and returns [{content, hashtags}]."""
    client = get_client()
    system_msg = "You are a professional social media manager who writes high-engagement posts."
    if profile and profile.get("tone"):
        system_msg += f" The author's preferred voice is {profile['tone']}."

    log_event("generation_request", platform=form.platform, tone=form.tone, length=form.length)
    try:
        response = client.chat.completions.create(
            model=settings.openai_model,
            messages=[
                {"role": "system", "content": system_msg},
                {"role": "user", "content": build_prompt(form, profile)},
            ],
            response_format={"type": "json_object"},
        )
    except OpenAIError as e:
        logger.error(f"[LLM] OpenAI API call failed: {e}")
        raise GenerationError(f"Content generation failed: {e}") from e

    try:
        raw = json.loads(response.choices[0].message.content or "")
    except (json.JSONDecodeError, IndexError, AttributeError) as e:
        raise GenerationError("Generation API returned invalid JSON.") from e

    return _clean_items(raw, form.platform, form.include_hashtags)
