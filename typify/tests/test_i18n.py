from unittest.mock import MagicMock

from typify.i18n import t, detect_language, TRANSLATIONS, LANGUAGE_COOKIE

def _request(cookies=None, accept_language=None):
    request = MagicMock()
    request.cookies = cookies or {}
    request.headers = {"accept-language": accept_language} if accept_language else {}
    return request

def test_lookup_and_fallbacks(monkeypatch):
    assert t("nav.pricing", "ko") == "요금제"
    assert t("nav.pricing", "en") == "Pricing"
    assert t("does.not.exist", "ko") == "does.not.exist"

    monkeypatch.delitem(TRANSLATIONS["ko"], "nav.faq")
    assert t("nav.faq", "ko") == TRANSLATIONS["en"]["nav.faq"]

def test_every_english_key_has_korean_text():
    assert set(TRANSLATIONS["en"]) == set(TRANSLATIONS["ko"])

def test_detect_language_prefers_cookie():
    assert detect_language(_request({LANGUAGE_COOKIE: "en"}, "ko-KR,ko;q=0.9")) == "en"
    assert detect_language(_request({LANGUAGE_COOKIE: "fr"}, "ko-KR")) == "ko"
    assert detect_language(_request(accept_language="ko-KR,ko;q=0.9")) == "ko"
    assert detect_language(_request(accept_language="en-US")) == "en"
    assert detect_language(_request()) == "en"

def test_language_endpoint_sets_cookie(client):
    res = client.post("/language", json={"language": "en"})
    assert res.status_code == 200
    assert res.json() == {"language": "en"}
    set_cookie = res.headers["set-cookie"]
    assert f"{LANGUAGE_COOKIE}=en" in set_cookie
    assert "Max-Age=31536000" in set_cookie

    assert client.post("/language", json={"language": "de"}).status_code == 422

def test_landing_page_renders_in_cookie_language(client):
    client.cookies.set(LANGUAGE_COOKIE, "ko")
    res = client.get("/")
    assert res.status_code == 200
    assert "요금제" in res.text
    assert "[[" not in res.text

    client.cookies.clear()
    res = client.get("/", headers={"Accept-Language": "en-US"})
    assert "Pricing" in res.text
