import html
import json
import re
from fastapi import APIRouter, Request, Depends, Response
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session
from typify.db import get_db
from typify.models import User, PLAN_LIMITS
from typify.schemas import LanguageIn
from typify.security.auth import get_current_user
from typify.services.accounts import post_login_redirect
from typify.i18n import detect_language, set_language_cookie, t
from typify.config import settings
from typing import Optional

router = APIRouter()

_KEY_PATTERN = re.compile(r"\[\[([a-zA-Z0-9_.]+)\]\]")

def render(template: str, lang: str) -> str:
    """Fills [[translation.key]] markers for the given language."""
    return _KEY_PATTERN.sub(lambda m: html.escape(t(m.group(1), lang)), template)

# --- HTML TEMPLATES (Embedded) ---

LANDING_HTML = """<!doctype html>
<html lang="{{lang}}">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>Typify | [[hero.badge]]</title>
  <script src="https://cdn.tailwindcss.com"></script>
  <link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;700;900&display=swap" rel="stylesheet">
  <style>
    body { font-family: 'Inter', sans-serif; overflow-x: hidden; }
    .ai-bg { background: radial-gradient(circle at top right, #312e81, #0f172a, #020617); }
    .glass {
      background: rgba(255, 255, 255, 0.03);
      backdrop-filter: blur(12px);
      border: 1px solid rgba(255, 255, 255, 0.1);
    }
  </style>
</head>
<body class="ai-bg text-white min-h-screen">
  <nav class="border-b border-white/5 bg-black/20 backdrop-blur-md sticky top-0 z-50">
    <div class="max-w-6xl mx-auto px-6 h-16 flex justify-between items-center">
      <a href="/" class="text-lg font-black italic tracking-tighter">TYPIFY</a>
      <div class="hidden md:flex gap-8 text-xs font-bold uppercase tracking-widest text-slate-400">
        <a href="#features" class="hover:text-white">[[nav.features]]</a>
        <a href="#pricing" class="hover:text-white">[[nav.pricing]]</a>
        <a href="#faq" class="hover:text-white">[[nav.faq]]</a>
      </div>
      <div class="flex items-center gap-3">
        <button onclick="toggleLanguage()" class="text-xs font-bold text-slate-400 hover:text-white">{{other_language_label}}</button>
        {% if authenticated %}
        <a href="/dashboard" class="px-4 py-2 rounded-xl bg-indigo-600 text-xs font-black uppercase tracking-widest">[[dashboard.title]]</a>
        {% else %}
        <a href="/login" class="text-xs font-bold uppercase tracking-widest text-slate-300 hover:text-white">[[header.signin]]</a>
        <a href="/login" class="px-4 py-2 rounded-xl bg-indigo-600 text-xs font-black uppercase tracking-widest">[[header.freetrial]]</a>
        {% endif %}
      </div>
    </div>
  </nav>

  <header class="max-w-4xl mx-auto px-6 pt-24 pb-16 text-center space-y-6">
    <span class="inline-block px-4 py-1 rounded-full glass text-[10px] font-black uppercase tracking-widest text-indigo-300">[[hero.badge]]</span>
    <h1 class="text-5xl md:text-6xl font-black tracking-tighter bg-gradient-to-r from-indigo-400 to-purple-400 bg-clip-text text-transparent">[[hero.title]]</h1>
    <p class="text-slate-400 text-lg">[[hero.subtitle]]</p>
    <div class="flex justify-center gap-4">
      <a href="/login" class="px-8 py-4 rounded-2xl bg-indigo-600 hover:bg-indigo-500 font-black text-sm uppercase tracking-widest">[[hero.cta.primary]]</a>
      <a href="#pricing" class="px-8 py-4 rounded-2xl glass font-black text-sm uppercase tracking-widest">[[hero.cta.secondary]]</a>
    </div>
  </header>

  <section id="features" class="max-w-6xl mx-auto px-6 py-16 space-y-10">
    <div class="text-center space-y-2">
      <h2 class="text-3xl font-black tracking-tight">[[features.title]]</h2>
      <p class="text-slate-400">[[features.subtitle]]</p>
    </div>
    <div class="grid md:grid-cols-3 gap-6">
      <div class="glass rounded-3xl p-8 space-y-3">
        <h3 class="font-black">[[features.generate.title]]</h3>
        <p class="text-sm text-slate-400">[[features.generate.desc]]</p>
      </div>
      <div class="glass rounded-3xl p-8 space-y-3">
        <h3 class="font-black">[[features.schedule.title]]</h3>
        <p class="text-sm text-slate-400">[[features.schedule.desc]]</p>
      </div>
      <div class="glass rounded-3xl p-8 space-y-3">
        <h3 class="font-black">[[features.analytics.title]]</h3>
        <p class="text-sm text-slate-400">[[features.analytics.desc]]</p>
      </div>
    </div>
  </section>

  <section id="pricing" class="max-w-6xl mx-auto px-6 py-16 space-y-10">
    <div class="text-center space-y-2">
      <h2 class="text-3xl font-black tracking-tight">[[pricing.title]]</h2>
      <p class="text-slate-400">[[pricing.subtitle]]</p>
    </div>
    <div class="grid md:grid-cols-3 gap-6">
      <div class="glass rounded-3xl p-8 space-y-4">
        <h3 class="text-xl font-black">[[pricing.free.name]]</h3>
        <p class="text-sm text-slate-400">[[pricing.free.description]]</p>
        <div class="text-3xl font-black">{{limit_free}} <span class="text-xs text-slate-400 font-bold">[[pricing.perMonth]]</span></div>
      </div>
      <div class="glass rounded-3xl p-8 space-y-4">
        <h3 class="text-xl font-black">[[pricing.basic.name]]</h3>
        <p class="text-sm text-slate-400">[[pricing.basic.description]]</p>
        <div class="text-3xl font-black">{{limit_basic}} <span class="text-xs text-slate-400 font-bold">[[pricing.perMonth]]</span></div>
      </div>
      <div class="rounded-3xl p-8 space-y-4 bg-indigo-600/20 border border-indigo-500/40">
        <span class="text-[10px] font-black uppercase tracking-widest text-indigo-300">[[pricing.popular]]</span>
        <h3 class="text-xl font-black">[[pricing.pro.name]]</h3>
        <p class="text-sm text-slate-400">[[pricing.pro.description]]</p>
        <div class="text-3xl font-black">{{limit_pro}} <span class="text-xs text-slate-400 font-bold">[[pricing.perMonth]]</span></div>
      </div>
    </div>
    <div class="text-center">
      <a href="/login" class="px-8 py-4 rounded-2xl bg-indigo-600 hover:bg-indigo-500 font-black text-sm uppercase tracking-widest">[[pricing.cta]]</a>
    </div>
  </section>

  <section id="faq" class="max-w-3xl mx-auto px-6 py-16 space-y-6">
    <div class="text-center space-y-2">
      <h2 class="text-3xl font-black tracking-tight">[[faq.title]]</h2>
      <p class="text-slate-400">[[faq.subtitle]]</p>
    </div>
    <details class="glass rounded-2xl p-6"><summary class="font-bold cursor-pointer">[[faq.q1]]</summary><p class="text-sm text-slate-400 mt-3">[[faq.a1]]</p></details>
    <details class="glass rounded-2xl p-6"><summary class="font-bold cursor-pointer">[[faq.q2]]</summary><p class="text-sm text-slate-400 mt-3">[[faq.a2]]</p></details>
    <details class="glass rounded-2xl p-6"><summary class="font-bold cursor-pointer">[[faq.q3]]</summary><p class="text-sm text-slate-400 mt-3">[[faq.a3]]</p></details>
  </section>

  <section class="max-w-4xl mx-auto px-6 py-20 text-center space-y-6">
    <h2 class="text-4xl font-black tracking-tight">[[cta.title]]</h2>
    <p class="text-slate-400">[[cta.subtitle]]</p>
    <a href="/login" class="inline-block px-8 py-4 rounded-2xl bg-indigo-600 hover:bg-indigo-500 font-black text-sm uppercase tracking-widest">[[cta.button]]</a>
  </section>

  <footer class="border-t border-white/5 py-8 text-center text-xs text-slate-500">[[footer.copyright]]</footer>

  <script>
    async function toggleLanguage() {
      await fetch('/language', {
        method: 'POST',
        headers: { 'Content-Type': 'application/json' },
        body: JSON.stringify({ language: '{{other_language}}' })
      });
      window.location.reload();
    }
  </script>
</body>
</html>
"""

LOGIN_HTML = """<!doctype html>
<html lang="{{lang}}">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>[[login.title]]</title>
  <script src="https://cdn.tailwindcss.com"></script>
  <link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;700;900&display=swap" rel="stylesheet">
  <style>
    body { font-family: 'Inter', sans-serif; }
    .ai-bg { background: radial-gradient(circle at top right, #312e81, #0f172a, #020617); }
    .glass { background: rgba(255, 255, 255, 0.03); backdrop-filter: blur(12px); border: 1px solid rgba(255, 255, 255, 0.1); }
  </style>
</head>
<body class="ai-bg text-white min-h-screen flex items-center justify-center p-6">
  <div class="glass rounded-[2.5rem] p-10 w-full max-w-md space-y-8 text-center">
    <div class="space-y-2">
      <a href="/" class="text-2xl font-black italic tracking-tighter">TYPIFY</a>
      <h1 class="text-xl font-black">[[login.title]]</h1>
      <p class="text-sm text-slate-400">[[login.subtitle]]</p>
    </div>
    <button id="googleBtn" onclick="startLogin()" class="w-full py-4 rounded-2xl bg-white text-slate-900 font-black text-sm flex items-center justify-center gap-3 hover:bg-slate-100 transition-colors">
      <svg class="w-5 h-5" viewBox="0 0 24 24"><path fill="#4285F4" d="M22.56 12.25c0-.78-.07-1.53-.2-2.25H12v4.26h5.92a5.06 5.06 0 01-2.2 3.32v2.77h3.57c2.08-1.92 3.28-4.74 3.28-8.1z"/><path fill="#34A853" d="M12 23c2.97 0 5.46-.98 7.28-2.66l-3.57-2.77c-.98.66-2.23 1.06-3.71 1.06-2.86 0-5.29-1.93-6.16-4.53H2.18v2.84A11 11 0 0012 23z"/><path fill="#FBBC05" d="M5.84 14.1a6.6 6.6 0 010-4.2V7.06H2.18a11 11 0 000 9.88l3.66-2.84z"/><path fill="#EA4335" d="M12 5.38c1.62 0 3.06.56 4.21 1.64l3.15-3.15A10.56 10.56 0 0012 1 11 11 0 002.18 7.06l3.66 2.84C6.71 7.3 9.14 5.38 12 5.38z"/></svg>
      [[login.google]]
    </button>
    <div id="statusMsg" class="hidden text-xs font-bold p-4 rounded-xl"></div>
  </div>

  <script>
    const MSG = {{messages}};

    function showStatus(text, kind) {
      const el = document.getElementById('statusMsg');
      const styles = {
        info: 'text-indigo-300 bg-indigo-500/10 border border-indigo-500/20',
        ok: 'text-emerald-400 bg-emerald-500/10 border border-emerald-500/20',
        error: 'text-red-400 bg-red-500/10 border border-red-500/20'
      };
      el.textContent = text;
      el.className = 'text-xs font-bold p-4 rounded-xl ' + styles[kind];
    }

    function cancelHandshake(id) {
      return fetch('/auth/popup/' + encodeURIComponent(id), { method: 'DELETE' }).catch(() => {});
    }

    async function signInWithPopup() {
      const res = await fetch('/auth/popup', { method: 'POST' });
      if (!res.ok) throw new Error(MSG.failed);
      const hs = await res.json();

      const left = window.screenX + (window.outerWidth - 500) / 2;
      const top = window.screenY + (window.outerHeight - 600) / 2;
      const popup = window.open(hs.authorization_url, 'oauth', `width=500,height=600,left=${left},top=${top}`);
      if (!popup) {
        await cancelHandshake(hs.handshake_id);
        throw new Error(MSG.popupBlocked);
      }

      return new Promise((resolve, reject) => {
        let done = false;
        let poll = null;
        let timer = null;

        const finish = (fn, arg) => {
          if (done) return;
          done = true;
          clearInterval(poll);
          clearTimeout(timer);
          window.removeEventListener('message', onMessage);
          try { popup.close(); } catch (e) {}
          fn(arg);
        };

        async function checkStatus() {
          if (done) return;
          try {
            const r = await fetch('/auth/popup/' + encodeURIComponent(hs.handshake_id));
            if (!r.ok) return;
            const s = await r.json();
            if (s.status === 'completed') return finish(resolve, s);
            if (s.status !== 'pending') return finish(reject, new Error(s.error || MSG.failed));
          } catch (e) {
            return;
          }
          if (popup.closed) {
            await cancelHandshake(hs.handshake_id);
            finish(reject, new Error(MSG.cancelled));
          }
        }

        function onMessage(event) {
          if (event.origin !== window.location.origin || !event.data) return;
          if (event.data.type === 'TYPIFY_AUTH_SUCCESS') checkStatus();
          if (event.data.type === 'TYPIFY_AUTH_ERROR') finish(reject, new Error(event.data.error || MSG.failed));
        }

        window.addEventListener('message', onMessage);
        poll = setInterval(checkStatus, (hs.poll_interval || 1) * 1000);
        timer = setTimeout(async () => {
          await cancelHandshake(hs.handshake_id);
          finish(reject, new Error(MSG.timeout));
        }, (hs.timeout || 300) * 1000);
      });
    }

    async function startLogin() {
      const btn = document.getElementById('googleBtn');
      btn.disabled = true;
      showStatus(MSG.waiting, 'info');
      try {
        const result = await signInWithPopup();
        showStatus(MSG.success, 'ok');
        window.location.href = result.redirect_url || '/dashboard';
      } catch (err) {
        showStatus(err.message || MSG.failed, 'error');
        btn.disabled = false;
      }
    }
  </script>
</body>
</html>
"""

LOGIN_MESSAGE_KEYS = {
    "waiting": "login.waiting",
    "popupBlocked": "login.popupBlocked",
    "cancelled": "login.cancelled",
    "timeout": "login.timeout",
    "failed": "login.failed",
    "success": "login.success",
}

# --- ROUTES ---

@router.get("/", response_class=HTMLResponse)
def landing_page(request: Request, user: Optional[User] = Depends(get_current_user)):
    lang = detect_language(request)
    other = "en" if lang == "ko" else "ko"
    page = render(LANDING_HTML, lang)
    # Very basic template string replacement for simple logic
    page = page.replace("{% if authenticated %}", "" if user else "<!--")
    page = page.replace("{% else %}", "<!--" if user else "-->")
    page = page.replace("{% endif %}", "-->" if user else "")
    replacements = {
        "{{lang}}": lang,
        "{{other_language}}": other,
        "{{other_language_label}}": t("header.language", other),
        "{{limit_free}}": str(PLAN_LIMITS["free"]),
        "{{limit_basic}}": str(PLAN_LIMITS["basic"]),
        "{{limit_pro}}": str(PLAN_LIMITS["pro"]),
    }
    for marker, value in replacements.items():
        page = page.replace(marker, value)
    return page

@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request, user: Optional[User] = Depends(get_current_user)):
    if user:
        return RedirectResponse(url=post_login_redirect(user), status_code=303)
    lang = detect_language(request)
    messages = {name: t(key, lang) for name, key in LOGIN_MESSAGE_KEYS.items()}
    page = render(LOGIN_HTML, lang)
    page = page.replace("{{lang}}", lang)
    page = page.replace("{{messages}}", json.dumps(messages, ensure_ascii=False).replace("</", "<\\/"))
    return HTMLResponse(page)

@router.post("/language")
def set_language(
    payload: LanguageIn,
    response: Response,
    user: Optional[User] = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    set_language_cookie(response, payload.language)
    if user and user.language != payload.language:
        user.language = payload.language
        db.commit()
    return {"language": payload.language}
