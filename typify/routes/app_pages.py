from fastapi import APIRouter, Request, Depends
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session
from typify.db import get_db
from typify.models import User
from typify.security.auth import optional_user
from typify.services import onboarding
from typify.services.onboarding import platform_locked
from typify.services.usage import usage_summary
from typify.utils.formatting import format_number, format_date, format_countdown
from typify.routes.public import render
from typify.i18n import detect_language, t
from typing import Optional
import html
import json
from datetime import datetime, timezone

router = APIRouter()

# --- HTML TEMPLATES ---

APP_LAYOUT_HTML = """<!doctype html>
<html lang="{lang}">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>{title} | Typify</title>
  <script src="https://cdn.tailwindcss.com"></script>
  <link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700;800;900&display=swap" rel="stylesheet">
  <style>
    body {{ font-family: 'Inter', sans-serif; background-color: #020617; color: #ffffff; }}
    .ai-bg {{ background: radial-gradient(circle at top right, #312e81, #020617, #020617); }}
    .glass {{ background: rgba(255, 255, 255, 0.03); backdrop-filter: blur(12px); border: 1px solid rgba(255, 255, 255, 0.1); }}
    .text-gradient {{ background: linear-gradient(to right, #818cf8, #c084fc); -webkit-background-clip: text; -webkit-text-fill-color: transparent; }}
    .nav-link.active {{ color: #6366f1; border-bottom: 2px solid #6366f1; }}
    .chip.active {{ background: #4f46e5; color: #fff; }}
  </style>
</head>
<body class="ai-bg min-h-screen">
  <nav class="border-b border-white/5 bg-black/20 backdrop-blur-md sticky top-0 z-50">
    <div class="max-w-7xl mx-auto px-6 h-16 flex justify-between items-center">
      <div class="flex items-center gap-8">
        <a href="/dashboard" class="text-lg font-black italic tracking-tighter text-gradient">TYPIFY</a>
        <div class="hidden md:flex gap-6">
          {nav_links}
          {admin_link}
        </div>
      </div>
      <div class="flex items-center gap-4">
        <div class="text-right hidden sm:block">
          <div class="text-[10px] font-black text-white uppercase tracking-wider">{user_name}</div>
          <div class="text-[8px] font-bold text-slate-400 uppercase tracking-widest">{plan}</div>
        </div>
        <button onclick="logout()" title="{logout_label}" class="p-2 text-slate-400 hover:text-white transition-colors">
          <svg class="w-5 h-5" fill="none" stroke="currentColor" viewBox="0 0 24 24"><path stroke-linecap="round" stroke-linejoin="round" stroke-width="2" d="M17 16l4-4m0 0l-4-4m4 4H7m6 4v1a3 3 0 01-3 3H6a3 3 0 01-3-3V7a3 3 0 013-3h4a3 3 0 013 3v1"></path></svg>
        </button>
      </div>
    </div>
  </nav>

  <main class="max-w-7xl mx-auto px-6 py-10 space-y-10">
    {content}
  </main>

  <script>
    async function logout() {{
      await fetch('/auth/logout', {{ method: 'POST' }});
      window.location.href = '/';
    }}

    async function api(path, options) {{
      const opts = Object.assign({{ headers: {{ 'Content-Type': 'application/json' }} }}, options || {{}});
      const res = await fetch(path, opts);
      let data = null;
      try {{ data = await res.json(); }} catch (e) {{}}
      if (!res.ok) {{
        const detail = data && data.detail;
        throw new Error(typeof detail === 'string' ? detail : '{error_label}');
      }}
      return data;
    }}

    function esc(s) {{
      const d = document.createElement('div');
      d.textContent = s == null ? '' : String(s);
      return d.innerHTML;
    }}
  </script>
</body>
</html>
"""

NAV_ITEMS = [
    ("dashboard", "/dashboard", "dashboard.title"),
    ("generate", "/dashboard/generate", "dashboard.generate"),
    ("posts", "/dashboard/posts", "dashboard.posts"),
    ("schedule", "/dashboard/schedule", "dashboard.schedule"),
    ("analytics", "/dashboard/analytics", "dashboard.analytics"),
    ("settings", "/dashboard/settings", "dashboard.settings"),
]

DASHBOARD_CONTENT = """
<div class="space-y-2">
  <h1 class="text-3xl font-black tracking-tight">[[dashboard.welcome]], {{user_name}}</h1>
  <p class="text-slate-400 text-sm">[[dashboard.nextReset]] {{countdown}}</p>
</div>

<div class="grid md:grid-cols-4 gap-6">
  <div class="glass rounded-3xl p-6 space-y-2">
    <div class="text-[10px] font-black uppercase tracking-widest text-slate-400">[[dashboard.thisMonth]]</div>
    <div class="text-3xl font-black">{{this_month}}</div>
  </div>
  <div class="glass rounded-3xl p-6 space-y-2">
    <div class="text-[10px] font-black uppercase tracking-widest text-slate-400">[[dashboard.thisWeek]]</div>
    <div class="text-3xl font-black">{{this_week}}</div>
  </div>
  <div class="glass rounded-3xl p-6 space-y-2">
    <div class="text-[10px] font-black uppercase tracking-widest text-slate-400">[[dashboard.engagement]]</div>
    <div class="text-3xl font-black">{{engagement}}</div>
  </div>
  <div class="glass rounded-3xl p-6 space-y-3">
    <div class="text-[10px] font-black uppercase tracking-widest text-slate-400">[[dashboard.usage]]</div>
    <div class="text-3xl font-black">{{posts_used}} / {{posts_limit}}</div>
    <div class="h-2 rounded-full bg-white/10"><div class="h-2 rounded-full bg-indigo-500" style="width: {{usage_pct}}%"></div></div>
    {{limit_notice}}
  </div>
</div>

<div class="glass rounded-3xl p-8 space-y-6">
  <div class="flex justify-between items-center">
    <h2 class="text-lg font-black">[[dashboard.recentPosts]]</h2>
    <a href="/dashboard/generate" class="px-4 py-2 rounded-xl bg-indigo-600 text-xs font-black uppercase tracking-widest">[[dashboard.generate]]</a>
  </div>
  <div id="recentPosts" class="space-y-3 text-sm text-slate-400">[[common.loading]]</div>
</div>

<script>
  (async () => {
    const box = document.getElementById('recentPosts');
    try {
      const data = await api('/api/dashboard/posts?limit=5');
      if (!data.posts.length) {
        box.textContent = '[[dashboard.noPosts]]';
        return;
      }
      box.innerHTML = data.posts.map(p => `
        <div class="border border-white/5 rounded-2xl p-4 flex justify-between gap-4">
          <div class="text-white whitespace-pre-wrap">${esc(p.content)}</div>
          <div class="text-[10px] font-black uppercase tracking-widest text-slate-400 shrink-0">${esc(p.platform)} / ${esc(p.status)}</div>
        </div>`).join('');
    } catch (err) {
      box.textContent = err.message;
    }
  })();
</script>
"""

ONBOARDING_HTML = """<!doctype html>
<html lang="{{lang}}">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>[[onboarding.title]] | Typify</title>
  <script src="https://cdn.tailwindcss.com"></script>
  <style>
    body { font-family: 'Inter', sans-serif; }
    .ai-bg { background: radial-gradient(circle at top right, #312e81, #020617, #020617); }
    .glass { background: rgba(255, 255, 255, 0.03); backdrop-filter: blur(12px); border: 1px solid rgba(255, 255, 255, 0.1); }
    .option.active { border-color: #6366f1; background: rgba(99, 102, 241, 0.15); }
  </style>
</head>
<body class="ai-bg text-white min-h-screen flex items-center justify-center p-6">
  <div class="glass rounded-[2.5rem] p-10 w-full max-w-2xl space-y-8">
    <div class="flex justify-between items-center">
      <h1 class="text-2xl font-black tracking-tight">[[onboarding.title]]</h1>
      <div id="stepLabel" class="text-xs font-black text-slate-400">1 / 4</div>
    </div>
    <div class="h-1 rounded-full bg-white/10"><div id="progress" class="h-1 rounded-full bg-indigo-500" style="width: 25%"></div></div>

    <div id="step" class="space-y-4"></div>
    <div id="errorMsg" class="hidden text-xs font-bold text-red-400 bg-red-500/10 p-4 rounded-xl border border-red-500/20"></div>

    <div class="flex justify-between">
      <button id="backBtn" onclick="go(-1)" class="px-6 py-3 rounded-xl glass text-xs font-black uppercase tracking-widest">[[onboarding.back]]</button>
      <button id="nextBtn" onclick="go(1)" class="px-6 py-3 rounded-xl bg-indigo-600 text-xs font-black uppercase tracking-widest">[[onboarding.next]]</button>
    </div>
  </div>

  <script>
    const OPTIONS = {{options}};
    const TITLES = {{titles}};
    const FINISH_LABEL = '[[onboarding.finish]]';
    const NEXT_LABEL = '[[onboarding.next]]';
    const state = { step: 0, industry: null, tone: null, topics: [], platform: null };

    function esc(s) {
      const d = document.createElement('div');
      d.textContent = s == null ? '' : String(s);
      return d.innerHTML;
    }

    function card(item, active, handler) {
      return `<button onclick="${handler}('${item.id}')" class="option w-full text-left glass rounded-2xl p-4 border ${active ? 'active' : 'border-white/10'}">
        <div class="font-black">${esc(item.name)}</div>
        ${item.description ? `<div class="text-xs text-slate-400">${esc(item.description)}</div>` : ''}
      </button>`;
    }

    function pickIndustry(id) { if (state.industry !== id) state.topics = []; state.industry = id; draw(); }
    function pickTone(id) { state.tone = id; draw(); }
    function pickPlatform(id) { state.platform = id; draw(); }
    function toggleTopic(id) {
      const i = state.topics.indexOf(id);
      if (i >= 0) state.topics.splice(i, 1);
      else if (state.topics.length < OPTIONS.maxTopics) state.topics.push(id);
      draw();
    }

    function draw() {
      const box = document.getElementById('step');
      let body = '';
      if (state.step === 0) body = OPTIONS.industries.map(i => card(i, state.industry === i.id, 'pickIndustry')).join('');
      if (state.step === 1) body = OPTIONS.tones.map(i => card(i, state.tone === i.id, 'pickTone')).join('');
      if (state.step === 2) body = (OPTIONS.topics[state.industry] || []).map(i => card(i, state.topics.includes(i.id), 'toggleTopic')).join('');
      if (state.step === 3) body = OPTIONS.platforms.map(i => card(i, state.platform === i.id, 'pickPlatform')).join('');
      const [title, subtitle] = TITLES[state.step];
      box.innerHTML = `<h2 class="text-xl font-black">${esc(title)}</h2>`
        + (subtitle ? `<p class="text-sm text-slate-400">${esc(subtitle)}</p>` : '')
        + `<div class="grid sm:grid-cols-2 gap-3">${body}</div>`;
      document.getElementById('stepLabel').textContent = `${state.step + 1} / 4`;
      document.getElementById('progress').style.width = `${(state.step + 1) * 25}%`;
      document.getElementById('backBtn').style.visibility = state.step === 0 ? 'hidden' : 'visible';
      document.getElementById('nextBtn').textContent = state.step === 3 ? FINISH_LABEL : NEXT_LABEL;
      document.getElementById('nextBtn').disabled = !stepValid();
    }

    function stepValid() {
      return [!!state.industry, !!state.tone, state.topics.length > 0, !!state.platform][state.step];
    }

    async function go(delta) {
      if (delta > 0 && !stepValid()) return;
      if (delta > 0 && state.step === 3) return submit();
      state.step = Math.min(3, Math.max(0, state.step + delta));
      draw();
    }

    async function submit() {
      const err = document.getElementById('errorMsg');
      err.classList.add('hidden');
      try {
        const res = await fetch('/api/onboarding', {
          method: 'PATCH',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify({ industry: state.industry, tone: state.tone, topics: state.topics, platform: state.platform })
        });
        const data = await res.json();
        if (!res.ok) throw new Error(typeof data.detail === 'string' ? data.detail : 'Error');
        window.location.href = '/dashboard';
      } catch (e) {
        err.textContent = e.message;
        err.classList.remove('hidden');
      }
    }

    draw();
  </script>
</body>
</html>
"""

GENERATE_CONTENT = """
<div class="grid lg:grid-cols-2 gap-8">
  <form id="genForm" class="glass rounded-3xl p-8 space-y-5">
    <h1 class="text-2xl font-black">[[dashboard.generate]]</h1>
    {{lock_notice}}
    <label class="block space-y-2">
      <span class="text-[10px] font-black uppercase tracking-widest text-slate-400">[[generate.topic]]</span>
      <textarea name="topic" required rows="3" class="w-full rounded-xl bg-black/30 border border-white/10 p-3 text-sm"></textarea>
    </label>
    <div class="grid grid-cols-2 gap-4">
      <label class="block space-y-2">
        <span class="text-[10px] font-black uppercase tracking-widest text-slate-400">[[generate.tone]]</span>
        <select name="tone" class="w-full rounded-xl bg-black/30 border border-white/10 p-3 text-sm">
          <option value="professional">Professional</option>
          <option value="casual">Casual</option>
          <option value="friendly">Friendly</option>
          <option value="humorous">Humorous</option>
          <option value="serious">Serious</option>
          <option value="inspiring">Inspiring</option>
        </select>
      </label>
      <label class="block space-y-2">
        <span class="text-[10px] font-black uppercase tracking-widest text-slate-400">[[generate.platform]]</span>
        <select name="platform" {{platform_disabled}} class="w-full rounded-xl bg-black/30 border border-white/10 p-3 text-sm">
          <option value="twitter" {{twitter_selected}}>X (Twitter)</option>
          <option value="threads" {{threads_selected}}>Threads</option>
        </select>
      </label>
      <label class="block space-y-2">
        <span class="text-[10px] font-black uppercase tracking-widest text-slate-400">[[generate.length]]</span>
        <select name="length" class="w-full rounded-xl bg-black/30 border border-white/10 p-3 text-sm">
          <option value="short">Short</option>
          <option value="medium" selected>Medium</option>
          <option value="long">Long</option>
        </select>
      </label>
      <label class="block space-y-2">
        <span class="text-[10px] font-black uppercase tracking-widest text-slate-400">[[generate.schedule]]</span>
        <input type="datetime-local" name="scheduledFor" class="w-full rounded-xl bg-black/30 border border-white/10 p-3 text-sm" />
      </label>
    </div>
    <label class="block space-y-2">
      <span class="text-[10px] font-black uppercase tracking-widest text-slate-400">[[generate.audience]]</span>
      <input name="targetAudience" class="w-full rounded-xl bg-black/30 border border-white/10 p-3 text-sm" />
    </label>
    <label class="block space-y-2">
      <span class="text-[10px] font-black uppercase tracking-widest text-slate-400">[[generate.cta]]</span>
      <input name="callToAction" class="w-full rounded-xl bg-black/30 border border-white/10 p-3 text-sm" />
    </label>
    <div class="flex gap-6 text-sm">
      <label class="flex items-center gap-2"><input type="checkbox" name="includeHashtags" checked /> [[generate.hashtags]]</label>
      <label class="flex items-center gap-2"><input type="checkbox" name="includeEmojis" /> [[generate.emojis]]</label>
    </div>
    <button id="genBtn" type="submit" class="w-full py-4 rounded-2xl bg-indigo-600 hover:bg-indigo-500 font-black text-sm uppercase tracking-widest">[[generate.submit]]</button>
    <div id="genError" class="hidden text-xs font-bold text-red-400 bg-red-500/10 p-4 rounded-xl border border-red-500/20"></div>
  </form>

  <div id="results" class="space-y-4"></div>
</div>

<script>
  const COPY_LABEL = '[[generate.copy]]';
  const LOCKED_PLATFORM = {{locked_platform}};

  document.getElementById('genForm').addEventListener('submit', async (e) => {
    e.preventDefault();
    const f = e.target;
    const btn = document.getElementById('genBtn');
    const err = document.getElementById('genError');
    err.classList.add('hidden');
    btn.disabled = true;
    const payload = {
      topic: f.topic.value,
      tone: f.tone.value,
      platform: LOCKED_PLATFORM || f.platform.value,
      length: f.length.value,
      includeHashtags: f.includeHashtags.checked,
      includeEmojis: f.includeEmojis.checked,
      targetAudience: f.targetAudience.value,
      callToAction: f.callToAction.value,
      scheduledFor: f.scheduledFor.value || null
    };
    try {
      const data = await api('/api/dashboard/generate', { method: 'POST', body: JSON.stringify(payload) });
      document.getElementById('results').innerHTML = data.content.map((c, i) => `
        <div class="glass rounded-3xl p-6 space-y-3">
          <div id="gen-${i}" class="whitespace-pre-wrap text-sm">${esc(c.content)}</div>
          <div class="text-xs text-indigo-300">${c.hashtags.map(esc).join(' ')}</div>
          <div class="flex justify-between items-center text-[10px] font-black uppercase tracking-widest text-slate-400">
            <span>${c.content.length} chars / ${esc(c.platform)}</span>
            <button onclick="copyPost(${i})" class="px-3 py-1 rounded-lg glass">${COPY_LABEL}</button>
          </div>
        </div>`).join('');
      window.generated = data.content;
    } catch (ex) {
      err.textContent = ex.message;
      err.classList.remove('hidden');
    } finally {
      btn.disabled = false;
    }
  });

  function copyPost(i) {
    const c = window.generated[i];
    navigator.clipboard.writeText([c.content, c.hashtags.join(' ')].filter(Boolean).join('\\n\\n'));
  }
</script>
"""

POSTS_CONTENT = """
<div class="flex flex-wrap justify-between items-center gap-4">
  <h1 class="text-2xl font-black">[[dashboard.posts]]</h1>
  <div class="flex gap-3">
    <select id="statusFilter" class="rounded-xl bg-black/30 border border-white/10 p-2 text-sm">
      <option value="">[[common.all]]</option>
      <option value="draft">draft</option>
      <option value="scheduled">scheduled</option>
      <option value="published">published</option>
      <option value="failed">failed</option>
    </select>
    <input id="search" placeholder="[[common.search]]" class="rounded-xl bg-black/30 border border-white/10 p-2 text-sm" />
  </div>
</div>
<div id="postList" class="space-y-3 text-sm text-slate-400">[[common.loading]]</div>

<script>
  const L = { edit: '[[common.edit]]', del: '[[common.delete]]', empty: '[[dashboard.noPosts]]' };

  async function loadPosts() {
    const box = document.getElementById('postList');
    const params = new URLSearchParams({ limit: 100 });
    const status = document.getElementById('statusFilter').value;
    const q = document.getElementById('search').value.trim();
    if (status) params.set('status', status);
    if (q) params.set('q', q);
    try {
      const data = await api('/api/dashboard/posts?' + params.toString());
      if (!data.posts.length) { box.textContent = L.empty; return; }
      box.innerHTML = data.posts.map(p => `
        <div class="glass rounded-2xl p-5 space-y-3">
          <div class="text-white whitespace-pre-wrap">${esc(p.content)}</div>
          <div class="flex justify-between items-center text-[10px] font-black uppercase tracking-widest">
            <span>${esc(p.platform)} / ${esc(p.status)} / ♥ ${p.likes_count} ↩ ${p.replies_count} ⟳ ${p.retweets_count}</span>
            <span class="flex gap-2">
              <button onclick="editPost(${p.id})" class="px-3 py-1 rounded-lg glass">${L.edit}</button>
              <button onclick="deletePost(${p.id})" class="px-3 py-1 rounded-lg bg-red-500/20 text-red-300">${L.del}</button>
            </span>
          </div>
        </div>`).join('');
      window.postsById = Object.fromEntries(data.posts.map(p => [p.id, p]));
    } catch (err) {
      box.textContent = err.message;
    }
  }

  async function editPost(id) {
    const current = window.postsById[id];
    const content = prompt(L.edit, current.content);
    if (content === null) return;
    try {
      await api(`/api/dashboard/posts/${id}`, { method: 'PATCH', body: JSON.stringify({ content }) });
      loadPosts();
    } catch (err) { alert(err.message); }
  }

  async function deletePost(id) {
    if (!confirm(L.del + '?')) return;
    try {
      await api(`/api/dashboard/posts/${id}`, { method: 'DELETE' });
      loadPosts();
    } catch (err) { alert(err.message); }
  }

  document.getElementById('statusFilter').addEventListener('change', loadPosts);
  document.getElementById('search').addEventListener('input', () => { clearTimeout(window.searchTimer); window.searchTimer = setTimeout(loadPosts, 300); });
  loadPosts();
</script>
"""

SCHEDULE_CONTENT = """
<div class="flex flex-wrap justify-between items-center gap-4">
  <h1 class="text-2xl font-black">[[dashboard.schedule]]</h1>
  <div class="flex gap-2 items-center">
    <button data-status="all" class="chip active px-3 py-1 rounded-lg glass text-xs font-bold">[[common.all]]</button>
    <button data-status="scheduled" class="chip px-3 py-1 rounded-lg glass text-xs font-bold">scheduled</button>
    <button data-status="paused" class="chip px-3 py-1 rounded-lg glass text-xs font-bold">paused</button>
    <button data-status="failed" class="chip px-3 py-1 rounded-lg glass text-xs font-bold">failed</button>
    <input id="search" placeholder="[[common.search]]" class="rounded-xl bg-black/30 border border-white/10 p-2 text-sm" />
  </div>
</div>
<div id="scheduleList" class="space-y-3 text-sm text-slate-400">[[common.loading]]</div>

<script>
  const L = { pause: '[[common.pause]]', resume: '[[common.resume]]', del: '[[common.delete]]', empty: '-' };
  const TZ = '{{timezone}}';
  let currentStatus = 'all';

  async function loadSchedule() {
    const box = document.getElementById('scheduleList');
    const params = new URLSearchParams({ status: currentStatus });
    const q = document.getElementById('search').value.trim();
    if (q) params.set('q', q);
    try {
      const data = await api('/api/dashboard/schedule?' + params.toString());
      if (!data.posts.length) { box.textContent = L.empty; return; }
      box.innerHTML = data.posts.map(p => {
        const when = new Date(p.scheduled_for.endsWith('Z') || p.scheduled_for.includes('+') ? p.scheduled_for : p.scheduled_for + 'Z');
        const action = p.status === 'scheduled'
          ? `<button onclick="act(${p.id}, 'pause')" class="px-3 py-1 rounded-lg glass">${L.pause}</button>`
          : p.status === 'paused' ? `<button onclick="act(${p.id}, 'resume')" class="px-3 py-1 rounded-lg glass">${L.resume}</button>` : '';
        return `
        <div class="glass rounded-2xl p-5 space-y-3">
          <div class="text-white whitespace-pre-wrap">${esc(p.content)}</div>
          ${p.error_message ? `<div class="text-xs text-red-300">${esc(p.error_message)}</div>` : ''}
          <div class="flex justify-between items-center text-[10px] font-black uppercase tracking-widest">
            <span>${esc(p.platform)} / ${esc(p.status)} / ${esc(when.toLocaleString(undefined, { timeZone: TZ }))}</span>
            <span class="flex gap-2">${action}
              <button onclick="removeEntry(${p.id})" class="px-3 py-1 rounded-lg bg-red-500/20 text-red-300">${L.del}</button>
            </span>
          </div>
        </div>`;
      }).join('');
    } catch (err) {
      box.textContent = err.message;
    }
  }

  async function act(id, verb) {
    try {
      await api(`/api/dashboard/schedule/${id}/${verb}`, { method: 'POST' });
      loadSchedule();
    } catch (err) { alert(err.message); }
  }

  async function removeEntry(id) {
    if (!confirm(L.del + '?')) return;
    try {
      await api(`/api/dashboard/schedule/${id}`, { method: 'DELETE' });
      loadSchedule();
    } catch (err) { alert(err.message); }
  }

  document.querySelectorAll('.chip').forEach(btn => btn.addEventListener('click', () => {
    document.querySelectorAll('.chip').forEach(b => b.classList.remove('active'));
    btn.classList.add('active');
    currentStatus = btn.dataset.status;
    loadSchedule();
  }));
  document.getElementById('search').addEventListener('input', () => { clearTimeout(window.searchTimer); window.searchTimer = setTimeout(loadSchedule, 300); });
  loadSchedule();
</script>
"""

ANALYTICS_CONTENT = """
<div class="flex justify-between items-center">
  <h1 class="text-2xl font-black">[[dashboard.analytics]]</h1>
  <div class="flex gap-2">
    <button data-range="7d" class="chip active px-3 py-1 rounded-lg glass text-xs font-bold">7d</button>
    <button data-range="30d" class="chip px-3 py-1 rounded-lg glass text-xs font-bold">30d</button>
    <button data-range="90d" class="chip px-3 py-1 rounded-lg glass text-xs font-bold">90d</button>
  </div>
</div>
<div id="analytics" class="space-y-6 text-sm text-slate-400">[[common.loading]]</div>

<script>
  function compact(n) {
    n = n || 0;
    if (n >= 1e6) return (n / 1e6).toFixed(1).replace(/\\.0$/, '') + 'M';
    if (n >= 1e3) return (n / 1e3).toFixed(1).replace(/\\.0$/, '') + 'K';
    return String(n);
  }

  async function loadAnalytics(range) {
    const box = document.getElementById('analytics');
    try {
      const d = await api('/api/dashboard/analytics?range=' + range);
      const max = Math.max(1, ...d.daily.map(x => x.posts));
      box.innerHTML = `
        <div class="grid md:grid-cols-4 gap-6">
          ${[['Posts', d.totalPosts], ['Likes', d.likes], ['Replies', d.replies], ['Reposts', d.retweets]].map(([k, v]) => `
            <div class="glass rounded-3xl p-6"><div class="text-[10px] font-black uppercase tracking-widest">${k}</div><div class="text-3xl font-black text-white">${compact(v)}</div></div>`).join('')}
        </div>
        <div class="glass rounded-3xl p-6 flex items-end gap-1 h-48">
          ${d.daily.map(x => `<div title="${x.date}: ${x.posts}" class="flex-1 bg-indigo-500/70 rounded-t" style="height:${(x.posts / max) * 100}%"></div>`).join('')}
        </div>
        <div class="glass rounded-3xl p-6 space-y-3">
          <div class="text-[10px] font-black uppercase tracking-widest">Top posts / avg ${d.engagement}</div>
          ${d.topPosts.map(p => `<div class="flex justify-between gap-4"><span class="text-white">${esc(p.content)}</span><span>${p.engagement}</span></div>`).join('') || '-'}
        </div>`;
    } catch (err) {
      box.textContent = err.message;
    }
  }

  document.querySelectorAll('.chip').forEach(btn => btn.addEventListener('click', () => {
    document.querySelectorAll('.chip').forEach(b => b.classList.remove('active'));
    btn.classList.add('active');
    loadAnalytics(btn.dataset.range);
  }));
  loadAnalytics('7d');
</script>
"""

SETTINGS_CONTENT = """
<h1 class="text-2xl font-black">[[dashboard.settings]]</h1>
<div class="grid lg:grid-cols-2 gap-8">
  <form id="settingsForm" class="glass rounded-3xl p-8 space-y-5">
    <h2 class="font-black">[[settings.profile]]</h2>
    <label class="block space-y-2">
      <span class="text-[10px] font-black uppercase tracking-widest text-slate-400">[[settings.name]]</span>
      <input name="name" class="w-full rounded-xl bg-black/30 border border-white/10 p-3 text-sm" />
    </label>
    <label class="block space-y-2">
      <span class="text-[10px] font-black uppercase tracking-widest text-slate-400">[[settings.timezone]]</span>
      <input name="timezone" class="w-full rounded-xl bg-black/30 border border-white/10 p-3 text-sm" />
    </label>
    <label class="block space-y-2">
      <span class="text-[10px] font-black uppercase tracking-widest text-slate-400">[[settings.language]]</span>
      <select name="language" class="w-full rounded-xl bg-black/30 border border-white/10 p-3 text-sm">
        <option value="ko">한국어</option>
        <option value="en">English</option>
      </select>
    </label>
    <h2 class="font-black pt-4">[[settings.notifications]]</h2>
    <div id="notifications" class="grid grid-cols-2 gap-3 text-sm"></div>
    <button type="submit" class="w-full py-3 rounded-2xl bg-indigo-600 font-black text-xs uppercase tracking-widest">[[settings.save]]</button>
    <div id="settingsMsg" class="hidden text-xs font-bold p-4 rounded-xl"></div>
  </form>

  <div class="space-y-8">
    <div class="glass rounded-3xl p-8 space-y-3">
      <h2 class="font-black">[[settings.billing]]</h2>
      <div id="billing" class="text-sm text-slate-400">[[common.loading]]</div>
    </div>
    <div class="rounded-3xl p-8 space-y-4 border border-red-500/30 bg-red-500/5">
      <h2 class="font-black text-red-300">[[settings.delete]]</h2>
      <input id="deleteConfirm" placeholder="[[settings.deleteConfirm]]" class="w-full rounded-xl bg-black/30 border border-white/10 p-3 text-sm" />
      <button onclick="deleteAccount()" class="w-full py-3 rounded-2xl bg-red-600 font-black text-xs uppercase tracking-widest">[[settings.delete]]</button>
    </div>
  </div>
</div>

<script>
  const SAVED = '[[settings.saved]]';
  const NOTIFY_KEYS = ['email', 'postPublished', 'postFailed', 'weeklyReport', 'monthlyReport'];

  function showMsg(text, ok) {
    const el = document.getElementById('settingsMsg');
    el.textContent = text;
    el.className = 'text-xs font-bold p-4 rounded-xl ' + (ok ? 'text-emerald-400 bg-emerald-500/10' : 'text-red-400 bg-red-500/10');
  }

  function fill(s) {
    const f = document.getElementById('settingsForm');
    f.name.value = s.profile.name;
    f.timezone.value = s.profile.timezone;
    f.language.value = s.profile.language;
    document.getElementById('notifications').innerHTML = NOTIFY_KEYS.map(k =>
      `<label class="flex items-center gap-2"><input type="checkbox" data-key="${k}" ${s.notifications[k] ? 'checked' : ''} /> ${k}</label>`).join('');
    const b = s.billing;
    document.getElementById('billing').innerHTML = `<div class="text-white font-black uppercase">${esc(b.plan)}</div>
      <div>${b.postsUsed} / ${b.postsLimit}</div>
      ${b.currentPeriodEnd ? `<div>${esc(b.subscriptionStatus)} / ${esc(new Date(b.currentPeriodEnd).toLocaleDateString())}</div>` : ''}`;
  }

  document.getElementById('settingsForm').addEventListener('submit', async (e) => {
    e.preventDefault();
    const f = e.target;
    const notifications = {};
    document.querySelectorAll('#notifications input').forEach(i => { notifications[i.dataset.key] = i.checked; });
    try {
      const s = await api('/api/dashboard/settings', {
        method: 'PATCH',
        body: JSON.stringify({ name: f.name.value, timezone: f.timezone.value, language: f.language.value, notifications })
      });
      fill(s);
      showMsg(SAVED, true);
    } catch (err) { showMsg(err.message, false); }
  });

  async function deleteAccount() {
    try {
      await api('/api/dashboard/settings/delete', {
        method: 'POST',
        body: JSON.stringify({ confirm: document.getElementById('deleteConfirm').value })
      });
      window.location.href = '/';
    } catch (err) { showMsg(err.message, false); }
  }

  api('/api/dashboard/settings').then(fill).catch(err => showMsg(err.message, false));
</script>
"""

# --- HELPERS ---

def _guard(user: Optional[User], *, onboarding_page: bool = False):
    """Redirect for anonymous users and for pages that don't match the onboarding state."""
    if not user:
        return RedirectResponse(url="/login", status_code=303)
    if onboarding_page and user.onboarding_completed:
        return RedirectResponse(url="/dashboard", status_code=303)
    if not onboarding_page and not user.onboarding_completed:
        return RedirectResponse(url="/dashboard/onboarding", status_code=303)
    return None

def _fill(template: str, lang: str, values: dict[str, str]) -> str:
    page = render(template, lang)
    for key, value in values.items():
        page = page.replace("{{" + key + "}}", value)
    return page

def _layout(request: Request, user: User, active: str, title_key: str, content: str) -> HTMLResponse:
    lang = detect_language(request)
    nav_links = "\n".join(
        f'<a href="{href}" class="text-[10px] font-black uppercase tracking-widest nav-link py-5 '
        f'{"active" if name == active else "text-slate-400 hover:text-white transition-colors"}">{html.escape(t(key, lang))}</a>'
        for name, href, key in NAV_ITEMS
    )
    admin_link = ""
    if user.is_superadmin:
        admin_link = '<a href="/admin" class="text-[10px] font-black uppercase tracking-widest nav-link py-5 text-amber-400">Admin</a>'
    return HTMLResponse(APP_LAYOUT_HTML.format(
        lang=lang,
        title=html.escape(t(title_key, lang)),
        nav_links=nav_links,
        admin_link=admin_link,
        user_name=html.escape(user.name),
        plan=html.escape(user.plan),
        logout_label=html.escape(t("dashboard.logout", lang)),
        error_label=t("common.error", lang).replace("'", "\\'"),
        content=content,
    ))

# --- ROUTES ---

@router.get("/dashboard", response_class=HTMLResponse)
def dashboard_page(request: Request, user: Optional[User] = Depends(optional_user), db: Session = Depends(get_db)):
    redirect = _guard(user)
    if redirect:
        return redirect

    lang = detect_language(request)
    now = datetime.now(timezone.utc)
    stats = usage_summary(db, user, now)
    limit = stats["postsLimit"] or 1
    limit_notice = ""
    if stats["postsUsed"] >= stats["postsLimit"]:
        limit_notice = f'<div class="text-xs font-bold text-amber-400">{html.escape(t("dashboard.limitReached", lang))}</div>'

    content = _fill(DASHBOARD_CONTENT, lang, {
        "user_name": html.escape(user.name),
        "countdown": format_countdown(stats["nextReset"] - now),
        "this_month": format_number(stats["thisMonth"]),
        "this_week": format_number(stats["thisWeek"]),
        "engagement": format_number(stats["engagement"]),
        "posts_used": str(stats["postsUsed"]),
        "posts_limit": str(stats["postsLimit"]),
        "usage_pct": str(min(100, round(stats["postsUsed"] * 100 / limit))),
        "limit_notice": limit_notice,
    })
    return _layout(request, user, "dashboard", "dashboard.title", content)

@router.get("/dashboard/onboarding", response_class=HTMLResponse)
def onboarding_page(request: Request, user: Optional[User] = Depends(optional_user)):
    redirect = _guard(user, onboarding_page=True)
    if redirect:
        return redirect

    lang = detect_language(request)
    titles = [
        [t("onboarding.step1.title", lang), ""],
        [t("onboarding.step2.title", lang), ""],
        [t("onboarding.step3.title", lang), t("onboarding.step3.subtitle", lang)],
        [t("onboarding.step4.title", lang), t("onboarding.step4.subtitle", lang)],
    ]
    return HTMLResponse(_fill(ONBOARDING_HTML, lang, {
        "lang": lang,
        "options": json.dumps(onboarding.options(), ensure_ascii=False).replace("</", "<\\/"),
        "titles": json.dumps(titles, ensure_ascii=False).replace("</", "<\\/"),
    }))

@router.get("/dashboard/generate", response_class=HTMLResponse)
def generate_page(request: Request, user: Optional[User] = Depends(optional_user)):
    redirect = _guard(user)
    if redirect:
        return redirect

    lang = detect_language(request)
    locked = platform_locked(user)
    platform = user.selected_platform or "twitter"
    lock_notice = ""
    if locked:
        until = format_date(user.platform_locked_until, lang, user.timezone)
        lock_notice = f'<div class="text-xs font-bold text-amber-400">{html.escape(t("generate.platformLocked", lang))} {until}</div>'

    content = _fill(GENERATE_CONTENT, lang, {
        "lock_notice": lock_notice,
        "platform_disabled": "disabled" if locked else "",
        "twitter_selected": "selected" if platform == "twitter" else "",
        "threads_selected": "selected" if platform == "threads" else "",
        "locked_platform": json.dumps(platform if locked else None),
    })
    return _layout(request, user, "generate", "dashboard.generate", content)

@router.get("/dashboard/posts", response_class=HTMLResponse)
def posts_page(request: Request, user: Optional[User] = Depends(optional_user)):
    redirect = _guard(user)
    if redirect:
        return redirect
    content = _fill(POSTS_CONTENT, detect_language(request), {})
    return _layout(request, user, "posts", "dashboard.posts", content)

@router.get("/dashboard/schedule", response_class=HTMLResponse)
def schedule_page(request: Request, user: Optional[User] = Depends(optional_user)):
    redirect = _guard(user)
    if redirect:
        return redirect
    content = _fill(SCHEDULE_CONTENT, detect_language(request), {"timezone": html.escape(user.timezone)})
    return _layout(request, user, "schedule", "dashboard.schedule", content)

@router.get("/dashboard/analytics", response_class=HTMLResponse)
def analytics_page(request: Request, user: Optional[User] = Depends(optional_user)):
    redirect = _guard(user)
    if redirect:
        return redirect
    content = _fill(ANALYTICS_CONTENT, detect_language(request), {})
    return _layout(request, user, "analytics", "dashboard.analytics", content)

@router.get("/dashboard/settings", response_class=HTMLResponse)
def settings_page(request: Request, user: Optional[User] = Depends(optional_user)):
    redirect = _guard(user)
    if redirect:
        return redirect
    content = _fill(SETTINGS_CONTENT, detect_language(request), {})
    return _layout(request, user, "settings", "dashboard.settings", content)
