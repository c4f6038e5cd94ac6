# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

import html
import json
from contextlib import contextmanager
from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session
from typing import Any, Optional
from typify.db import get_db
from typify.models import User
from typify.security.auth import optional_user
from typify.security.rbac import require_superadmin
from typify.services.data_provider import (
    DataProvider, DataProviderError, InvalidField, RecordNotFound, UnknownResource, RESOURCES, serialize,
)

router = APIRouter(prefix="/admin", tags=["admin"])

ADMIN_HTML = """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>Admin | Typify</title>
  <script src="https://cdn.tailwindcss.com"></script>
  <link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700;900&display=swap" rel="stylesheet">
  <style>
    body { font-family: 'Inter', sans-serif; background: #020617; color: #fff; }
    .glass { background: rgba(255, 255, 255, 0.03); border: 1px solid rgba(255, 255, 255, 0.1); }
    .tab.active { background: #4f46e5; }
    td, th { padding: 0.5rem 0.75rem; white-space: nowrap; max-width: 18rem; overflow: hidden; text-overflow: ellipsis; }
  </style>
</head>
<body class="min-h-screen">
  <nav class="border-b border-white/5 px-6 h-16 flex items-center justify-between">
    <div class="text-lg font-black italic tracking-tighter">TYPIFY <span class="text-amber-400 text-xs not-italic">ADMIN</span></div>
    <a href="/dashboard" class="text-[10px] font-black uppercase tracking-widest text-slate-400 hover:text-white">Dashboard</a>
  </nav>

  <main class="max-w-7xl mx-auto px-6 py-10 space-y-8">
    <div class="grid grid-cols-2 md:grid-cols-6 gap-4">{{count_cards}}</div>

    <div class="flex flex-wrap gap-2" id="tabs">{{tabs}}</div>

    <div class="flex flex-wrap gap-3 items-center">
      <input id="filterInput" placeholder='{"status": "draft"}' class="flex-1 rounded-xl bg-black/30 border border-white/10 p-2 text-xs font-mono" />
      <button onclick="load(0)" class="px-4 py-2 rounded-xl glass text-xs font-bold">Filter</button>
      <button onclick="createRecord()" class="px-4 py-2 rounded-xl bg-indigo-600 text-xs font-bold">Create</button>
      <button onclick="bulkDelete()" class="px-4 py-2 rounded-xl bg-red-600/60 text-xs font-bold">Delete selected</button>
    </div>

    <div class="glass rounded-2xl overflow-x-auto">
      <table class="text-xs w-full"><thead id="thead" class="text-slate-400 uppercase"></thead><tbody id="tbody"></tbody></table>
    </div>
    <div class="flex justify-between items-center text-xs text-slate-400">
      <span id="rangeLabel"></span>
      <span class="flex gap-2">
        <button onclick="load(state.page - 1)" class="px-3 py-1 rounded-lg glass">Prev</button>
        <button onclick="load(state.page + 1)" class="px-3 py-1 rounded-lg glass">Next</button>
      </span>
    </div>
    <div id="errorMsg" class="hidden text-xs font-bold text-rose-400 bg-rose-500/10 p-4 rounded-xl border border-rose-500/20"></div>
  </main>

  <script>
    const PER_PAGE = 25;
    const state = { resource: 'users', page: 0, sort: ['id', 'ASC'], total: 0, rows: [] };

    function esc(s) {
      const d = document.createElement('div');
      d.textContent = s == null ? '' : (typeof s === 'object' ? JSON.stringify(s) : String(s));
      return d.innerHTML;
    }

    function showError(msg) {
      const el = document.getElementById('errorMsg');
      el.textContent = msg;
      el.classList.toggle('hidden', !msg);
    }

    async function call(path, opts) {
      const res = await fetch(path, Object.assign({ headers: { 'Content-Type': 'application/json' } }, opts || {}));
      const data = await res.json().catch(() => null);
      if (!res.ok) throw new Error((data && data.detail) || res.statusText);
      return { data, res };
    }

    async function load(page) {
      if (page < 0) return;
      showError('');
      let filter = {};
      const raw = document.getElementById('filterInput').value.trim();
      if (raw) {
        try { filter = JSON.parse(raw); } catch (e) { return showError('Filter must be JSON'); }
      }
      const start = page * PER_PAGE;
      const params = new URLSearchParams({
        sort: JSON.stringify(state.sort),
        range: JSON.stringify([start, start + PER_PAGE - 1]),
        filter: JSON.stringify(filter)
      });
      try {
        const { data, res } = await call(`/admin/api/${state.resource}?` + params.toString());
        const total = parseInt((res.headers.get('Content-Range') || '/0').split('/')[1], 10);
        if (page > 0 && start >= total) return;
        state.page = page;
        state.total = total;
        state.rows = data;
        draw();
      } catch (err) { showError(err.message); }
    }

    function draw() {
      const cols = state.rows.length ? Object.keys(state.rows[0]) : ['id'];
      document.getElementById('thead').innerHTML = '<tr><th></th>' + cols.map(c =>
        `<th class="cursor-pointer text-left" onclick="sortBy('${c}')">${esc(c)}${state.sort[0] === c ? (state.sort[1] === 'ASC' ? ' ▲' : ' ▼') : ''}</th>`).join('') + '<th></th></tr>';
      document.getElementById('tbody').innerHTML = state.rows.map(r => '<tr class="border-t border-white/5">'
        + `<td><input type="checkbox" class="rowSel" value="${r.id}" /></td>`
        + cols.map(c => `<td title="${esc(r[c])}">${esc(r[c])}</td>`).join('')
        + `<td><button onclick="editRecord(${r.id})" class="text-indigo-300">Edit</button> <button onclick="deleteRecord(${r.id})" class="text-rose-400">Delete</button></td></tr>`).join('');
      const start = state.page * PER_PAGE;
      document.getElementById('rangeLabel').textContent = `${state.total ? start + 1 : 0}-${start + state.rows.length} / ${state.total}`;
    }

    function sortBy(col) {
      state.sort = [col, state.sort[0] === col && state.sort[1] === 'ASC' ? 'DESC' : 'ASC'];
      load(0);
    }

    function selectTab(resource) {
      state.resource = resource;
      state.sort = ['id', 'ASC'];
      document.querySelectorAll('.tab').forEach(t => t.classList.toggle('active', t.dataset.resource === resource));
      load(0);
    }

    async function editRecord(id) {
      const row = state.rows.find(r => r.id === id);
      const editable = Object.assign({}, row);
      ['id', 'created_at', 'updated_at'].forEach(k => delete editable[k]);
      const raw = prompt('Edit JSON', JSON.stringify(editable));
      if (raw === null) return;
      try {
        await call(`/admin/api/${state.resource}/${id}`, { method: 'PUT', body: raw });
        load(state.page);
      } catch (err) { showError(err.message); }
    }

    async function createRecord() {
      const raw = prompt('New record JSON', '{}');
      if (raw === null) return;
      try {
        await call(`/admin/api/${state.resource}`, { method: 'POST', body: raw });
        load(state.page);
      } catch (err) { showError(err.message); }
    }

    async function deleteRecord(id) {
      if (!confirm(`Delete ${state.resource} #${id}?`)) return;
      try {
        await call(`/admin/api/${state.resource}/${id}`, { method: 'DELETE' });
        load(state.page);
      } catch (err) { showError(err.message); }
    }

    async function bulkDelete() {
      const ids = [...document.querySelectorAll('.rowSel:checked')].map(i => parseInt(i.value, 10));
      if (!ids.length || !confirm(`Delete ${ids.length} records?`)) return;
      try {
        await call(`/admin/api/${state.resource}?filter=` + encodeURIComponent(JSON.stringify({ id: ids })), { method: 'DELETE' });
        load(0);
      } catch (err) { showError(err.message); }
    }

    selectTab('users');
  </script>
</body>
</html>
"""

@contextmanager
def _provider_errors():
    try:
        yield
    except (RecordNotFound, UnknownResource) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InvalidField, DataProviderError) as e:
        raise HTTPException(status_code=400, detail=str(e))

def _json_param(raw: str | None, name: str, default):
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail=f"'{name}' must be valid JSON")

def _list_params(sort: str | None, range_: str | None, filter_: str | None):
    sort_field, sort_order = "id", "ASC"
    parsed_sort = _json_param(sort, "sort", None)
    if parsed_sort:
        if not isinstance(parsed_sort, list) or len(parsed_sort) != 2:
            raise HTTPException(status_code=400, detail="'sort' must be [field, order]")
        sort_field, sort_order = str(parsed_sort[0]), str(parsed_sort[1]).upper()
        if sort_order not in ("ASC", "DESC"):
            raise HTTPException(status_code=400, detail="sort order must be ASC or DESC")

    start, end = 0, 24
    parsed_range = _json_param(range_, "range", None)
    if parsed_range:
        try:
            start, end = int(parsed_range[0]), int(parsed_range[1])
        except (TypeError, ValueError, IndexError):
            raise HTTPException(status_code=400, detail="'range' must be [start, end]")
    if start < 0 or end < start:
        raise HTTPException(status_code=400, detail="'range' must be [start, end]")
    per_page = end - start + 1

    filters = _json_param(filter_, "filter", {})
    if not isinstance(filters, dict):
        raise HTTPException(status_code=400, detail="'filter' must be a JSON object")
    return sort_field, sort_order, start, per_page, filters

def _bulk_ids(filter_: str | None) -> list[int]:
    filters = _json_param(filter_, "filter", {})
    ids = filters.get("id") if isinstance(filters, dict) else None
    if not isinstance(ids, list) or not ids:
        raise HTTPException(status_code=400, detail='Bulk operations need ?filter={"id": [...]}')
    try:
        return [int(i) for i in ids]
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="ids must be integers")

def _content_range(response: Response, resource: str, start: int, count: int, total: int) -> None:
    end = start + count - 1 if count else start
    response.headers["Content-Range"] = f"{resource} {start}-{end}/{total}"
    response.headers["Access-Control-Expose-Headers"] = "Content-Range"

# --- PAGE ---

@router.get("", response_class=HTMLResponse)
def admin_page(user: Optional[User] = Depends(optional_user), db: Session = Depends(get_db)):
    if not user:
        return RedirectResponse(url="/login", status_code=303)
    if not user.is_superadmin:
        return HTMLResponse("<h1>403</h1><p>You must be a platform superadmin to view this page.</p>", status_code=403)

    counts = DataProvider(db).counts()
    count_cards = "".join(
        f'<div class="glass rounded-2xl p-4"><div class="text-[10px] font-black uppercase tracking-widest text-slate-400">'
        f'{html.escape(name)}</div><div class="text-2xl font-black">{total}</div></div>'
        for name, total in counts.items()
    )
    tabs = "".join(
        f'<button data-resource="{name}" onclick="selectTab(\'{name}\')" class="tab px-4 py-2 rounded-xl glass text-xs font-bold">{name}</button>'
        for name in RESOURCES
    )
    return ADMIN_HTML.replace("{{count_cards}}", count_cards).replace("{{tabs}}", tabs)

# --- DATA API ---

@router.get("/api/{resource}/reference")
def admin_list_reference(
    resource: str,
    response: Response,
    target: str,
    id: str,
    sort: str | None = None,
    range: str | None = Query(None),
    filter: str | None = Query(None),
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
) -> list[dict[str, Any]]:
    """Rows of `resource` whose `target` column points at `id` (e.g. a user's posts)."""
    sort_field, sort_order, start, per_page, filters = _list_params(sort, range, filter)
    record_id: Any = int(id) if id.isdigit() else id
    with _provider_errors():
        rows, total = DataProvider(db).get_many_reference(
            resource, target, record_id, per_page=per_page, sort_field=sort_field, sort_order=sort_order,
            filters=filters, offset=start,
        )
    _content_range(response, resource, start, len(rows), total)
    return [serialize(r) for r in rows]

@router.get("/api/{resource}")
def admin_list(
    resource: str,
    response: Response,
    sort: str | None = None,
    range: str | None = Query(None),
    filter: str | None = Query(None),
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
) -> list[dict[str, Any]]:
    sort_field, sort_order, start, per_page, filters = _list_params(sort, range, filter)
    provider = DataProvider(db)
    with _provider_errors():
        if set(filters) == {"id"} and isinstance(filters["id"], list):
            rows = provider.get_many(resource, filters["id"])
            total = len(rows)
        else:
            rows, total = provider.get_list(
                resource, per_page=per_page, sort_field=sort_field, sort_order=sort_order, filters=filters, offset=start,
            )
    _content_range(response, resource, start, len(rows), total)
    return [serialize(r) for r in rows]

@router.get("/api/{resource}/{record_id}")
def admin_get(
    resource: str,
    record_id: int,
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    with _provider_errors():
        return serialize(DataProvider(db).get_one(resource, record_id))

@router.post("/api/{resource}", status_code=201)
def admin_create(
    resource: str,
    data: dict[str, Any] = Body(...),
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    with _provider_errors():
        return serialize(DataProvider(db).create(resource, data))

@router.put("/api/{resource}/{record_id}")
def admin_update(
    resource: str,
    record_id: int,
    data: dict[str, Any] = Body(...),
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    with _provider_errors():
        return serialize(DataProvider(db).update(resource, record_id, data))

@router.put("/api/{resource}")
def admin_update_many(
    resource: str,
    filter: str | None = Query(None),
    data: dict[str, Any] = Body(...),
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
) -> list[int]:
    ids = _bulk_ids(filter)
    with _provider_errors():
        return DataProvider(db).update_many(resource, ids, data)

@router.delete("/api/{resource}/{record_id}")
def admin_delete(
    resource: str,
    record_id: int,
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    with _provider_errors():
        return DataProvider(db).delete(resource, record_id)

@router.delete("/api/{resource}")
def admin_delete_many(
    resource: str,
    filter: str | None = Query(None),
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
) -> list[int]:
    ids = _bulk_ids(filter)
    with _provider_errors():
        return DataProvider(db).delete_many(resource, ids)
